"""Exception hierarchy for the CSV import pipeline.

Row-level problems are raised by the reader and turned into ``CsvError``
values by the classifier chain; they never reach the caller. Only
``ImportAbortedError`` (and its subclasses) escapes ``process_csv``.
"""


class CsvStructureError(Exception):
    """A record could not be laid onto the row model's columns."""

    def __init__(self, message: str, *, row: int | None = None) -> None:
        super().__init__(message)
        self.row = row


class MissingFieldError(CsvStructureError):
    """A required column is absent from the header or the record is short."""

    def __init__(self, field: str, *, row: int | None = None) -> None:
        super().__init__(f"Field '{field}' does not exist in the CSV record.", row=row)
        self.field = field


class MalformedRowError(CsvStructureError):
    """The tokenizer rejected the record (bad quoting, NUL byte, oversize field)."""


class ImportAbortedError(Exception):
    """The import could not complete. The transaction has been rolled back."""


class ImportCancelledError(ImportAbortedError):
    """The caller's cancel event was set while rows were being read."""


class UnknownImportTargetError(KeyError):
    """No import target is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown import target '{self.name}'"
