"""Row-by-row CSV reading into typed row models.

Responsibilities:
  • Decoding binary input (BOM stripped by the default ``utf-8-sig``)
  • Header whitespace stripping and case-insensitive column binding
  • Building the row model; only type errors fail a row here, constraint
    violations are left to the validators
"""
import csv
import io
from collections.abc import Iterator
from dataclasses import dataclass
from typing import IO, Annotated, Any, Generic, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    PlainValidator,
    TypeAdapter,
    ValidationError,
    WrapValidator,
)
from pydantic.fields import FieldInfo

from csv_importer.services.errors import MissingFieldError, MalformedRowError

RowT = TypeVar("RowT", bound=BaseModel)

# pydantic error types meaning "this cell is not a <type>", as opposed to a
# value of the right type breaking a constraint.
_FORMAT_ERROR_TYPES = frozenset({"int_from_float", "enum", "literal_error"})
_FORMAT_ERROR_SUFFIXES = ("_parsing", "_type")


@dataclass(frozen=True)
class ParsedRow(Generic[RowT]):
    """One record from the stream: either a model or the exception it raised."""
    row_number: int
    model: RowT | None = None
    error: Exception | None = None


class CsvRowReader(Generic[RowT]):
    def __init__(
        self,
        source: IO | bytes | str,
        row_model: type[RowT],
        *,
        encoding: str = "utf-8-sig",
    ) -> None:
        self.row_model = row_model
        self._stream = _open_text(source, encoding)
        self._reader = csv.DictReader(self._stream)
        self._columns: dict[str, str] = {}   # field name → header as it appears in the file
        self._fields: dict[str, FieldInfo] = {
            field.alias or name: field for name, field in row_model.model_fields.items()
        }
        self._adapters: dict[str, TypeAdapter] = {}

    def __enter__(self) -> "CsvRowReader[RowT]":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._stream.close()

    def records(self) -> Iterator[ParsedRow[RowT]]:
        """Yield every data record lazily, numbered from 1.

        Row-level failures are yielded rather than raised so the caller can
        keep reading. Decoding and I/O errors propagate.
        """
        if not self._bind_header():
            return

        row_number = 0
        while True:
            try:
                raw = next(self._reader)
            except StopIteration:
                return
            except csv.Error as exc:
                row_number += 1
                yield ParsedRow(row_number, error=MalformedRowError(str(exc), row=row_number))
                continue

            row_number += 1
            try:
                model = self.parse(raw, row_number)
            except Exception as exc:
                yield ParsedRow(row_number, error=exc)
                continue
            yield ParsedRow(row_number, model=model)

    def parse(self, raw: dict[str, str | None], row_number: int) -> RowT:
        """Build the row model from one DictReader record.

        A row that validates is returned as the validated (normalised) model.
        A ``ValidationError`` is raised when any cell cannot be read as its
        field's type. A row whose only problems are constraint violations is
        returned unvalidated so the validator chain can report each one.
        """
        values = self._cells(raw, row_number)
        try:
            return self.row_model.model_validate(values)
        except ValidationError as exc:
            if any(_is_format_error(err) for err in exc.errors()):
                raise
        return self.row_model.model_construct(
            **{key: self._coerce(key, cell) for key, cell in values.items()}
        )

    # ── Private helpers ────────────────────────────────────────────────

    def _cells(self, raw: dict[str, str | None], row_number: int) -> dict[str, str]:
        values: dict[str, str] = {}
        for name, field in self.row_model.model_fields.items():
            key = field.alias or name
            column = self._columns.get(name)
            cell = raw.get(column) if column is not None else None

            if cell is None:
                # Column absent from the header, or the record is short.
                if field.is_required():
                    raise MissingFieldError(column or key, row=row_number)
                continue
            if not cell.strip() and not field.is_required():
                continue

            values[key] = cell
        return values

    def _coerce(self, key: str, cell: str) -> Any:
        # Best-effort typing for a row that failed constraints; a cell that
        # still cannot be typed is kept as read.
        try:
            return self._adapter(key).validate_python(cell)
        except ValidationError:
            return cell

    def _bind_header(self) -> bool:
        fieldnames = self._reader.fieldnames
        if not fieldnames:
            return False

        headers = [h.lstrip("\ufeff").strip() for h in fieldnames]
        self._reader.fieldnames = headers

        by_lower = {h.lower(): h for h in headers}
        for name, field in self.row_model.model_fields.items():
            header = by_lower.get((field.alias or name).lower())
            if header is not None:
                self._columns[name] = header
        return True

    def _adapter(self, key: str) -> TypeAdapter:
        adapter = self._adapters.get(key)
        if adapter is None:
            adapter = self._adapters[key] = TypeAdapter(_coercion_type(self._fields[key]))
        return adapter


def _is_format_error(err: dict) -> bool:
    kind = err["type"]
    return kind.endswith(_FORMAT_ERROR_SUFFIXES) or kind in _FORMAT_ERROR_TYPES


def _coercion_type(field: FieldInfo) -> Any:
    """The field's annotation plus the validators that transform raw input."""
    coercers = [
        m for m in field.metadata
        if isinstance(m, (BeforeValidator, PlainValidator, WrapValidator))
    ]
    if not coercers:
        return field.annotation
    return Annotated[(field.annotation, *coercers)]


def _open_text(source: IO | bytes | str, encoding: str) -> IO[str]:
    if isinstance(source, str):
        return io.StringIO(source, newline="")
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    if isinstance(source, io.TextIOBase):
        return source
    return io.TextIOWrapper(source, encoding=encoding, newline="")
