"""Row validators run against every parsed CSV row."""
from abc import ABC, abstractmethod

from pydantic import BaseModel, ValidationError

from csv_importer.schemas.imports import CsvError, ImportResult


class RowValidator(ABC):
    """Inspect one parsed row and report every problem found in it.

    Implementations may be semantic (cross-field rules, lookups against
    reference data) and are free to await I/O. The pipeline runs every
    registered validator for every row and keeps all of their errors.
    """

    @abstractmethod
    async def validate(self, row: BaseModel, row_number: int) -> ImportResult:
        ...


class ModelValidator(RowValidator):
    """Apply the row model's declarative constraints.

    ``Field`` constraints, field validators and model validators declared on
    the row model are checked here. Each violation becomes one CsvError at
    the current row. Validators on the row model run again on already typed
    values, so they must accept their own output.
    """

    async def validate(self, row: BaseModel, row_number: int) -> ImportResult:
        try:
            # Rows that failed constraints may hold untyped cells.
            type(row).model_validate(row.model_dump(by_alias=True, warnings=False))
        except ValidationError as exc:
            return ImportResult.failed(
                CsvError(row=row_number, description=_describe(err))
                for err in exc.errors()
            )
        return ImportResult.success()


def _describe(err: dict) -> str:
    message = err["msg"]
    if err["type"] == "value_error" and "error" in err.get("ctx", {}):
        # Drop pydantic's "Value error, " prefix for messages raised by validators.
        message = str(err["ctx"]["error"])
    field = ".".join(str(part) for part in err["loc"])
    return f"{field}: {message}" if field else message
