"""Pydantic schemas for CSV import results."""
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CsvError(BaseModel):
    """One problem attributable to one input row (1-based)."""
    model_config = ConfigDict(frozen=True)

    row: int = Field(ge=1)
    description: str = Field(min_length=1)


class ImportResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    succeeded: bool
    errors: tuple[CsvError, ...] = ()

    @model_validator(mode="after")
    def _success_has_no_errors(self) -> "ImportResult":
        if self.succeeded and self.errors:
            raise ValueError("a successful result cannot carry errors")
        return self

    @classmethod
    def success(cls) -> "ImportResult":
        return _SUCCESS

    @classmethod
    def failed(cls, errors: Iterable[CsvError] | None = None) -> "ImportResult":
        """Build a failed result. ``None`` counts as no errors (hard abort)."""
        return cls(succeeded=False, errors=tuple(errors or ()))

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "errors": [e.model_dump() for e in self.errors],
        }

    def __str__(self) -> str:
        return "Succeeded" if self.succeeded else "Failed"


_SUCCESS = ImportResult(succeeded=True)


# ─── HTTP response ───

class ImportResponse(BaseModel):
    succeeded: bool
    errors: list[CsvError]
