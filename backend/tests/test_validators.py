"""Tests for the row validators."""
import pytest
from pydantic import BaseModel, Field, field_validator, model_validator

from csv_importer.schemas.contact import ContactRow
from csv_importer.schemas.imports import ImportResult
from csv_importer.services.validators import ModelValidator


class RangeRow(BaseModel):
    low: int = Field(alias="Low")
    high: int = Field(alias="High")
    code: str = Field(alias="Code")

    @field_validator("code")
    @classmethod
    def _code_upper(cls, v: str) -> str:
        if v != v.upper():
            raise ValueError("Code must be upper case")
        return v

    @model_validator(mode="after")
    def _ordered(self) -> "RangeRow":
        if self.low > self.high:
            raise ValueError("Low must not exceed High")
        return self


def _contact(**overrides) -> ContactRow:
    data = {"Id": 1, "Name": "John", "Email": "john@x.com"}
    data.update(overrides)
    return ContactRow.model_construct(**data)


@pytest.mark.asyncio
async def test_valid_row_returns_shared_success():
    result = await ModelValidator().validate(_contact(), 1)
    assert result is ImportResult.success()


@pytest.mark.asyncio
async def test_each_violation_becomes_one_error_at_row():
    result = await ModelValidator().validate(_contact(Id=0, Name="", Email="nope"), 4)

    assert result.succeeded is False
    assert [e.row for e in result.errors] == [4, 4, 4]
    fields = [e.description.split(":", 1)[0] for e in result.errors]
    assert fields == ["Id", "Name", "Email"]


@pytest.mark.asyncio
async def test_field_validator_message_is_used_verbatim():
    row = RangeRow.model_construct(Low=1, High=2, Code="abc")
    result = await ModelValidator().validate(row, 2)

    assert result.succeeded is False
    assert result.errors[0].description == "Code: Code must be upper case"


@pytest.mark.asyncio
async def test_model_level_violation_has_no_field_prefix():
    row = RangeRow.model_construct(Low=5, High=2, Code="ABC")
    result = await ModelValidator().validate(row, 3)

    assert [e.description for e in result.errors] == ["Low must not exceed High"]
