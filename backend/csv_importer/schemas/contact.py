"""Row model for contact CSV files (``Id,Name,Email``)."""
from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class ContactRow(BaseModel):
    id: int = Field(alias="Id", ge=1)
    name: str = Field(alias="Name", min_length=1, max_length=255)
    email: str = Field(alias="Email", max_length=255, pattern=EMAIL_PATTERN)
