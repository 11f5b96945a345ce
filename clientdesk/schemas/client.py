# clientdesk/schemas/client.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ClientQueryParams(BaseModel):
    """
    Filter/sort parameters of one listing request.
    Every field is optional; blank strings are the same as absent.
    sort_order is kept verbatim: only the exact value "desc" sorts descending.
    """

    search: Optional[str] = None
    status: Optional[str] = None
    phone: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("search", "status", "phone", "sort_by", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None


class ClientForm(BaseModel):
    full_name: str
    phone_number: str = ""
    status_id: Optional[int] = None

    @field_validator("full_name")
    @classmethod
    def full_name_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("full name is required")
        return value

    @field_validator("status_id", mode="before")
    @classmethod
    def empty_status_to_none(cls, value):
        # Forms send "" for "no status"; it must be stored as NULL
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return value


class ClientRow(BaseModel):
    """A client as shown in the listing, with its resolved status name."""

    id: int
    full_name: str
    phone_number: str
    status_id: Optional[int] = None
    status_name: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)
