# clientdesk/schemas/user.py
"""
Pydantic schemas for registration and login forms.
"""
from pydantic import BaseModel, field_validator


class UserCreate(BaseModel):
    """Schema for registering a new user."""

    username: str
    email: str
    password: str

    @field_validator("username", "email", mode="before")
    @classmethod
    def strip_value(cls, value):
        return value.strip() if isinstance(value, str) else value


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value
