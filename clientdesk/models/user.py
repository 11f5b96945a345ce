# clientdesk/models/user.py
"""
User model for session login.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """
    Registered user.

    - id: Auto-increment primary key
    - username: unique display/login name
    - email: unique, used to log in
    - hashed_password: argon2 hash, never exposed outside the credential store
    """

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True, nullable=False, max_length=100)
    email: str = Field(index=True, unique=True, nullable=False, max_length=320)
    hashed_password: str = Field(nullable=False, max_length=1024)
    created_at: Optional[datetime] = Field(default_factory=_utcnow)
