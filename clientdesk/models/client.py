# clientdesk/models/client.py
"""
Client and ClientStatus tables.
"""
from typing import Optional

from sqlmodel import Field, SQLModel


class ClientStatus(SQLModel, table=True):
    """
    Lookup table of client statuses. Seeded once, read-only afterwards.
    """

    __tablename__ = "client_status"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True, max_length=100)


class Client(SQLModel, table=True):
    """
    Client record.

    Fields:
    - id: Auto-increment primary key
    - full_name: Client name
    - phone_number: Contact phone
    - status_id: Optional reference to client_status.id (NULL when unset)
    """

    __tablename__ = "clients"

    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str = Field(nullable=False)
    phone_number: str = Field(default="", nullable=False)
    status_id: Optional[int] = Field(
        default=None, foreign_key="client_status.id", nullable=True, index=True
    )
