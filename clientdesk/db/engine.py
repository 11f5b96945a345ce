# clientdesk/db/engine.py
"""
Async SQLModel engine and session management.
Supports SQLite (default, via aiosqlite) and any async URL set in DATABASE_URL.
"""

import os
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from .functions import sqlite_casefold

# Register every table on SQLModel.metadata
from clientdesk import models  # noqa: F401


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create the async engine. SQLite files get their directory created,
    foreign keys enforced, WAL mode enabled and casefold() registered on
    every connection.
    """
    url = make_url(database_url)
    is_sqlite = url.get_backend_name() == "sqlite"

    if not is_sqlite:
        return create_async_engine(database_url, echo=False)

    if url.database and url.database != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)

    # aiosqlite connections are bound to the loop that opened them
    engine = create_async_engine(
        database_url,
        echo=False,
        poolclass=NullPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.close()
        dbapi_connection.create_function("casefold", 1, sqlite_casefold)

    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for async SQLModel session injection, one session per request.
    Usage: session: AsyncSession = Depends(get_session)
    """
    async with request.app.state.async_session_maker() as session:
        yield session


async def create_db_and_tables(engine: AsyncEngine) -> None:
    """Create all tables defined in SQLModel models."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
