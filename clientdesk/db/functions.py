# clientdesk/db/functions.py
"""
SQL functions shared by queries and the engine.

casefold() folds text the same way on both sides of a comparison. PostgreSQL
lower() is Unicode-aware, SQLite lower() only folds ASCII, so on SQLite it
compiles to a casefold() function registered on every connection.
"""
from typing import Optional

from sqlalchemy import String
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import GenericFunction


class casefold(GenericFunction):
    type = String()
    name = "casefold"
    inherit_cache = True


@compiles(casefold)
def _compile_casefold(element, compiler, **kw):
    return "lower(%s)" % compiler.process(element.clauses, **kw)


@compiles(casefold, "sqlite")
def _compile_casefold_sqlite(element, compiler, **kw):
    return "casefold(%s)" % compiler.process(element.clauses, **kw)


def sqlite_casefold(value: Optional[str]) -> Optional[str]:
    """Python side of the SQLite casefold() function."""
    if isinstance(value, str):
        return value.casefold()
    return value
