"""Dialect-aware ``INSERT .. ON CONFLICT`` construction.

PostgreSQL serves production traffic; SQLite is used for local runs and tests.
Both expose the same ``on_conflict_do_update`` / ``on_conflict_do_nothing``
API, so repositories only pick the right ``insert`` here.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def dialect_name(db: AsyncSession) -> str:
    dialect = getattr(getattr(db, "bind", None), "dialect", None)
    return getattr(dialect, "name", "")


def upsert_insert(db: AsyncSession, table: Any):
    name = dialect_name(db)
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"upsert is not supported for dialect {name!r}")
