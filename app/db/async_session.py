"""Async SQLAlchemy engine and session management.

PostgreSQL (asyncpg) serves production. A ``sqlite://`` URL runs the service on
aiosqlite for local work; foreign keys are switched on for every SQLite
connection because interaction logging depends on them.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def _to_async_url(uri: str | URL) -> URL:
    url = make_url(uri)
    backend = url.get_backend_name()
    if backend in ("postgresql", "postgres"):
        return url.set(drivername="postgresql+asyncpg")
    if backend == "sqlite":
        return url.set(drivername="sqlite+aiosqlite")
    return url


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(uri: str | URL, **engine_kwargs: Any) -> AsyncEngine:
    url = _to_async_url(uri)
    if url.get_backend_name() == "sqlite":
        engine = create_async_engine(url, **engine_kwargs)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    engine_kwargs.setdefault("pool_pre_ping", True)
    engine_kwargs.setdefault("pool_recycle", 1800)
    return create_async_engine(url, **engine_kwargs)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = build_engine(settings.sqlalchemy_database_uri)

AsyncSessionLocal = make_sessionmaker(async_engine)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as db:
        yield db
