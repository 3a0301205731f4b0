"""Create missing tables and extensions before the API starts serving.

Migrations under ``alembic/versions`` remain the source of truth for
production; this bootstrap only fills gaps so a fresh database (or a local
SQLite file) is usable immediately.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.async_session import async_engine
from app.db.models import Base

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def ensure_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS pg_trgm"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema ensured tables=%s", ", ".join(sorted(Base.metadata.tables)))


async def bootstrap() -> None:
    try:
        await ensure_schema(async_engine)
    finally:
        await async_engine.dispose()


def main() -> None:
    _configure_logging()
    try:
        asyncio.run(bootstrap())
    except Exception:
        # Never crash startup process due to bootstrap tasks.
        logger.exception("Startup bootstrap terminated with unexpected error")


if __name__ == "__main__":
    main()
