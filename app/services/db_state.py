from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def check_database(db: AsyncSession) -> str | None:
    """Run ``SELECT 1``; return None when connected, else the error message."""
    try:
        await db.execute(text("SELECT 1"))
        return None
    except Exception as exc:
        logger.exception("Database health check failed")
        return str(exc) or exc.__class__.__name__
