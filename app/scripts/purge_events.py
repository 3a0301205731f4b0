"""Delete raw search/click events older than the retention horizon.

Usage:
    python -m app.scripts.purge_events [--days 90] [--dry-run]

Aggregates (token_popularity, trending_searches, learned_tokens) are never
purged.
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from app.core.analytics_config import retention_config
from app.db.async_session import AsyncSessionLocal
from app.repositories.event_repository import EventRepository
from app.services.event_recorder import EventRecorder, PurgeResult

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def purge_events(days: int | None = None, dry_run: bool = False) -> PurgeResult:
    async with AsyncSessionLocal() as db:
        recorder = EventRecorder(EventRepository(db))
        return await recorder.purge_expired(days=days, dry_run=dry_run)


def main() -> None:
    _configure_logging()

    parser = argparse.ArgumentParser(description="Purge expired analytics events")
    parser.add_argument(
        "--days",
        type=int,
        default=retention_config.event_retention_days,
        help="Retention horizon in days (default: %(default)s)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Only count rows that would be deleted")
    args = parser.parse_args()

    if args.days < 1:
        parser.error("--days must be >= 1")

    result = asyncio.run(purge_events(days=args.days, dry_run=args.dry_run))
    verb = "would delete" if result.dry_run else "deleted"
    logger.info(
        "Purge %s search_events=%s click_events=%s older than %s",
        verb,
        result.search_events,
        result.click_events,
        result.cutoff.isoformat(),
    )


if __name__ == "__main__":
    main()
