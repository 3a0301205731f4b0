"""Append-only recorder for search and click events.

Callers fire and forget; the recorder does not retry. A storage failure is
rolled back, logged and reported as :class:`StorageError` so the request fails
without affecting other requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from app.core.analytics_config import RetentionConfig, retention_config
from app.core.clock import Clock, SystemClock, from_epoch_ms
from app.core.errors import StorageError, ValidationError
from app.core.validators import (
    validate_address,
    validate_addresses,
    validate_query,
    validate_result_rank,
    validate_session_id,
)
from app.repositories.event_repository import EventRepository

logger = logging.getLogger(__name__)


@dataclass
class RecordResult:
    accepted: bool
    # Click events only: whether a search with the same (session_id, query) exists.
    matched_search: bool | None = None


@dataclass
class PurgeResult:
    cutoff: datetime
    search_events: int
    click_events: int
    dry_run: bool = False


class EventRecorder:
    def __init__(
        self,
        repository: EventRepository,
        *,
        clock: Optional[Clock] = None,
        retention: Optional[RetentionConfig] = None,
    ) -> None:
        self.repository = repository
        self.clock = clock or SystemClock()
        self.retention = retention or retention_config

    async def record_search(
        self,
        session_id: str,
        query: str,
        result_addresses: Sequence[str],
        result_count: int,
        timestamp: Optional[int] = None,
    ) -> RecordResult:
        session_id = validate_session_id(session_id)
        query = validate_query(query)
        addresses = validate_addresses(result_addresses)
        if result_count < 0:
            raise ValidationError("resultCount must not be negative")

        occurred_at = from_epoch_ms(timestamp, default=self.clock.now())
        try:
            await self.repository.insert_search_event(
                session_id=session_id,
                query=query,
                results=addresses,
                result_count=result_count,
                occurred_at=occurred_at,
            )
        except SQLAlchemyError as exc:
            await self.repository.db.rollback()
            logger.exception("Failed to insert search_events row")
            raise StorageError("failed to save search event") from exc

        logger.info("Search event saved query=%r results=%s", query, len(addresses))
        return RecordResult(accepted=True)

    async def record_click(
        self,
        session_id: str,
        query: str,
        clicked_address: str,
        result_rank: int,
        result_score: Optional[float] = None,
        time_to_click_ms: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> RecordResult:
        session_id = validate_session_id(session_id)
        query = validate_query(query)
        clicked_address = validate_address(clicked_address)
        result_rank = validate_result_rank(result_rank)
        if time_to_click_ms is not None and time_to_click_ms < 0:
            raise ValidationError("timeToClickMs must not be negative")

        occurred_at = from_epoch_ms(timestamp, default=self.clock.now())
        try:
            await self.repository.insert_click_event(
                session_id=session_id,
                query=query,
                clicked_address=clicked_address,
                result_rank=result_rank,
                result_score=result_score,
                time_to_click_ms=time_to_click_ms,
                occurred_at=occurred_at,
            )
        except SQLAlchemyError as exc:
            await self.repository.db.rollback()
            logger.exception("Failed to insert click_events row")
            raise StorageError("failed to save click event") from exc

        matched = await self._has_matching_search(session_id, query)
        logger.info("Click event saved address=%s rank=%s", clicked_address, result_rank)
        return RecordResult(accepted=True, matched_search=matched)

    async def purge_expired(self, *, days: Optional[int] = None, dry_run: bool = False) -> PurgeResult:
        retention_days = days if days is not None else self.retention.event_retention_days
        cutoff = self.clock.now() - timedelta(days=retention_days)

        if dry_run:
            searches, clicks = await self.repository.count_before(cutoff)
        else:
            searches, clicks = await self.repository.purge_before(cutoff)

        logger.info(
            "Event purge cutoff=%s search_events=%s click_events=%s dry_run=%s",
            cutoff.isoformat(),
            searches,
            clicks,
            dry_run,
        )
        return PurgeResult(cutoff=cutoff, search_events=searches, click_events=clicks, dry_run=dry_run)

    async def _has_matching_search(self, session_id: str, query: str) -> bool | None:
        # Soft join only; a click without a recorded search is still valid.
        try:
            search = await self.repository.search_for_click(session_id=session_id, query=query)
        except SQLAlchemyError:
            await self.repository.db.rollback()
            logger.warning("Could not look up search for click session=%s", session_id[:8], exc_info=True)
            return None
        if search is None:
            logger.debug("Click without matching search session=%s query=%r", session_id[:8], query)
        return search is not None
