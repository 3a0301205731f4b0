"""Aggregate counters shown in the UI header/footer.

Counters are a soft feature: on storage failure the caller gets zeros.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.core.results import Ok, SoftFailure, SoftResult
from app.repositories.event_repository import EventRepository
from app.repositories.popularity_repository import PopularityRepository
from app.services.result_cache import ResultCache

logger = logging.getLogger(__name__)

STATS_CACHE_KEY = "stats"


@dataclass
class StatsSnapshot:
    searches: int = 0
    clicks: int = 0
    cached: bool = False
    computed_at: Optional[datetime] = None

    def as_payload(self, now: datetime) -> dict:
        return {
            "searches": self.searches,
            "clicks": self.clicks,
            "cached": self.cached,
            "timestamp": (self.computed_at or now).isoformat(),
        }


class StatsService:
    def __init__(
        self,
        repository: PopularityRepository,
        events: EventRepository,
        *,
        cache: Optional[ResultCache] = None,
    ) -> None:
        self.repository = repository
        self.events = events
        self.cache = cache

    async def get_stats(self, *, use_cache: bool = True) -> SoftResult[StatsSnapshot]:
        if not use_cache or self.cache is None:
            result = await self._compute()
            if isinstance(result, Ok):
                return Ok(StatsSnapshot(*result.value))
            return result

        cached = await self.cache.with_cache(STATS_CACHE_KEY, self._compute, should_cache=lambda r: isinstance(r, Ok))
        if isinstance(cached.value, SoftFailure):
            return cached.value
        searches, clicks = cached.value.value
        return Ok(StatsSnapshot(searches=searches, clicks=clicks, cached=cached.cached, computed_at=cached.computed_at))

    async def _compute(self) -> SoftResult[tuple[int, int]]:
        try:
            searches = await self.repository.count_interactions("search")
            clicks = await self.events.count_click_events()
        except Exception as exc:
            logger.exception("Failed to compute stats counters")
            return SoftFailure(reason="stats unavailable", error=exc)
        return Ok((searches, clicks))
