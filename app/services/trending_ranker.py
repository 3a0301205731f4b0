"""Trending assets ranking.

Two ranking paths are offered:

- ``count`` (default, fast path): reads the materialized ``trending_searches``
  counters ordered by search count, then most recent activity.
- ``velocity``: windows raw ``trending_search_log`` rows into the last 24h and
  the 24h before that; ``velocity = recent / previous * 100`` (0 when there is no
  previous activity). Only the trailing 7 days are considered.

Trending is a soft feature: storage failures come back as ``SoftFailure`` and are
rendered as an empty list by the HTTP layer. Failures are never cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from app.core.analytics_config import TrendingTuning, trending_tuning
from app.core.clock import Clock, SystemClock
from app.core.results import Ok, SoftFailure, SoftResult
from app.core.validators import validate_address, validate_asset_type
from app.repositories.trending_repository import TrendingRepository, TrendingRow
from app.services.result_cache import ResultCache

logger = logging.getLogger(__name__)

RANKINGS = ("count", "velocity")
DEFAULT_SYMBOL = "TOKEN"
DEFAULT_NAME = "Token"


@dataclass
class TrendingAsset:
    address: str
    symbol: str
    name: str
    type: str
    velocity_score: int
    total_searches: int
    recent_searches: int
    previous_searches: int
    rank: int

    def as_dict(self) -> dict:
        return {
            "address": self.address,
            "symbol": self.symbol,
            "name": self.name,
            "type": self.type,
            "velocityScore": self.velocity_score,
            "totalSearches": self.total_searches,
            "recentSearches": self.recent_searches,
            "previousSearches": self.previous_searches,
            "rank": self.rank,
        }


@dataclass
class TrendingPage:
    assets: list[dict] = field(default_factory=list)
    cached: bool = False
    computed_at: Optional[datetime] = None
    stale_at: Optional[datetime] = None

    def as_payload(self, now: datetime) -> dict:
        timestamp = self.computed_at or now
        return {
            "assets": self.assets,
            "cached": self.cached,
            "stale": False,
            "timestamp": timestamp.isoformat(),
            "staleAt": (self.stale_at or timestamp).isoformat(),
        }


@dataclass
class TrendingLogResult:
    logged: bool


class TrendingRanker:
    def __init__(
        self,
        repository: TrendingRepository,
        *,
        cache: Optional[ResultCache] = None,
        clock: Optional[Clock] = None,
        tuning: Optional[TrendingTuning] = None,
    ) -> None:
        self.repository = repository
        self.clock = clock or SystemClock()
        self.cache = cache
        self.tuning = tuning or trending_tuning

    async def log_search(
        self,
        address: str,
        asset_type: str,
        *,
        symbol: Optional[str] = None,
        name: Optional[str] = None,
    ) -> TrendingLogResult:
        address = validate_address(address)
        asset_type = validate_asset_type(asset_type)
        try:
            await self.repository.log_search(
                address=address,
                asset_type=asset_type,
                symbol=symbol,
                name=name,
                now=self.clock.now(),
            )
        except Exception:
            # Fire-and-forget for the UI: never fail the caller.
            await self.repository.db.rollback()
            logger.exception("Failed to log trending search for %s", address)
            return TrendingLogResult(logged=False)
        return TrendingLogResult(logged=True)

    async def get_trending(
        self,
        asset_type: str = "ALL",
        limit: int = 20,
        *,
        use_cache: bool = True,
        ranking: str = "count",
    ) -> SoftResult[TrendingPage]:
        asset_type = validate_asset_type(asset_type, allow_all=True)
        limit = max(1, min(int(limit), self.tuning.max_limit))
        if ranking not in RANKINGS:
            ranking = "count"

        async def compute() -> SoftResult[list[dict]]:
            return await self._compute(asset_type, limit, ranking)

        if not use_cache or self.cache is None:
            result = await compute()
            if isinstance(result, SoftFailure):
                return result
            now = self.clock.now()
            return Ok(TrendingPage(assets=result.value, cached=False, computed_at=now, stale_at=now))

        key = f"trending:{ranking}:{asset_type}:{limit}"
        cached = await self.cache.with_cache(key, compute, should_cache=lambda r: isinstance(r, Ok))
        if isinstance(cached.value, SoftFailure):
            return cached.value
        return Ok(
            TrendingPage(
                assets=cached.value.value,
                cached=cached.cached,
                computed_at=cached.computed_at,
                stale_at=cached.stale_at,
            )
        )

    async def _compute(self, asset_type: str, limit: int, ranking: str) -> SoftResult[list[dict]]:
        type_filter = None if asset_type == "ALL" else asset_type
        try:
            if ranking == "velocity":
                rows = await self.repository.top_by_velocity(
                    asset_type=type_filter,
                    limit=limit,
                    now=self.clock.now(),
                    recent_window=timedelta(hours=self.tuning.recent_window_hours),
                    previous_window=timedelta(hours=self.tuning.previous_window_hours),
                    horizon=timedelta(days=self.tuning.horizon_days),
                )
            else:
                rows = await self.repository.top_by_count(asset_type=type_filter, limit=limit)
        except Exception as exc:
            logger.exception("Error fetching trending assets type=%s ranking=%s", asset_type, ranking)
            return SoftFailure(reason="trending unavailable", error=exc)

        return Ok([self._to_asset(row, rank).as_dict() for rank, row in enumerate(rows, start=1)])

    @staticmethod
    def _to_asset(row: TrendingRow, rank: int) -> TrendingAsset:
        return TrendingAsset(
            address=row.address,
            symbol=row.symbol or DEFAULT_SYMBOL,
            name=row.name or DEFAULT_NAME,
            type=row.asset_type,
            velocity_score=round(row.velocity_score or 0),
            total_searches=row.total_searches,
            recent_searches=row.recent_searches,
            previous_searches=row.previous_searches,
            rank=rank,
        )
