"""Short-TTL in-process cache for derived read results.

Each application instance owns its own ``ResultCache`` objects (see
``app.main.create_app``); nothing is shared across processes, so two instances
may serve results that differ by up to one TTL.

Concurrent misses for the same key may both run ``compute``. Cached
computations are read-only, so the duplicate work is harmless.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from app.core.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry:
    payload: Any
    computed_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class CachedValue(Generic[T]):
    value: T
    cached: bool
    computed_at: datetime
    stale_at: datetime


class ResultCache:
    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Optional[Clock] = None,
        max_entries: int = 256,
        name: str = "default",
    ) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock or SystemClock()
        self.max_entries = max_entries
        self.name = name
        self._store: "OrderedDict[str, CacheEntry]" = OrderedDict()

    def get(self, key: str) -> CacheEntry | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self.clock.now() >= entry.expires_at:
            self._store.pop(key, None)
            return None
        self._store.move_to_end(key)
        return entry

    def put(self, key: str, payload: Any, *, ttl_seconds: float | None = None) -> CacheEntry:
        now = self.clock.now()
        ttl = self.ttl if ttl_seconds is None else timedelta(seconds=ttl_seconds)
        entry = CacheEntry(payload=payload, computed_at=now, expires_at=now + ttl)
        self._store[key] = entry
        self._store.move_to_end(key)
        while len(self._store) > self.max_entries:
            self._store.popitem(last=False)
        return entry

    def invalidate(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    async def with_cache(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
        *,
        ttl_seconds: float | None = None,
        should_cache: Callable[[T], bool] | None = None,
    ) -> CachedValue[T]:
        entry = self.get(key)
        if entry is not None:
            logger.debug("cache hit cache=%s key=%s", self.name, key)
            return CachedValue(
                value=entry.payload,
                cached=True,
                computed_at=entry.computed_at,
                stale_at=entry.expires_at,
            )

        value = await compute()
        if should_cache is not None and not should_cache(value):
            now = self.clock.now()
            return CachedValue(value=value, cached=False, computed_at=now, stale_at=now)

        entry = self.put(key, value, ttl_seconds=ttl_seconds)
        return CachedValue(
            value=value,
            cached=False,
            computed_at=entry.computed_at,
            stale_at=entry.expires_at,
        )
