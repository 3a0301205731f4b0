from datetime import timedelta

import pytest

from conftest import NOW, TOKEN_A, TOKEN_B, TOKEN_C, TOKEN_D

from app.core.clock import as_utc
from app.core.errors import ValidationError
from app.core.results import Ok, SoftFailure
from app.repositories.trending_repository import TrendingRepository
from app.services.result_cache import ResultCache
from app.services.trending_ranker import TrendingRanker


class _UnreachableRepository:
    db = None

    async def top_by_count(self, **_kwargs):
        raise ConnectionRefusedError("connection refused")

    async def top_by_velocity(self, **_kwargs):
        raise ConnectionRefusedError("connection refused")


async def test_log_search_is_idempotent_upsert(db, clock):
    repository = TrendingRepository(db)
    ranker = TrendingRanker(repository, clock=clock)

    first = await ranker.log_search(TOKEN_A, "token", symbol="PEPE", name="Pepe")
    clock.advance(minutes=1)
    second = await ranker.log_search(TOKEN_A, "TOKEN")

    assert first.logged and second.logged
    entry = await repository.get_entry(TOKEN_A)
    assert entry.search_count == 2
    assert as_utc(entry.created_at) == NOW
    assert as_utc(entry.updated_at) == NOW + timedelta(minutes=1)
    # A later log without labels keeps the known ones.
    assert (entry.symbol, entry.name) == ("PEPE", "Pepe")


async def test_log_search_rejects_invalid_type(db, clock):
    ranker = TrendingRanker(TrendingRepository(db), clock=clock)

    with pytest.raises(ValidationError):
        await ranker.log_search(TOKEN_A, "COIN")


async def test_count_ranking_orders_by_searches_then_recency(db, clock):
    ranker = TrendingRanker(TrendingRepository(db), clock=clock)
    for address, asset_type, times in [(TOKEN_A, "TOKEN", 1), (TOKEN_B, "TOKEN", 3), (TOKEN_C, "NFT", 1)]:
        for _ in range(times):
            await ranker.log_search(address, asset_type)
            clock.advance(seconds=10)

    result = await ranker.get_trending("ALL", 10, use_cache=False)

    assert isinstance(result, Ok)
    assets = result.value.assets
    assert [a["address"] for a in assets] == [TOKEN_B, TOKEN_C, TOKEN_A]
    assert [a["rank"] for a in assets] == [1, 2, 3]
    assert assets[0]["totalSearches"] == 3
    assert assets[0]["symbol"] == "TOKEN" and assets[0]["name"] == "Token"

    nft_only = await ranker.get_trending("nft", 10, use_cache=False)
    assert [a["address"] for a in nft_only.value.assets] == [TOKEN_C]


async def test_limit_is_clamped(db, clock):
    ranker = TrendingRanker(TrendingRepository(db), clock=clock)
    for address in (TOKEN_A, TOKEN_B, TOKEN_C):
        await ranker.log_search(address, "TOKEN")

    assert len((await ranker.get_trending("ALL", 0, use_cache=False)).value.assets) == 1
    assert len((await ranker.get_trending("ALL", 1000, use_cache=False)).value.assets) == 3


async def test_velocity_ranking_windows(db, clock):
    ranker = TrendingRanker(TrendingRepository(db), clock=clock)
    schedule = {
        # previous window (24h-48h ago) / recent window (last 24h)
        TOKEN_A: [30] + [1, 2, 3],
        TOKEN_B: [30, 40] + [1, 2],
        TOKEN_C: [1, 2, 3, 4, 5],
        # Outside the seven day horizon.
        TOKEN_D: [24 * 10],
    }
    for address, hours_ago in schedule.items():
        for hours in hours_ago:
            clock.set(NOW - timedelta(hours=hours))
            await ranker.log_search(address, "TOKEN")
    clock.set(NOW)

    result = await ranker.get_trending("TOKEN", 10, use_cache=False, ranking="velocity")

    assets = result.value.assets
    assert [a["address"] for a in assets] == [TOKEN_A, TOKEN_B, TOKEN_C]
    assert [a["velocityScore"] for a in assets] == [300, 100, 0]
    assert (assets[0]["recentSearches"], assets[0]["previousSearches"]) == (3, 1)
    assert assets[2]["totalSearches"] == 5


async def test_cached_page_is_reused_until_ttl(db, clock):
    cache = ResultCache(300, clock=clock)
    ranker = TrendingRanker(TrendingRepository(db), cache=cache, clock=clock)
    await ranker.log_search(TOKEN_A, "TOKEN")

    first = await ranker.get_trending("ALL", 20)
    await ranker.log_search(TOKEN_B, "TOKEN")
    clock.advance(seconds=60)
    second = await ranker.get_trending("ALL", 20)

    assert first.value.cached is False
    assert second.value.cached is True
    assert second.value.assets == first.value.assets
    assert second.value.computed_at == NOW
    assert second.value.stale_at == NOW + timedelta(seconds=300)

    clock.advance(seconds=300)
    third = await ranker.get_trending("ALL", 20)
    assert third.value.cached is False
    assert len(third.value.assets) == 2


async def test_store_failure_is_soft_and_not_cached(clock):
    cache = ResultCache(300, clock=clock)
    ranker = TrendingRanker(_UnreachableRepository(), cache=cache, clock=clock)

    result = await ranker.get_trending("ALL", 20)

    assert isinstance(result, SoftFailure)
    assert isinstance(result.error, ConnectionRefusedError)
    assert len(cache) == 0


async def test_invalid_type_raises(clock):
    ranker = TrendingRanker(_UnreachableRepository(), clock=clock)

    with pytest.raises(ValidationError):
        await ranker.get_trending("COIN")
