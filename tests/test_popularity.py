import asyncio

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import AsyncAdaptedQueuePool

from conftest import NOW, TOKEN_A, TOKEN_B

from app.core.clock import to_epoch_ms
from app.core.errors import ValidationError
from app.db.async_session import build_engine, make_sessionmaker
from app.models.learned_token import LearnedToken
from app.models.token_interaction import TokenInteraction
from app.repositories.popularity_repository import PopularityRepository
from app.services.popularity_aggregator import PopularityAggregator


async def test_click_creates_placeholder_token_and_scores(db, clock):
    repository = PopularityRepository(db)
    aggregator = PopularityAggregator(repository, clock=clock)

    result = await aggregator.apply_interaction(TOKEN_A, "click", query_text="pepe")

    assert result.logged is True
    token = (await db.execute(select(LearnedToken))).scalar_one()
    assert token.address == TOKEN_A
    assert token.symbol == "pepe"
    assert token.type == "TOKEN"
    assert await repository.get_score(TOKEN_A) == 3


async def test_placeholder_labels_without_query(db, clock):
    aggregator = PopularityAggregator(PopularityRepository(db), clock=clock)
    await aggregator.apply_interaction(TOKEN_A, "select")

    token = (await db.execute(select(LearnedToken))).scalar_one()
    assert (token.symbol, token.name) == ("UNKNOWN", "Unknown Token")


async def test_search_interaction_is_tracking_only(db, clock):
    repository = PopularityRepository(db)
    aggregator = PopularityAggregator(repository, clock=clock)

    await aggregator.apply_interaction(TOKEN_A, "search")
    await aggregator.apply_interaction(TOKEN_A, "select")

    assert await repository.get_score(TOKEN_A) == 5
    assert await repository.count_interactions("search") == 1
    assert await repository.count_interactions("select") == 1


async def test_score_is_clamped_at_ceiling(db, clock):
    repository = PopularityRepository(db)
    aggregator = PopularityAggregator(repository, clock=clock)

    for _ in range(25):
        await aggregator.apply_interaction(TOKEN_A, "select")

    assert await repository.get_score(TOKEN_A) == 100


async def test_unknown_interaction_kind_rejected(db, clock):
    aggregator = PopularityAggregator(PopularityRepository(db), clock=clock)

    with pytest.raises(ValidationError):
        await aggregator.apply_interaction(TOKEN_A, "hover")


@pytest.mark.parametrize("writers, expected", [(10, 50), (30, 100)])
async def test_concurrent_increments_are_not_lost(database_url, clock, writers, expected):
    engine = build_engine(database_url, poolclass=AsyncAdaptedQueuePool, pool_size=1, max_overflow=0)
    maker = make_sessionmaker(engine)
    try:
        async with maker() as session:
            await PopularityRepository(session).ensure_learned_token(address=TOKEN_A, symbol="PEPE", name="Pepe")

        async def select_once():
            async with maker() as session:
                await PopularityAggregator(PopularityRepository(session), clock=clock).apply_interaction(
                    TOKEN_A, "select"
                )

        await asyncio.gather(*(select_once() for _ in range(writers)))

        async with maker() as session:
            assert await PopularityRepository(session).get_score(TOKEN_A) == expected
    finally:
        await engine.dispose()


async def test_score_increment_is_a_single_conditional_update(engine, db, clock):
    repository = PopularityRepository(db)
    await repository.ensure_learned_token(address=TOKEN_A, symbol="PEPE", name="Pepe")
    statements = []

    def _capture(conn, cursor, statement, parameters, context, executemany):
        statements.append(" ".join(statement.split()).upper())

    event.listen(engine.sync_engine, "before_cursor_execute", _capture)
    try:
        await PopularityAggregator(repository, clock=clock).apply_interaction(TOKEN_A, "select")
    finally:
        event.remove(engine.sync_engine, "before_cursor_execute", _capture)

    updates = [s for s in statements if s.startswith("UPDATE LEARNED_TOKENS")]
    assert len(updates) == 1
    assert "CASE WHEN" in updates[0]
    assert not [s for s in statements if s.startswith("SELECT") and "POPULARITY_SCORE" in s]
    assert await repository.get_score(TOKEN_A) == 5


async def test_missing_parent_token_skips_logging(db, clock, monkeypatch):
    repository = PopularityRepository(db)

    async def _fail(**_kwargs):
        raise SQLAlchemyError("learned_tokens unavailable")

    monkeypatch.setattr(repository, "ensure_learned_token", _fail)
    aggregator = PopularityAggregator(repository, clock=clock)

    result = await aggregator.apply_interaction(TOKEN_A, "click")

    assert result.logged is False
    count = (await db.execute(select(func.count()).select_from(TokenInteraction))).scalar_one()
    assert count == 0
    assert await repository.get_score(TOKEN_A) is None


async def test_popularity_counters_and_ctr(db, clock):
    aggregator = PopularityAggregator(PopularityRepository(db), clock=clock)
    first = to_epoch_ms(NOW)

    await aggregator.update_popularity(TOKEN_A, appeared_in_results=True, was_clicked=False, timestamp=first)
    clock.advance(minutes=5)
    second = to_epoch_ms(clock.now())
    await aggregator.update_popularity(TOKEN_A, appeared_in_results=True, was_clicked=True, timestamp=second)
    clock.advance(minutes=5)
    await aggregator.update_popularity(TOKEN_A, appeared_in_results=False, was_clicked=False)

    stats = await aggregator.get_popularity([TOKEN_A.replace("a", "A"), TOKEN_B])

    assert list(stats) == [TOKEN_A]
    row = stats[TOKEN_A]
    assert row["searchCount"] == 2
    assert row["clickCount"] == 1
    assert row["ctr"] == pytest.approx(0.5)
    assert row["lastSearched"] == second
    assert row["lastClicked"] == second


async def test_popularity_lookup_validation(db, clock):
    aggregator = PopularityAggregator(PopularityRepository(db), clock=clock)

    with pytest.raises(ValidationError, match="Missing addresses"):
        await aggregator.get_popularity([])
    with pytest.raises(ValidationError, match="Too many addresses"):
        await aggregator.get_popularity([TOKEN_A] * 101)
    with pytest.raises(ValidationError, match="Invalid address"):
        await aggregator.get_popularity(["0x123"])


async def test_unrepresentable_timestamp_rejected(db, clock):
    aggregator = PopularityAggregator(PopularityRepository(db), clock=clock)

    with pytest.raises(ValidationError, match="Invalid timestamp"):
        await aggregator.update_popularity(TOKEN_A, appeared_in_results=True, was_clicked=False, timestamp=10**20)

    assert await aggregator.get_popularity([TOKEN_A]) == {}
