from datetime import timedelta

import pytest
from sqlalchemy import func, select

from conftest import NOW, SESSION_ID, TOKEN_A, TOKEN_B

from app.core.clock import to_epoch_ms
from app.core.errors import ValidationError
from app.models.click_event import ClickEvent
from app.models.search_event import SearchEvent
from app.repositories.event_repository import EventRepository
from app.services.event_recorder import EventRecorder


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def test_record_search_normalizes_and_stores(db, clock):
    recorder = EventRecorder(EventRepository(db), clock=clock)

    result = await recorder.record_search(
        SESSION_ID.upper(),
        "pepe",
        [TOKEN_A.upper().replace("0X", "0x")],
        1,
        to_epoch_ms(NOW),
    )

    assert result.accepted is True
    row = (await db.execute(select(SearchEvent))).scalar_one()
    assert row.session_id == SESSION_ID
    assert row.results == [TOKEN_A]
    assert row.result_count == 1


async def test_record_search_without_timestamp_uses_clock(db, clock):
    recorder = EventRecorder(EventRepository(db), clock=clock)
    await recorder.record_search(SESSION_ID, "pepe", [], 0)

    row = (await db.execute(select(SearchEvent))).scalar_one()
    assert row.occurred_at.replace(tzinfo=None) == NOW.replace(tzinfo=None)


@pytest.mark.parametrize(
    "session_id, query, results, message",
    [
        ("short", "pepe", [], "sessionId"),
        (SESSION_ID, "a", [], "query length"),
        (SESSION_ID, "x" * 501, [], "query length"),
        (SESSION_ID, "pepe", ["0xZZZZ"], "Invalid address"),
        (SESSION_ID, "pepe", [TOKEN_A] * 101, "Too many addresses"),
    ],
)
async def test_record_search_rejects_invalid_input(db, clock, session_id, query, results, message):
    recorder = EventRecorder(EventRepository(db), clock=clock)

    with pytest.raises(ValidationError, match=message):
        await recorder.record_search(session_id, query, results, len(results))


async def test_record_search_rejects_unrepresentable_timestamp(db, clock):
    recorder = EventRecorder(EventRepository(db), clock=clock)

    with pytest.raises(ValidationError, match="Invalid timestamp"):
        await recorder.record_search(SESSION_ID, "pepe", [], 0, 10**20)

    assert await _count(db, SearchEvent) == 0

    assert await _count(db, SearchEvent) == 0


async def test_click_reports_matching_search(db, clock):
    recorder = EventRecorder(EventRepository(db), clock=clock)
    await recorder.record_search(SESSION_ID, "pepe", [TOKEN_A, TOKEN_B], 2)

    matched = await recorder.record_click(SESSION_ID, "pepe", TOKEN_B, 1, result_score=0.8, time_to_click_ms=1200)
    unmatched = await recorder.record_click(SESSION_ID, "shib", TOKEN_A, 0)

    assert matched.accepted is True and matched.matched_search is True
    assert unmatched.accepted is True and unmatched.matched_search is False
    assert await _count(db, ClickEvent) == 2


@pytest.mark.parametrize("rank", [-1, 100, 150])
async def test_click_rank_out_of_range(db, clock, rank):
    recorder = EventRecorder(EventRepository(db), clock=clock)

    with pytest.raises(ValidationError, match="resultRank"):
        await recorder.record_click(SESSION_ID, "pepe", TOKEN_A, rank)


async def test_purge_expired_removes_only_old_events(db, clock):
    recorder = EventRecorder(EventRepository(db), clock=clock)
    old = to_epoch_ms(NOW - timedelta(days=120))
    await recorder.record_search(SESSION_ID, "pepe", [], 0, old)
    await recorder.record_click(SESSION_ID, "pepe", TOKEN_A, 0, timestamp=old)
    await recorder.record_search(SESSION_ID, "pepe", [], 0)

    preview = await recorder.purge_expired(days=90, dry_run=True)
    assert (preview.search_events, preview.click_events) == (1, 1)
    assert await _count(db, SearchEvent) == 2

    purged = await recorder.purge_expired(days=90)
    assert (purged.search_events, purged.click_events) == (1, 1)
    assert purged.cutoff == NOW - timedelta(days=90)
    assert await _count(db, SearchEvent) == 1
    assert await _count(db, ClickEvent) == 0
