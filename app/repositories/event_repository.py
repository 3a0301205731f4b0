from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.click_event import ClickEvent
from app.models.search_event import SearchEvent


class EventRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def insert_search_event(
        self,
        *,
        session_id: str,
        query: str,
        results: Sequence[str],
        result_count: int,
        occurred_at: datetime,
    ) -> SearchEvent:
        row = SearchEvent(
            session_id=session_id,
            query=query,
            results=list(results),
            result_count=result_count,
            occurred_at=occurred_at,
        )
        self.db.add(row)
        await self.db.commit()
        return row

    async def insert_click_event(
        self,
        *,
        session_id: str,
        query: str,
        clicked_address: str,
        result_rank: int,
        result_score: Optional[float],
        time_to_click_ms: Optional[int],
        occurred_at: datetime,
    ) -> ClickEvent:
        row = ClickEvent(
            session_id=session_id,
            query=query,
            clicked_address=clicked_address,
            result_rank=result_rank,
            result_score=result_score,
            time_to_click_ms=time_to_click_ms,
            occurred_at=occurred_at,
        )
        self.db.add(row)
        await self.db.commit()
        return row

    async def search_for_click(self, *, session_id: str, query: str) -> SearchEvent | None:
        """Most recent search sharing the click's ``(session_id, query)``, if any."""
        stmt = (
            select(SearchEvent)
            .where(SearchEvent.session_id == session_id, SearchEvent.query == query)
            .order_by(SearchEvent.occurred_at.desc())
            .limit(1)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def purge_before(self, cutoff: datetime) -> tuple[int, int]:
        searches = await self.db.execute(delete(SearchEvent).where(SearchEvent.occurred_at < cutoff))
        clicks = await self.db.execute(delete(ClickEvent).where(ClickEvent.occurred_at < cutoff))
        await self.db.commit()
        return int(searches.rowcount or 0), int(clicks.rowcount or 0)

    async def count_before(self, cutoff: datetime) -> tuple[int, int]:
        searches = await self.db.execute(
            select(func.count()).select_from(SearchEvent).where(SearchEvent.occurred_at < cutoff)
        )
        clicks = await self.db.execute(
            select(func.count()).select_from(ClickEvent).where(ClickEvent.occurred_at < cutoff)
        )
        return int(searches.scalar_one()), int(clicks.scalar_one())

    async def count_click_events(self) -> int:
        return int((await self.db.execute(select(func.count()).select_from(ClickEvent))).scalar_one())
