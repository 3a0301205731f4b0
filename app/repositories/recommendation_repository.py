from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.upsert import dialect_name
from app.models.click_event import ClickEvent
from app.models.search_event import SearchEvent


@dataclass
class ClickFrequency:
    address: str
    frequency: int
    last_clicked_at: datetime


class RecommendationRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @property
    def is_postgres(self) -> bool:
        return dialect_name(self.db) == "postgresql"

    async def recent_queries(
        self,
        query: str,
        *,
        since: datetime,
        limit: int,
        use_store_similarity: bool = True,
    ) -> list[str]:
        """Distinct queries searched since ``since``.

        On PostgreSQL the trigram ``%`` operator pre-filters candidates through
        the GIN index; elsewhere the most recently searched queries are returned
        and similarity is left entirely to the caller.
        """
        stmt = select(SearchEvent.query).where(SearchEvent.occurred_at > since)
        if self.is_postgres and use_store_similarity:
            stmt = stmt.where(SearchEvent.query.op("%")(query))
            stmt = stmt.group_by(SearchEvent.query).order_by(
                func.similarity(SearchEvent.query, query).desc()
            )
        else:
            stmt = stmt.group_by(SearchEvent.query).order_by(func.max(SearchEvent.occurred_at).desc())
        stmt = stmt.limit(limit)

        return [r[0] for r in (await self.db.execute(stmt)).all()]

    async def click_frequencies(
        self,
        queries: Sequence[str],
        *,
        since: datetime,
        limit: int,
    ) -> list[ClickFrequency]:
        if not queries:
            return []

        frequency = func.count().label("frequency")
        stmt = (
            select(
                ClickEvent.clicked_address.label("address"),
                frequency,
                func.max(ClickEvent.occurred_at).label("last_clicked_at"),
            )
            .where(
                ClickEvent.query.in_(list(queries)),
                ClickEvent.occurred_at > since,
            )
            .group_by(ClickEvent.clicked_address)
            .order_by(frequency.desc(), ClickEvent.clicked_address.asc())
            .limit(limit)
        )

        rows = (await self.db.execute(stmt)).all()
        return [
            ClickFrequency(
                address=r.address,
                frequency=int(r.frequency),
                last_clicked_at=r.last_clicked_at,
            )
            for r in rows
        ]
