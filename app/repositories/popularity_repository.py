"""Storage for the two token popularity counter spaces.

- ``learned_tokens.popularity_score``: clamped score driven by interactions.
- ``token_popularity``: raw search/click counters driven by result impressions.

Every mutation here is a single statement so concurrent writers can never lose
an update.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import case, func, insert, literal, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import as_utc
from app.core.errors import ConflictSkip
from app.db.upsert import upsert_insert
from app.models.learned_token import LearnedToken
from app.models.token_interaction import TokenInteraction
from app.models.token_popularity import TokenPopularity

FOREIGN_KEY_VIOLATION = "23503"


@dataclass
class TokenPopularityStats:
    token_address: str
    search_count: int
    click_count: int
    ctr: float
    last_searched_at: datetime | None
    last_clicked_at: datetime | None


def clamped_increment(column, delta: int, ceiling: int):
    raised = column + literal(delta)
    return case((raised > ceiling, literal(ceiling)), else_=raised)


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == FOREIGN_KEY_VIOLATION:
        return True
    return "foreign key" in str(orig).lower()


class PopularityRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -- learned token score -------------------------------------------------

    async def ensure_learned_token(self, *, address: str, symbol: str, name: str) -> bool:
        """Insert a placeholder learned token; returns False when it already existed."""
        stmt = (
            upsert_insert(self.db, LearnedToken)
            .values(address=address, symbol=symbol, name=name, type="TOKEN", popularity_score=0)
            .on_conflict_do_nothing(index_elements=[LearnedToken.address])
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return bool(result.rowcount)

    async def insert_interaction(
        self,
        *,
        token_address: str,
        interaction_type: str,
        session_id: Optional[str],
        query_text: Optional[str],
        result_position: Optional[int],
        created_at: datetime,
    ) -> None:
        try:
            await self.db.execute(
                insert(TokenInteraction).values(
                    token_address=token_address,
                    interaction_type=interaction_type,
                    session_id=session_id,
                    query_text=query_text,
                    result_position=result_position,
                    created_at=created_at,
                )
            )
            await self.db.commit()
        except IntegrityError as exc:
            if not is_foreign_key_violation(exc):
                raise
            await self.db.rollback()
            raise ConflictSkip(f"token {token_address} is not a learned token") from exc

    async def increment_score(self, *, address: str, delta: int, ceiling: int) -> None:
        stmt = (
            update(LearnedToken)
            .where(LearnedToken.address == address)
            .values(popularity_score=clamped_increment(LearnedToken.popularity_score, delta, ceiling))
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def get_score(self, address: str) -> int | None:
        stmt = select(LearnedToken.popularity_score).where(LearnedToken.address == address)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    # -- token_popularity counters ------------------------------------------

    async def upsert_popularity(
        self,
        *,
        token_address: str,
        appeared_in_results: bool,
        was_clicked: bool,
        event_at: datetime,
        now: datetime,
    ) -> None:
        stmt = upsert_insert(self.db, TokenPopularity).values(
            token_address=token_address,
            search_count=1 if appeared_in_results else 0,
            click_count=1 if was_clicked else 0,
            last_searched_at=event_at if appeared_in_results else None,
            last_clicked_at=event_at if was_clicked else None,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[TokenPopularity.token_address],
            set_={
                "search_count": TokenPopularity.search_count + stmt.excluded.search_count,
                "click_count": TokenPopularity.click_count + stmt.excluded.click_count,
                "last_searched_at": func.coalesce(stmt.excluded.last_searched_at, TokenPopularity.last_searched_at),
                "last_clicked_at": func.coalesce(stmt.excluded.last_clicked_at, TokenPopularity.last_clicked_at),
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def get_popularity(self, addresses: Sequence[str]) -> list[TokenPopularityStats]:
        if not addresses:
            return []

        stmt = select(TokenPopularity).where(TokenPopularity.token_address.in_(list(addresses)))
        rows = (await self.db.execute(stmt)).scalars().all()
        return [
            TokenPopularityStats(
                token_address=r.token_address,
                search_count=int(r.search_count or 0),
                click_count=int(r.click_count or 0),
                ctr=r.ctr,
                last_searched_at=as_utc(r.last_searched_at) if r.last_searched_at else None,
                last_clicked_at=as_utc(r.last_clicked_at) if r.last_clicked_at else None,
            )
            for r in rows
        ]

    # -- aggregate counters --------------------------------------------------

    async def count_interactions(self, interaction_type: str) -> int:
        stmt = (
            select(func.count())
            .select_from(TokenInteraction)
            .where(TokenInteraction.interaction_type == interaction_type)
        )
        return int((await self.db.execute(stmt)).scalar_one())
