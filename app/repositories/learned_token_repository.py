from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import Integer, String, func, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.upsert import upsert_insert
from app.models.learned_token import LearnedToken
from app.repositories.popularity_repository import clamped_increment


@dataclass
class TokenLabel:
    address: str
    type: str
    name: str | None
    symbol: str | None


class LearnedTokenRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def upsert_token(
        self,
        *,
        address: str,
        type: str,
        name: Optional[str],
        symbol: Optional[str],
        decimals: Optional[int],
        source: str,
        now: datetime,
        score_bump: int,
        ceiling: int,
    ) -> bool:
        """Insert or refresh one learned token; returns True when a new row was created."""
        stmt = upsert_insert(self.db, LearnedToken).values(
            address=address,
            type=type,
            name=name,
            symbol=symbol,
            decimals=decimals if decimals is not None else 18,
            source=source,
            popularity_score=0,
            scan_frequency=1,
            discovery_timestamp=now,
            last_seen_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[LearnedToken.address],
            set_={
                "name": func.coalesce(literal(name, String), LearnedToken.name),
                "symbol": func.coalesce(literal(symbol, String), LearnedToken.symbol),
                "decimals": func.coalesce(literal(decimals, Integer), LearnedToken.decimals),
                "scan_frequency": LearnedToken.scan_frequency + 1,
                "last_seen_at": stmt.excluded.last_seen_at,
                "popularity_score": clamped_increment(LearnedToken.popularity_score, score_bump, ceiling),
            },
        ).returning(LearnedToken.scan_frequency)

        scan_frequency = (await self.db.execute(stmt)).scalar_one()
        await self.db.commit()
        return int(scan_frequency) == 1

    async def list_tokens(
        self,
        *,
        type: Optional[str],
        min_popularity: float,
        limit: int,
    ) -> list[LearnedToken]:
        stmt = select(LearnedToken)
        if type is not None:
            stmt = stmt.where(LearnedToken.type == type)
        if min_popularity > 0:
            stmt = stmt.where(LearnedToken.popularity_score >= min_popularity)
        stmt = stmt.order_by(LearnedToken.popularity_score.desc(), LearnedToken.address.asc()).limit(limit)
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_labels(self, addresses: Sequence[str]) -> dict[str, TokenLabel]:
        if not addresses:
            return {}

        stmt = select(
            LearnedToken.address,
            LearnedToken.type,
            LearnedToken.name,
            LearnedToken.symbol,
        ).where(LearnedToken.address.in_(list(addresses)))
        rows = (await self.db.execute(stmt)).all()
        return {
            r.address: TokenLabel(address=r.address, type=r.type, name=r.name, symbol=r.symbol)
            for r in rows
        }
