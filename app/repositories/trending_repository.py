from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import Float, case, cast, func, insert, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.upsert import upsert_insert
from app.models.trending_search import TrendingSearch, TrendingSearchLog


@dataclass
class TrendingRow:
    address: str
    asset_type: str
    symbol: str | None
    name: str | None
    total_searches: int
    recent_searches: int
    previous_searches: int
    velocity_score: float


class TrendingRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def log_search(
        self,
        *,
        address: str,
        asset_type: str,
        symbol: Optional[str],
        name: Optional[str],
        now: datetime,
    ) -> None:
        stmt = upsert_insert(self.db, TrendingSearch).values(
            address=address,
            asset_type=asset_type,
            symbol=symbol,
            name=name,
            search_count=1,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[TrendingSearch.address],
            set_={
                "search_count": TrendingSearch.search_count + 1,
                "updated_at": stmt.excluded.updated_at,
                "symbol": func.coalesce(stmt.excluded.symbol, TrendingSearch.symbol),
                "name": func.coalesce(stmt.excluded.name, TrendingSearch.name),
            },
        )
        await self.db.execute(stmt)
        await self.db.execute(
            insert(TrendingSearchLog).values(
                address=address,
                asset_type=asset_type,
                symbol=symbol,
                name=name,
                occurred_at=now,
            )
        )
        await self.db.commit()

    async def get_entry(self, address: str) -> TrendingSearch | None:
        stmt = select(TrendingSearch).where(TrendingSearch.address == address)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def top_by_count(self, *, asset_type: Optional[str], limit: int) -> list[TrendingRow]:
        stmt = select(
            TrendingSearch.address,
            TrendingSearch.asset_type,
            TrendingSearch.symbol,
            TrendingSearch.name,
            TrendingSearch.search_count,
        )
        if asset_type is not None:
            stmt = stmt.where(TrendingSearch.asset_type == asset_type)
        stmt = stmt.order_by(
            TrendingSearch.search_count.desc(),
            TrendingSearch.updated_at.desc(),
        ).limit(limit)

        rows = (await self.db.execute(stmt)).all()
        return [
            TrendingRow(
                address=r.address,
                asset_type=r.asset_type,
                symbol=r.symbol,
                name=r.name,
                total_searches=int(r.search_count),
                recent_searches=int(r.search_count),
                previous_searches=0,
                velocity_score=float(r.search_count),
            )
            for r in rows
        ]

    async def top_by_velocity(
        self,
        *,
        asset_type: Optional[str],
        limit: int,
        now: datetime,
        recent_window: timedelta,
        previous_window: timedelta,
        horizon: timedelta,
    ) -> list[TrendingRow]:
        recent_start = now - recent_window
        previous_start = now - previous_window
        occurred_at = TrendingSearchLog.occurred_at

        recent = func.count(case((occurred_at > recent_start, literal(1))))
        previous = func.count(
            case(((occurred_at <= recent_start) & (occurred_at > previous_start), literal(1)))
        )
        velocity = case(
            (previous == 0, literal(0.0)),
            else_=cast(recent, Float) / previous * 100,
        )
        total = func.count()

        stmt = (
            select(
                TrendingSearchLog.address.label("address"),
                TrendingSearchLog.asset_type.label("asset_type"),
                func.max(TrendingSearchLog.symbol).label("symbol"),
                func.max(TrendingSearchLog.name).label("name"),
                total.label("total_searches"),
                recent.label("recent_searches"),
                previous.label("previous_searches"),
                velocity.label("velocity_score"),
            )
            .where(occurred_at > now - horizon)
            .group_by(TrendingSearchLog.address, TrendingSearchLog.asset_type)
        )
        if asset_type is not None:
            stmt = stmt.where(TrendingSearchLog.asset_type == asset_type)
        stmt = stmt.order_by(velocity.desc(), total.desc(), TrendingSearchLog.address.asc()).limit(limit)

        rows = (await self.db.execute(stmt)).all()
        return [
            TrendingRow(
                address=r.address,
                asset_type=r.asset_type,
                symbol=r.symbol,
                name=r.name,
                total_searches=int(r.total_searches),
                recent_searches=int(r.recent_searches),
                previous_searches=int(r.previous_searches),
                velocity_score=float(r.velocity_score or 0.0),
            )
            for r in rows
        ]
