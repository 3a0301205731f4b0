"""Trending search aggregates.

``trending_searches`` is the materialized per-address counter read by the fast
trending path. ``trending_search_log`` keeps one row per logged search so the
velocity ranking can window activity by time.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class TrendingSearch(Base):
    __tablename__ = "trending_searches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    address: Mapped[str] = mapped_column(String(42), nullable=False, unique=True)
    asset_type: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    symbol: Mapped[str | None] = mapped_column(String(50), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    search_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("asset_type IN ('TOKEN', 'NFT')", name="ck_trending_searches_asset_type"),
        Index("ix_trending_searches_rank", "search_count", "updated_at"),
    )


class TrendingSearchLog(Base):
    __tablename__ = "trending_search_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    asset_type: Mapped[str] = mapped_column(String(10), nullable=False)
    symbol: Mapped[str | None] = mapped_column(String(50), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("asset_type IN ('TOKEN', 'NFT')", name="ck_trending_search_log_asset_type"),
        Index("ix_trending_search_log_type_occurred_at", "asset_type", "occurred_at"),
        Index("ix_trending_search_log_occurred_at", "occurred_at"),
    )
