"""Learned tokens discovered through scans and user interactions.

Also serves as the address -> type/name/symbol lookup for peer recommendations.
``popularity_score`` is clamped to the configured ceiling by every writer.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class LearnedToken(Base):
    __tablename__ = "learned_tokens"

    address: Mapped[str] = mapped_column(String(42), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    symbol: Mapped[str | None] = mapped_column(String(50), nullable=True)
    decimals: Mapped[int] = mapped_column(Integer, nullable=False, default=18, server_default=text("18"))
    type: Mapped[str] = mapped_column(String(10), nullable=False, default="TOKEN", index=True)
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    popularity_score: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0"), index=True
    )
    scan_frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))
    holder_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    discovery_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    last_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("type IN ('TOKEN', 'NFT')", name="ck_learned_tokens_type"),
    )
