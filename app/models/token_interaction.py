from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

INTERACTION_KINDS = ("search", "click", "select")


class TokenInteraction(Base):
    __tablename__ = "token_interactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    token_address: Mapped[str] = mapped_column(
        String(42),
        ForeignKey("learned_tokens.address", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    interaction_type: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    query_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    result_position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "interaction_type IN ('search', 'click', 'select')",
            name="ck_token_interactions_type",
        ),
    )
