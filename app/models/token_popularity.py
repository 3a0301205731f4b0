"""Per-token search/click counters.

These counters are maintained independently from the learned-token popularity
score; ``click_count <= search_count`` is expected but not enforced.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class TokenPopularity(Base):
    __tablename__ = "token_popularity"

    token_address: Mapped[str] = mapped_column(String(42), primary_key=True)
    search_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    click_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    last_searched_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_clicked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def ctr(self) -> float:
        if not self.search_count:
            return 0.0
        return self.click_count / self.search_count
