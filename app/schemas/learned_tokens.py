from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LearnedTokenIn(BaseModel):
    """A token reported by a wallet scan.

    Address and type are checked by the service so that one malformed entry in a
    batch is skipped instead of rejecting the whole request.
    """

    model_config = ConfigDict(extra="ignore")

    address: str | None = None
    type: str | None = None
    name: str | None = None
    symbol: str | None = None
    decimals: int | None = Field(default=None, ge=0, le=255)
    source: str | None = None

    @field_validator("name", mode="after")
    @classmethod
    def _truncate_name(cls, value: str | None) -> str | None:
        return value[:255] if value else None

    @field_validator("symbol", "source", mode="after")
    @classmethod
    def _truncate_short(cls, value: str | None) -> str | None:
        return value[:50] if value else None


class LearnedTokenOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    address: str
    name: str | None
    symbol: str | None
    decimals: int
    type: str
    popularity_score: int
    scan_frequency: int
    holder_count: int | None
    discovery_timestamp: datetime
    last_seen_at: datetime


class LearnedTokensUpsertResponse(BaseModel):
    success: bool
    added: int
    updated: int
