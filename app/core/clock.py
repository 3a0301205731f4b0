from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from app.core.errors import ValidationError


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock returning timezone-aware UTC datetimes."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def from_epoch_ms(value: int | float | None, *, default: datetime) -> datetime:
    if value is None:
        return default
    try:
        return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValidationError("Invalid timestamp (epoch milliseconds)") from exc


def to_epoch_ms(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(as_utc(value).timestamp() * 1000)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
