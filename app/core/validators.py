"""Input validation rules shared by request schemas and services.

Every function raises :class:`app.core.errors.ValidationError` (a ``ValueError``)
so it can be used directly inside pydantic ``field_validator`` hooks.
"""

from __future__ import annotations

import re
from typing import Iterable

from app.core.errors import ValidationError

SESSION_ID_RE = re.compile(r"^[a-f0-9]{64}$", re.IGNORECASE)
ADDRESS_RE = re.compile(r"^0x[a-f0-9]{40}$", re.IGNORECASE)

QUERY_MIN_LENGTH = 2
QUERY_MAX_LENGTH = 500
MAX_RESULT_ADDRESSES = 100
MAX_RESULT_RANK = 99
# 9999-12-31T23:59:59.999Z, the last instant datetime can represent.
MAX_TIMESTAMP_MS = 253_402_300_799_999

ASSET_TYPES = ("TOKEN", "NFT")


def validate_session_id(value: str) -> str:
    if not isinstance(value, str) or not SESSION_ID_RE.fullmatch(value):
        raise ValidationError("Invalid sessionId format")
    return value.lower()


def validate_query(value: str) -> str:
    if not isinstance(value, str) or not QUERY_MIN_LENGTH <= len(value) <= QUERY_MAX_LENGTH:
        raise ValidationError(f"Invalid query length ({QUERY_MIN_LENGTH}-{QUERY_MAX_LENGTH} characters)")
    return value


def validate_address(value: str) -> str:
    if not isinstance(value, str) or not ADDRESS_RE.fullmatch(value):
        raise ValidationError(f"Invalid address: {value}")
    return value.lower()


def validate_addresses(values: Iterable[str], *, max_items: int = MAX_RESULT_ADDRESSES) -> list[str]:
    items = list(values)
    if len(items) > max_items:
        raise ValidationError(f"Too many addresses (max {max_items})")
    return [validate_address(v) for v in items]


def validate_result_rank(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_RESULT_RANK:
        raise ValidationError(f"Invalid resultRank (must be 0-{MAX_RESULT_RANK})")
    return value


def validate_timestamp_ms(value: int | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_TIMESTAMP_MS:
        raise ValidationError("Invalid timestamp (epoch milliseconds)")
    return value


def validate_asset_type(value: str, *, allow_all: bool = False) -> str:
    normalized = (value or "").strip().upper()
    allowed = ASSET_TYPES + (("ALL",) if allow_all else ())
    if normalized not in allowed:
        raise ValidationError(f"Invalid type (must be {', '.join(allowed)})")
    return normalized
