"""Explicit result type for soft-failure read paths.

Derived, non-critical features (trending, stats) return ``Ok`` or
``SoftFailure`` instead of raising; the HTTP layer turns a ``SoftFailure`` into a
default payload with ``unwrap_or``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class SoftFailure:
    reason: str
    error: BaseException | None = None


SoftResult = Union[Ok[T], SoftFailure]


def unwrap_or(result: SoftResult[T], default: T) -> T:
    if isinstance(result, Ok):
        return result.value
    return default
