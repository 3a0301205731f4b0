"""Per-instance collaborators stored on ``app.state`` by ``create_app``."""

from __future__ import annotations

from fastapi import Request

from app.core.clock import Clock
from app.services.result_cache import ResultCache


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_trending_cache(request: Request) -> ResultCache:
    return request.app.state.trending_cache


def get_stats_cache(request: Request) -> ResultCache:
    return request.app.state.stats_cache


def get_learned_tokens_cache(request: Request) -> ResultCache:
    return request.app.state.learned_tokens_cache
