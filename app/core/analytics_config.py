"""Analytics configuration for Token Insights.

Centralizes time windows, thresholds and score deltas used by the trending,
popularity and recommendation services.  All values are loaded from environment
variables with sensible defaults so the system works out-of-the-box.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


# ---------------------------------------------------------------------------
# Event retention
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RetentionConfig:
    """How long raw search/click events are kept before purging."""

    event_retention_days: int = field(
        default_factory=lambda: _env_int("EVENT_RETENTION_DAYS", 90),
    )


# ---------------------------------------------------------------------------
# Popularity scoring
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PopularityWeights:
    """Score deltas applied to learned tokens per interaction kind."""

    search: int = field(default_factory=lambda: _env_int("POPULARITY_DELTA_SEARCH", 0))
    click: int = field(default_factory=lambda: _env_int("POPULARITY_DELTA_CLICK", 3))
    select: int = field(default_factory=lambda: _env_int("POPULARITY_DELTA_SELECT", 5))
    # Bump applied when a learned token is re-reported by a scan
    rescan: int = field(default_factory=lambda: _env_int("POPULARITY_DELTA_RESCAN", 5))
    ceiling: int = field(default_factory=lambda: _env_int("POPULARITY_SCORE_CEILING", 100))

    def delta_for(self, kind: str) -> int:
        return int(getattr(self, kind, 0))


# ---------------------------------------------------------------------------
# Trending
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TrendingTuning:
    """Velocity windows for the raw-event trending path."""

    recent_window_hours: int = field(
        default_factory=lambda: _env_int("TRENDING_RECENT_WINDOW_HOURS", 24),
    )
    previous_window_hours: int = field(
        default_factory=lambda: _env_int("TRENDING_PREVIOUS_WINDOW_HOURS", 48),
    )
    horizon_days: int = field(
        default_factory=lambda: _env_int("TRENDING_HORIZON_DAYS", 7),
    )
    default_limit: int = field(default_factory=lambda: _env_int("TRENDING_DEFAULT_LIMIT", 20))
    max_limit: int = 100


# ---------------------------------------------------------------------------
# Peer recommendations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RecommendationTuning:
    """Tuning for similarity-based peer recommendations."""

    similarity_threshold: float = field(
        default_factory=lambda: _env_float("PEER_SIMILARITY_THRESHOLD", 0.3),
    )
    window_days: int = field(default_factory=lambda: _env_int("PEER_WINDOW_DAYS", 30))
    max_candidate_queries: int = field(
        default_factory=lambda: _env_int("PEER_MAX_CANDIDATE_QUERIES", 100),
    )
    # Upper bound on distinct queries scored in-process when the store cannot
    # pre-filter by similarity (non-PostgreSQL dialects).
    query_scan_cap: int = field(default_factory=lambda: _env_int("PEER_QUERY_SCAN_CAP", 5000))
    popular_frequency_threshold: int = field(
        default_factory=lambda: _env_int("PEER_POPULAR_FREQUENCY_THRESHOLD", 10),
    )
    use_store_similarity: bool = field(
        default_factory=lambda: _env_bool("PEER_USE_STORE_SIMILARITY", default=True),
    )


retention_config = RetentionConfig()
popularity_weights = PopularityWeights()
trending_tuning = TrendingTuning()
recommendation_tuning = RecommendationTuning()
