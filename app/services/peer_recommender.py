"""Peer recommendations: "people who searched something like this clicked ...".

Pipeline, computed on every call from the raw event tables:

1. Collect distinct queries searched within the window and keep those whose
   similarity to the input reaches the threshold (at most
   ``max_candidate_queries``).
2. Count clicks per address for those queries within the same window and keep
   the ``limit`` most frequent.
3. Drop addresses known to be of another asset type; unknown addresses are kept
   with placeholder labels.
4. Normalize frequencies into shares of the returned total.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.analytics_config import RecommendationTuning, recommendation_tuning
from app.core.clock import Clock, SystemClock
from app.core.errors import StorageError, ValidationError
from app.core.validators import validate_asset_type, validate_query
from app.repositories.learned_token_repository import LearnedTokenRepository, TokenLabel
from app.repositories.recommendation_repository import ClickFrequency, RecommendationRepository
from app.services.query_similarity import QuerySimilarity, trigram_similarity

logger = logging.getLogger(__name__)

MAX_LIMIT = 20
UNKNOWN_NAME = "Unknown Token"
UNKNOWN_SYMBOL = "UNKNOWN"
REASON_POPULAR = "Popular with users who searched similar queries"
REASON_FREQUENT = "Frequently clicked result"


@dataclass
class PeerRecommendation:
    address: str
    name: str
    symbol: str
    score: float
    reason: str
    frequency: int


class PeerRecommender:
    def __init__(
        self,
        repository: RecommendationRepository,
        labels: LearnedTokenRepository,
        *,
        similarity: Optional[QuerySimilarity] = None,
        clock: Optional[Clock] = None,
        tuning: Optional[RecommendationTuning] = None,
    ) -> None:
        self.repository = repository
        self.labels = labels
        self.similarity = similarity or trigram_similarity
        self.clock = clock or SystemClock()
        self.tuning = tuning or recommendation_tuning

    async def get_peer_recommendations(
        self,
        query: str,
        asset_type: str = "TOKEN",
        limit: int = 5,
    ) -> list[PeerRecommendation]:
        query = validate_query(query)
        asset_type = validate_asset_type(asset_type)
        if not 1 <= limit <= MAX_LIMIT:
            raise ValidationError(f"Invalid limit (1-{MAX_LIMIT})")

        since = self.clock.now() - timedelta(days=self.tuning.window_days)
        try:
            similar = await self._similar_queries(query, since=since)
            if not similar:
                return []

            frequencies = await self.repository.click_frequencies(similar, since=since, limit=limit)
            if not frequencies:
                return []

            labels = await self.labels.get_labels([f.address for f in frequencies])
        except SQLAlchemyError as exc:
            logger.exception("Failed to compute peer recommendations query=%r", query)
            raise StorageError("failed to compute peer recommendations") from exc

        return self._rank(frequencies, labels, asset_type)

    async def _similar_queries(self, query: str, *, since: datetime) -> list[str]:
        use_store = self.tuning.use_store_similarity and self.repository.is_postgres
        scan_limit = self.tuning.max_candidate_queries if use_store else self.tuning.query_scan_cap
        candidates = await self.repository.recent_queries(
            query,
            since=since,
            limit=scan_limit,
            use_store_similarity=use_store,
        )

        scored = [(candidate, self.similarity(candidate, query)) for candidate in candidates]
        matches = [
            candidate
            for candidate, score in sorted(scored, key=lambda item: (-item[1], item[0]))
            if score >= self.tuning.similarity_threshold
        ]
        matches = matches[: self.tuning.max_candidate_queries]
        logger.debug("peer query=%r scanned=%s similar=%s", query, len(candidates), len(matches))
        return matches

    def _rank(
        self, frequencies: list[ClickFrequency], labels: dict[str, TokenLabel], asset_type: str
    ) -> list[PeerRecommendation]:
        kept: list[tuple[ClickFrequency, Optional[TokenLabel]]] = []
        for item in frequencies:
            label = labels.get(item.address)
            if label is not None and label.type != asset_type:
                continue
            kept.append((item, label))

        total = sum(item.frequency for item, _ in kept)
        if total <= 0:
            return []

        return [
            PeerRecommendation(
                address=item.address,
                name=getattr(label, "name", None) or UNKNOWN_NAME,
                symbol=getattr(label, "symbol", None) or UNKNOWN_SYMBOL,
                score=item.frequency / total,
                reason=(
                    REASON_POPULAR
                    if item.frequency > self.tuning.popular_frequency_threshold
                    else REASON_FREQUENT
                ),
                frequency=item.frequency,
            )
            for item, label in kept
        ]
