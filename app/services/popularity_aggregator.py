"""Token popularity aggregation.

Two counter spaces are maintained side by side and are never merged:

1. The learned-token popularity score, bumped by user interactions
   (click +3, select +5, search +0) and clamped at the ceiling.
2. The ``token_popularity`` search/click counters, bumped when a token appears
   in results or is clicked.

Both are updated with single-statement upserts / conditional updates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from app.core.analytics_config import PopularityWeights, popularity_weights
from app.core.clock import Clock, SystemClock, from_epoch_ms, to_epoch_ms
from app.core.errors import ConflictSkip, StorageError, ValidationError
from app.core.validators import validate_address, validate_addresses
from app.models.token_interaction import INTERACTION_KINDS
from app.repositories.popularity_repository import PopularityRepository, TokenPopularityStats

logger = logging.getLogger(__name__)

PLACEHOLDER_SYMBOL = "UNKNOWN"
PLACEHOLDER_NAME = "Unknown Token"
MAX_POPULARITY_ADDRESSES = 100


@dataclass
class InteractionResult:
    logged: bool


class PopularityAggregator:
    def __init__(
        self,
        repository: PopularityRepository,
        *,
        clock: Optional[Clock] = None,
        weights: Optional[PopularityWeights] = None,
    ) -> None:
        self.repository = repository
        self.clock = clock or SystemClock()
        self.weights = weights or popularity_weights

    async def apply_interaction(
        self,
        token_address: str,
        kind: str,
        *,
        session_id: Optional[str] = None,
        query_text: Optional[str] = None,
        result_position: Optional[int] = None,
    ) -> InteractionResult:
        address = validate_address(token_address)
        if kind not in INTERACTION_KINDS:
            raise ValidationError("Invalid interaction type")

        await self._ensure_token(address, query_text)

        try:
            await self.repository.insert_interaction(
                token_address=address,
                interaction_type=kind,
                session_id=session_id,
                query_text=query_text,
                result_position=result_position,
                created_at=self.clock.now(),
            )
        except ConflictSkip:
            logger.info("Token %s not in learned_tokens, skipping interaction logging", address)
            return InteractionResult(logged=False)
        except SQLAlchemyError as exc:
            await self.repository.db.rollback()
            logger.exception("Failed to insert token_interactions row")
            raise StorageError("failed to log interaction") from exc

        delta = self.weights.delta_for(kind)
        if delta > 0:
            try:
                await self.repository.increment_score(address=address, delta=delta, ceiling=self.weights.ceiling)
            except SQLAlchemyError as exc:
                await self.repository.db.rollback()
                logger.exception("Failed to update popularity_score for %s", address)
                raise StorageError("failed to update popularity score") from exc

        return InteractionResult(logged=True)

    async def _ensure_token(self, address: str, query_text: Optional[str]) -> None:
        symbol = (query_text or "")[:50] or PLACEHOLDER_SYMBOL
        name = (query_text or "")[:255] or PLACEHOLDER_NAME
        try:
            created = await self.repository.ensure_learned_token(address=address, symbol=symbol, name=name)
        except SQLAlchemyError:
            # The interaction insert below reports whether the parent row exists.
            await self.repository.db.rollback()
            logger.warning("Could not ensure learned token %s", address, exc_info=True)
            return
        if created:
            logger.debug("Created placeholder learned token %s", address)

    async def update_popularity(
        self,
        token_address: str,
        *,
        appeared_in_results: bool,
        was_clicked: bool,
        timestamp: Optional[int] = None,
    ) -> None:
        address = validate_address(token_address)
        now = self.clock.now()
        event_at = from_epoch_ms(timestamp, default=now)
        try:
            await self.repository.upsert_popularity(
                token_address=address,
                appeared_in_results=appeared_in_results,
                was_clicked=was_clicked,
                event_at=event_at,
                now=now,
            )
        except SQLAlchemyError as exc:
            await self.repository.db.rollback()
            logger.exception("Failed to upsert token_popularity for %s", address)
            raise StorageError("failed to update popularity") from exc

        logger.debug(
            "Popularity updated address=%s appeared=%s clicked=%s",
            address,
            appeared_in_results,
            was_clicked,
        )

    async def get_popularity(self, addresses: Sequence[str]) -> dict[str, dict]:
        if not addresses:
            raise ValidationError("Missing addresses")
        if len(addresses) > MAX_POPULARITY_ADDRESSES:
            raise ValidationError(f"Too many addresses (max {MAX_POPULARITY_ADDRESSES})")
        normalized = validate_addresses(addresses, max_items=MAX_POPULARITY_ADDRESSES)

        try:
            rows = await self.repository.get_popularity(normalized)
        except SQLAlchemyError as exc:
            logger.exception("Failed to read token_popularity")
            raise StorageError("failed to read popularity") from exc

        return {row.token_address.lower(): self._as_payload(row) for row in rows}

    @staticmethod
    def _as_payload(row: TokenPopularityStats) -> dict:
        return {
            "tokenAddress": row.token_address,
            "searchCount": row.search_count,
            "clickCount": row.click_count,
            "ctr": row.ctr,
            "lastSearched": to_epoch_ms(row.last_searched_at),
            "lastClicked": to_epoch_ms(row.last_clicked_at),
        }
