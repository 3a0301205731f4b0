from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from app.core.analytics_config import PopularityWeights, popularity_weights
from app.core.clock import Clock, SystemClock
from app.core.errors import StorageError, ValidationError
from app.core.validators import ADDRESS_RE, validate_asset_type
from app.models.learned_token import LearnedToken
from app.repositories.learned_token_repository import LearnedTokenRepository
from app.schemas.learned_tokens import LearnedTokenIn

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "wallet_scan"


@dataclass
class UpsertSummary:
    added: int
    updated: int
    skipped: int = 0


class LearnedTokenService:
    def __init__(
        self,
        repository: LearnedTokenRepository,
        *,
        clock: Optional[Clock] = None,
        weights: Optional[PopularityWeights] = None,
    ) -> None:
        self.repository = repository
        self.clock = clock or SystemClock()
        self.weights = weights or popularity_weights

    async def upsert_tokens(self, tokens: Sequence[LearnedTokenIn]) -> UpsertSummary:
        if not tokens:
            raise ValidationError("No tokens provided")

        summary = UpsertSummary(added=0, updated=0)
        for token in tokens:
            if not token.address or not token.type or not ADDRESS_RE.fullmatch(token.address):
                logger.warning("Skipping invalid learned token: %r", token.address)
                summary.skipped += 1
                continue

            try:
                created = await self.repository.upsert_token(
                    address=token.address.lower(),
                    type="NFT" if token.type.upper() == "NFT" else "TOKEN",
                    name=token.name,
                    symbol=token.symbol,
                    decimals=token.decimals,
                    source=token.source or DEFAULT_SOURCE,
                    now=self.clock.now(),
                    score_bump=self.weights.rescan,
                    ceiling=self.weights.ceiling,
                )
            except SQLAlchemyError as exc:
                await self.repository.db.rollback()
                logger.exception("Failed to upsert learned token %s", token.address)
                raise StorageError("failed to add tokens") from exc

            if created:
                summary.added += 1
            else:
                summary.updated += 1

        return summary

    async def list_tokens(self, *, type: str = "ALL", limit: int = 20, min_popularity: float = 0.0) -> list[LearnedToken]:
        asset_type = validate_asset_type(type, allow_all=True)
        try:
            return await self.repository.list_tokens(
                type=None if asset_type == "ALL" else asset_type,
                min_popularity=min_popularity,
                limit=max(1, min(limit, 100)),
            )
        except SQLAlchemyError as exc:
            logger.exception("Failed to fetch learned tokens")
            raise StorageError("failed to fetch learned tokens") from exc
