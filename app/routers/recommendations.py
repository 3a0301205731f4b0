"""Peer recommendation router.

Collaborative filtering over recorded analytics: tokens frequently clicked by
sessions that searched similar queries.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock
from app.core.errors import StorageError, ValidationError
from app.db.async_session import get_async_db
from app.repositories.learned_token_repository import LearnedTokenRepository
from app.repositories.recommendation_repository import RecommendationRepository
from app.routers.deps import get_clock
from app.schemas.recommendations import PeerRecommendationOut, PeerRecommendationsResponse
from app.services.peer_recommender import PeerRecommender

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("/peers", response_model=PeerRecommendationsResponse)
async def peer_recommendations(
    query: str = Query(""),
    type: str = Query("TOKEN"),
    limit: int = Query(5),
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
) -> PeerRecommendationsResponse:
    recommender = PeerRecommender(
        RecommendationRepository(db),
        LearnedTokenRepository(db),
        clock=clock,
    )
    try:
        results = await recommender.get_peer_recommendations(query, type, limit)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error") from exc

    recommendations = [
        PeerRecommendationOut(
            address=r.address,
            name=r.name,
            symbol=r.symbol,
            score=r.score,
            reason=r.reason,
        )
        for r in results
    ]
    return PeerRecommendationsResponse(
        recommendations=recommendations,
        query=query,
        type=type.upper(),
        count=len(recommendations),
    )
