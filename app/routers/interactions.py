"""Interaction logging router.

Logs user interactions (search/click/select) and bumps the learned-token
popularity score: search +0 (tracking only), click +3, select +5.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock
from app.core.errors import StorageError, ValidationError
from app.db.async_session import get_async_db
from app.repositories.popularity_repository import PopularityRepository
from app.routers.deps import get_clock
from app.schemas.interactions import InteractionRequest, InteractionResponse
from app.services.popularity_aggregator import PopularityAggregator

router = APIRouter(prefix="/interactions", tags=["interactions"])


@router.post("", response_model=InteractionResponse)
async def log_interaction(
    payload: InteractionRequest,
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
) -> InteractionResponse:
    aggregator = PopularityAggregator(PopularityRepository(db), clock=clock)
    try:
        result = await aggregator.apply_interaction(
            payload.token_address,
            payload.interaction_type,
            session_id=payload.session_id,
            query_text=payload.query_text,
            result_position=payload.result_position,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to log interaction") from exc

    return InteractionResponse(success=True, logged=result.logged)
