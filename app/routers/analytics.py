"""Analytics collection router.

Collects search and click events from every client session for aggregate
learning (trending, popularity, peer recommendations).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock
from app.core.errors import StorageError, ValidationError
from app.db.async_session import get_async_db
from app.repositories.event_repository import EventRepository
from app.routers.deps import get_clock
from app.schemas.analytics import ClickEventRequest, EventSavedResponse, SearchEventRequest
from app.services.event_recorder import EventRecorder

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("/search", response_model=EventSavedResponse)
async def record_search(
    payload: SearchEventRequest,
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
) -> EventSavedResponse:
    recorder = EventRecorder(EventRepository(db), clock=clock)
    try:
        result = await recorder.record_search(
            payload.session_id,
            payload.query,
            payload.results,
            payload.result_count,
            payload.timestamp,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error") from exc

    return EventSavedResponse(success=True, saved=result.accepted)


@router.post("/click", response_model=EventSavedResponse)
async def record_click(
    payload: ClickEventRequest,
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
) -> EventSavedResponse:
    recorder = EventRecorder(EventRepository(db), clock=clock)
    try:
        result = await recorder.record_click(
            payload.session_id,
            payload.query,
            payload.clicked_address,
            payload.result_rank,
            result_score=payload.result_score,
            time_to_click_ms=payload.time_to_click_ms,
            timestamp=payload.timestamp,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error") from exc

    return EventSavedResponse(success=True, saved=result.accepted)
