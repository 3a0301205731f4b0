"""Operational endpoints: liveness and aggregate counters."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock
from app.core.results import unwrap_or
from app.db.async_session import get_async_db
from app.repositories.event_repository import EventRepository
from app.repositories.popularity_repository import PopularityRepository
from app.routers.deps import get_clock, get_stats_cache
from app.services.db_state import check_database
from app.services.result_cache import ResultCache
from app.services.stats_service import StatsService, StatsSnapshot

router = APIRouter(tags=["operations"])


@router.get("/health")
async def health(
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
) -> JSONResponse:
    error = await check_database(db)
    timestamp = clock.now().isoformat()
    if error is None:
        return JSONResponse(
            {"status": "healthy", "database": "connected", "timestamp": timestamp},
            status_code=status.HTTP_200_OK,
        )
    return JSONResponse(
        {"status": "unhealthy", "database": "disconnected", "error": error, "timestamp": timestamp},
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


@router.get("/stats")
async def stats(
    cache: bool = Query(True),
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
    stats_cache: ResultCache = Depends(get_stats_cache),
) -> JSONResponse:
    service = StatsService(PopularityRepository(db), EventRepository(db), cache=stats_cache)
    snapshot = unwrap_or(await service.get_stats(use_cache=cache), StatsSnapshot())
    return JSONResponse(
        snapshot.as_payload(clock.now()),
        headers={"Cache-Control": "public, max-age=300"},
    )
