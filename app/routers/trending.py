"""Trending router.

Endpoints:
- GET /trending?type=&limit=&cache=&ranking=
- POST /trending/log
- GET /trending/popularity?addresses[]=0x...
- POST /trending/popularity

Trending reads are a soft feature: a storage failure returns ``assets: []``
with HTTP 200 so the UI can fall back to local trending data.
"""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock
from app.core.errors import StorageError, ValidationError
from app.core.results import Ok, unwrap_or
from app.db.async_session import get_async_db
from app.repositories.popularity_repository import PopularityRepository
from app.repositories.trending_repository import TrendingRepository
from app.routers.deps import get_clock, get_trending_cache
from app.schemas.trending import (
    PopularityUpdateRequest,
    PopularityUpdateResponse,
    TrendingLogRequest,
    TrendingLogResponse,
)
from app.services.popularity_aggregator import PopularityAggregator
from app.services.result_cache import ResultCache
from app.services.trending_ranker import TrendingPage, TrendingRanker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trending", tags=["trending"])

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
CACHE_CONTROL_PUBLIC = "public, max-age=300, stale-while-revalidate=600"
CACHE_CONTROL_NONE = "no-cache, no-store, must-revalidate"


@router.get("")
async def get_trending(
    type: str = Query("ALL", description="TOKEN, NFT or ALL"),
    limit: int = Query(DEFAULT_LIMIT, ge=1),
    cache: bool = Query(True, description="Serve from the per-instance cache when fresh"),
    ranking: Literal["count", "velocity"] = Query("count"),
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
    trending_cache: ResultCache = Depends(get_trending_cache),
) -> JSONResponse:
    ranker = TrendingRanker(TrendingRepository(db), cache=trending_cache, clock=clock)
    try:
        result = await ranker.get_trending(type, min(limit, MAX_LIMIT), use_cache=cache, ranking=ranking)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid type parameter. Must be TOKEN, NFT, or ALL",
        ) from exc

    page = unwrap_or(result, TrendingPage())
    headers = None
    if isinstance(result, Ok):
        headers = {"Cache-Control": CACHE_CONTROL_PUBLIC if cache else CACHE_CONTROL_NONE}
    return JSONResponse(page.as_payload(clock.now()), status_code=status.HTTP_200_OK, headers=headers)


@router.post("/log", response_model=TrendingLogResponse)
async def log_trending_search(
    payload: TrendingLogRequest,
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
) -> TrendingLogResponse:
    ranker = TrendingRanker(TrendingRepository(db), clock=clock)
    result = await ranker.log_search(
        payload.address,
        payload.asset_type,
        symbol=payload.symbol,
        name=payload.name,
    )
    return TrendingLogResponse(success=True, logged=result.logged)


@router.get("/popularity")
async def get_popularity(
    addresses: list[str] = Query(default=[], alias="addresses[]"),
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
) -> dict:
    aggregator = PopularityAggregator(PopularityRepository(db), clock=clock)
    try:
        return await aggregator.get_popularity(addresses)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error") from exc


@router.post("/popularity", response_model=PopularityUpdateResponse)
async def update_popularity(
    payload: PopularityUpdateRequest,
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
) -> PopularityUpdateResponse:
    aggregator = PopularityAggregator(PopularityRepository(db), clock=clock)
    try:
        await aggregator.update_popularity(
            payload.token_address,
            appeared_in_results=payload.appeared_in_results,
            was_clicked=payload.was_clicked,
            timestamp=payload.timestamp,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error") from exc

    logger.info("Popularity updated: %s", payload.token_address)
    return PopularityUpdateResponse(success=True, updated=True)
