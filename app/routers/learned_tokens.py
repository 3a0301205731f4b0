from __future__ import annotations

from typing import Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock
from app.core.errors import StorageError, ValidationError
from app.db.async_session import get_async_db
from app.repositories.learned_token_repository import LearnedTokenRepository
from app.routers.deps import get_clock, get_learned_tokens_cache
from app.schemas.learned_tokens import LearnedTokenIn, LearnedTokenOut, LearnedTokensUpsertResponse
from app.services.learned_token_service import LearnedTokenService
from app.services.result_cache import ResultCache

router = APIRouter(prefix="/learned-tokens", tags=["learned-tokens"])

CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"


@router.get("")
async def list_learned_tokens(
    type: str = Query("ALL"),
    limit: int = Query(20, ge=1),
    min_popularity: float = Query(0.0, ge=0),
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
    cache: ResultCache = Depends(get_learned_tokens_cache),
) -> JSONResponse:
    service = LearnedTokenService(LearnedTokenRepository(db), clock=clock)

    async def compute() -> list[dict]:
        tokens = await service.list_tokens(type=type, limit=limit, min_popularity=min_popularity)
        return jsonable_encoder([LearnedTokenOut.model_validate(t) for t in tokens])

    key = f"learned:{type.upper()}:{min(limit, 100)}:{min_popularity}"
    try:
        result = await cache.with_cache(key, compute)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch learned tokens",
        ) from exc

    return JSONResponse(
        {"success": True, "tokens": result.value, "count": len(result.value)},
        headers={"Cache-Control": CACHE_CONTROL},
    )


@router.post("", response_model=LearnedTokensUpsertResponse)
async def add_learned_tokens(
    payload: Union[list[LearnedTokenIn], LearnedTokenIn],
    db: AsyncSession = Depends(get_async_db),
    clock: Clock = Depends(get_clock),
) -> LearnedTokensUpsertResponse:
    tokens = payload if isinstance(payload, list) else [payload]
    service = LearnedTokenService(LearnedTokenRepository(db), clock=clock)
    try:
        summary = await service.upsert_tokens(tokens)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Failed to add tokens") from exc

    return LearnedTokensUpsertResponse(success=True, added=summary.added, updated=summary.updated)
