"""Token Insights FastAPI application.

Backend-for-frontend for a token exploration UI: collects search/click
analytics, maintains token popularity counters, ranks trending assets and serves
peer recommendations derived from what similar searchers clicked.

Handlers are stateless apart from the per-instance result caches created here;
every counter lives in the relational store and is mutated with single-statement
upserts.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.clock import Clock, SystemClock
from app.core.config import settings
from app.routers import analytics, health, interactions, learned_tokens, recommendations, trending
from app.services.result_cache import ResultCache

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    message = str(first.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    location = ".".join(str(part) for part in first.get("loc", ())[1:])
    return f"{location}: {message}" if location else message


def create_app(clock: Optional[Clock] = None) -> FastAPI:
    _configure_logging()

    app = FastAPI(
        title="Token Insights",
        version="0.1.0",
        description="Analytics, trending and peer recommendation APIs for token exploration.",
    )

    clock = clock or SystemClock()
    app.state.clock = clock
    app.state.trending_cache = ResultCache(
        settings.trending_cache_ttl_seconds,
        clock=clock,
        max_entries=settings.cache_max_entries,
        name="trending",
    )
    app.state.stats_cache = ResultCache(
        settings.stats_cache_ttl_seconds,
        clock=clock,
        max_entries=settings.cache_max_entries,
        name="stats",
    )
    app.state.learned_tokens_cache = ResultCache(
        settings.learned_tokens_cache_ttl_seconds,
        clock=clock,
        max_entries=settings.cache_max_entries,
        name="learned-tokens",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse({"error": _validation_message(exc)}, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Internal server error"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    app.include_router(analytics.router)
    app.include_router(trending.router)
    app.include_router(interactions.router)
    app.include_router(recommendations.router)
    app.include_router(learned_tokens.router)
    app.include_router(health.router)

    return app


app = create_app()
