"""FastAPI route definitions for the URL shortener REST API.

API Endpoint Overview
=====================
::
    GET  /health
        └─ text/plain (200) or (503)

    POST /api/shorten
        ├─ ShortenRequest (request body)
        └─ ShortenResponse (201) or 400/405/500

    GET  /api/stats/:code
        └─ URLStats (200) or 404

    GET  /:code
        └─ 307 Redirect or 404/500

Request Flow Diagram
====================
::
    ┌─────────────┐
    │  HTTP       │
    │  Request    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ FastAPI     │
    │ Router      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Inject      │
    │ Services    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Call Service│
    │ Layer       │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Response or │
    │ error → JSON│
    │ (handlers)  │
    └─────────────┘

Key Behaviours
===============
- Service errors propagate to the handlers in app/handlers.py, which render
  ``{"error": ...}`` bodies with the matching status code.
- Cache failures never reach this layer.
- 307 redirects preserve the HTTP method.

Endpoints:
    /health:  Liveness of the store and the cache.
    /api/shorten:  Create new short URLs.
    /api/stats/:code:  Hit counter and metadata for a code.
    /:code:  Redirect to original URL.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, RedirectResponse

from app.dependencies import (
    RequestContext,
    get_health_checker,
    get_request_context,
    get_resolution_service,
    get_shortening_service,
)
from app.enums import Dependency
from app.health import HealthChecker
from app.schemas import ErrorResponse, ShortenRequest, ShortenResponse, URLStats
from app.url_service import URLResolutionService, URLShorteningService, build_short_url

__all__ = ["router"]

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

_UNHEALTHY_MESSAGES = {
    Dependency.DATABASE: "Database connection failed",
    Dependency.CACHE: "Redis connection failed",
}


@router.get("/health", response_class=PlainTextResponse, tags=["health"])
async def health_check(checker: HealthChecker = Depends(get_health_checker)) -> PlainTextResponse:
    report = await checker.check()
    if not report.healthy:
        return PlainTextResponse(_UNHEALTHY_MESSAGES[report.failing], status_code=503)
    return PlainTextResponse("Service is healthy", status_code=200)


@router.post(
    "/api/shorten",
    response_model=ShortenResponse,
    status_code=201,
    responses=_ERROR_RESPONSES,
    tags=["urls"],
)
async def shorten_url(
    payload: ShortenRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_shortening_service),
) -> ShortenResponse:
    ctx.logger.info(f"URL shortening requested: {payload.long_url}")
    result = await service.shorten(payload.long_url)
    ctx.logger.info(f"URL shortened successfully: {result.code} in {ctx.get_duration():.1f}ms")
    return ShortenResponse(long_url=result.long_url, short_url=result.short_url, code=result.code)


@router.get("/api/stats/{code}", response_model=URLStats, responses=_ERROR_RESPONSES, tags=["urls"])
async def get_stats(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: URLResolutionService = Depends(get_resolution_service),
) -> URLStats:
    url = await service.stats(code)
    return URLStats(
        code=url.code,
        long_url=url.long_url,
        short_url=build_short_url(ctx.settings.BASE_URL, url.code),
        hits=url.hits,
        created_at=url.created_at,
    )


@router.get("/{code}", response_class=RedirectResponse, status_code=307, responses=_ERROR_RESPONSES, tags=["redirect"])
async def redirect_to_url(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: URLResolutionService = Depends(get_resolution_service),
) -> RedirectResponse:
    long_url = await service.resolve(code)
    ctx.logger.info(f"Redirect successful: {code} -> {long_url}")
    return RedirectResponse(url=long_url, status_code=307)
