"""FastAPI route definitions for the URL shortener REST API.

This module provides all HTTP endpoints with dependency injection, error
translation, and response serialization. It is a thin shell: URL syntax is
checked by the request schema, everything else is delegated to
URLShorteningService.

API Endpoint Overview
=====================
::
    GET  /health
        └─ HealthResponse (200)

    POST /api/shorten
        ├─ URLCreate (request body)
        └─ URLResponse (201) or 422/500/503

    GET  /api/urls/:code
        └─ URLResponse (200) or 404

    GET  /:code
        └─ 307 Redirect or 404

Error Mapping
=============
::
    invalid URL               → 422 (schema validation)
    unknown code              → 404
    StoreUnavailableError     → 503
    CodeSpaceExhaustedError   → 500

Key Behaviours
===============
- Short URLs use BASE_URL when configured, else the request's own origin.
- 307 redirects preserve the HTTP method.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy import text

from app.dependencies import RequestContext, get_request_context, get_url_service
from app.enums import HealthStatus
from app.errors import CodeSpaceExhaustedError, StoreUnavailableError
from app.schemas import HealthResponse, URLCreate, URLResponse
from app.url_service import URLShorteningService

__all__ = ["router"]

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    cache_status = HealthStatus.DISABLED

    try:
        await ctx.database.execute(text("SELECT 1"))
    except Exception as e:
        ctx.logger.error(f"Database health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    if ctx.cache is not None:
        try:
            await ctx.cache.ping()
            cache_status = HealthStatus.HEALTHY
        except Exception as e:
            ctx.logger.error(f"Cache health check failed: {e}")
            cache_status = HealthStatus.UNHEALTHY

    status = (
        HealthStatus.HEALTHY
        if db_status is HealthStatus.HEALTHY and cache_status is not HealthStatus.UNHEALTHY
        else HealthStatus.UNHEALTHY
    )
    return HealthResponse(status=status, database=db_status, cache=cache_status)


@router.post("/api/shorten", response_model=URLResponse, status_code=201, tags=["urls"])
async def shorten_url(
    payload: URLCreate,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> URLResponse:
    try:
        mapping = await service.shorten(payload.url, ctx.short_url_origin)
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail="Storage temporarily unavailable") from exc
    except CodeSpaceExhaustedError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    ctx.logger.info(
        f"URL shortened: {mapping.code}",
        extra={
            "operation": "create_short_url",
            "code": mapping.code,
            "duration_ms": ctx.get_duration(),
        },
    )
    return URLResponse.model_validate(mapping.model_dump())


@router.get("/api/urls/{code}", response_model=URLResponse, tags=["urls"])
async def get_url(
    code: str,
    service: URLShorteningService = Depends(get_url_service),
) -> URLResponse:
    try:
        mapping = await service.get_mapping(code)
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail="Storage temporarily unavailable") from exc
    if mapping is None:
        raise HTTPException(status_code=404, detail="Short URL not found")
    return URLResponse.model_validate(mapping.model_dump())


@router.get("/{code}", tags=["redirect"])
async def redirect_to_url(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: URLShorteningService = Depends(get_url_service),
) -> RedirectResponse:
    try:
        long_url = await service.resolve(code)
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail="Storage temporarily unavailable") from exc

    if long_url is None:
        ctx.logger.warning(
            f"Redirect failed - short code not found: {code}",
            extra={"operation": "redirect", "code": code, "duration_ms": ctx.get_duration()},
        )
        raise HTTPException(status_code=404, detail="Short URL not found")

    return RedirectResponse(url=long_url, status_code=307)
