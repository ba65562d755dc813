"""
Admin Routes
============

Operational endpoints for cache invalidation and limiter inspection.
Rate limited by their own (stricter) route group.

When ``ADMIN_API_KEY`` is configured, callers must send it as ``X-API-Key``.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import BaseModel, Field

from housing_dashboard.application.api.dependencies import (
    get_app_settings,
    get_cache_store,
    get_rate_limiters,
)
from housing_dashboard.core.cache_keys import namespace_pattern
from housing_dashboard.core.config.constants import HEADER_API_KEY
from housing_dashboard.core.config.settings import Settings
from housing_dashboard.core.logging import get_logger
from housing_dashboard.core.resilience.rate_limiter import SlidingWindowRateLimiter
from housing_dashboard.infrastructure.cache.cache_store import CacheStore

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


async def verify_admin_access(
    settings: Settings = Depends(get_app_settings),
    api_key: str | None = Header(default=None, alias=HEADER_API_KEY),
) -> None:
    expected = settings.app.ADMIN_API_KEY
    if expected is None:
        return
    if api_key is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="API key required")
    if api_key != expected:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API key")


class InvalidateRequest(BaseModel):
    """Either a raw glob ``pattern`` or a resource ``namespace`` to wipe."""

    pattern: str | None = Field(default=None, description="Glob, e.g. housing_dashboard:housing:*")
    namespace: str | None = Field(default=None, description="Resource namespace, e.g. housing")


@router.get("/cache/stats", dependencies=[Depends(verify_admin_access)])
async def cache_stats(cache_store: CacheStore = Depends(get_cache_store)):
    return await cache_store.get_stats()


@router.post("/cache/invalidate", dependencies=[Depends(verify_admin_access)])
async def invalidate_cache(body: InvalidateRequest, cache_store: CacheStore = Depends(get_cache_store)):
    """
    Remove cached entries by pattern. Without a pattern or namespace the
    whole application namespace is cleared.
    """
    pattern = body.pattern or namespace_pattern(cache_store.namespace, body.namespace)
    cleared = await cache_store.clear_by_pattern(pattern)
    logger.info("Cache invalidation requested", pattern=pattern, cleared=cleared)
    return {"pattern": pattern, "cleared": cleared}


@router.get("/rate-limits", dependencies=[Depends(verify_admin_access)])
async def rate_limit_stats(
    rate_limiters: dict[str, SlidingWindowRateLimiter] = Depends(get_rate_limiters),
):
    return {prefix: limiter.stats() for prefix, limiter in rate_limiters.items()}
