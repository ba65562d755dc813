"""
Health Check Routes
===================

The cache is an accelerator: when Redis is down the service still answers,
uncached. ``GET /health`` therefore reports ``degraded`` with HTTP 200 in
that case rather than failing the probe.

- ``GET /health``           quick status for load balancers
- ``GET /health/detailed``  cache health, cache stats, rate limiter stats
- ``GET /health/live``      liveness (no dependency checks)
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from housing_dashboard.application.api.dependencies import get_cache_store, get_rate_limiters
from housing_dashboard.core.config.constants import HealthStatus
from housing_dashboard.core.resilience.rate_limiter import SlidingWindowRateLimiter
from housing_dashboard.infrastructure.cache.cache_store import CacheStore

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Standard health check response model."""

    status: str  # "healthy" or "degraded"
    timestamp: str
    version: str
    components: dict | None = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("", response_model=HealthResponse)
async def health_check(request: Request, cache_store: CacheStore = Depends(get_cache_store)):
    """Overall status; a cache outage degrades but never fails the check."""
    cache_health = await cache_store.health_check()
    status = (
        HealthStatus.HEALTHY.value
        if cache_health["status"] == HealthStatus.HEALTHY.value
        else HealthStatus.DEGRADED.value
    )
    return HealthResponse(
        status=status,
        timestamp=_now(),
        version=request.app.version,
        components={"cache": cache_health},
    )


@router.get("/detailed")
async def detailed_health(
    request: Request,
    cache_store: CacheStore = Depends(get_cache_store),
    rate_limiters: dict[str, SlidingWindowRateLimiter] = Depends(get_rate_limiters),
):
    """Comprehensive report for dashboards and debugging. Always 200."""
    return {
        "timestamp": _now(),
        "version": request.app.version,
        "cache": {
            "health": await cache_store.health_check(),
            "stats": await cache_store.get_stats(),
        },
        "rate_limits": {prefix: limiter.stats() for prefix, limiter in rate_limiters.items()},
    }


@router.get("/live")
async def liveness_probe():
    return {"status": "alive", "timestamp": _now()}
