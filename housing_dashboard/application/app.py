#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Builds the housing dashboard API: the cache store, one sliding-window
limiter per protected route group, the middleware chain and the routers.
Every stateful collaborator is constructed here and injected; nothing
reaches for a module-level singleton at request time.

Author: Platform Team
Date: 2026-02-12
"""

import time
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from housing_dashboard.application.api.middleware import (
    CachePolicy,
    RateLimitPolicy,
    setup_middleware,
)
from housing_dashboard.application.api.middleware.error_handler import internal_error_response
from housing_dashboard.application.api.middleware.rate_limit import rate_limit_response
from housing_dashboard.application.api.routes import (
    admin_router,
    analytics_router,
    health_router,
    housing_router,
    rental_router,
)
from housing_dashboard.application.services.record_source import InMemoryRecordSource, RecordSource
from housing_dashboard.core.config.constants import (
    NAMESPACE_ANALYTICS,
    NAMESPACE_HOUSING,
    NAMESPACE_RENTAL,
    Stage,
)
from housing_dashboard.core.config.settings import Settings, get_settings
from housing_dashboard.core.exceptions import DashboardError, RateLimitExceededError
from housing_dashboard.core.logging.logger import get_logger, log_stage, setup_logging
from housing_dashboard.core.resilience.rate_limiter import SlidingWindowRateLimiter
from housing_dashboard.infrastructure.cache.cache_store import CacheStore
from housing_dashboard.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)

DATA_NAMESPACES = (NAMESPACE_HOUSING, NAMESPACE_RENTAL, NAMESPACE_ANALYTICS)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the cache on startup (degrading if Redis is down), close on shutdown."""
    settings: Settings = app.state.settings
    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting Housing Dashboard API",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    cache_store: CacheStore = app.state.cache_store
    connected = await cache_store.connect()
    logger.info("Cache store ready", connected=connected)

    try:
        yield
    finally:
        log_stage(logger, Stage.CLEANUP, "Shutting down application")
        await cache_store.disconnect()
        log_stage(logger, Stage.CLEANUP, "Application shutdown complete")


# ============================================================================
# Route group policies
# ============================================================================


def build_cache_policies(settings: Settings) -> list[CachePolicy]:
    base_path = settings.app.API_BASE_PATH.rstrip("/")
    return [
        CachePolicy(
            prefix=f"{base_path}/{namespace}",
            namespace=namespace,
            ttl=settings.cache.ttl_for(namespace),
        )
        for namespace in DATA_NAMESPACES
    ]


def build_rate_limiters(
    settings: Settings, clock: Callable[[], float] = time.monotonic
) -> dict[str, SlidingWindowRateLimiter]:
    """One limiter per protected route group, keyed by path prefix."""
    base_path = settings.app.API_BASE_PATH.rstrip("/")
    limits = settings.rate_limit
    limiters = {
        f"{base_path}/{namespace}": SlidingWindowRateLimiter(
            window_ms=limits.RATE_LIMIT_WINDOW_MS,
            max_requests=limits.RATE_LIMIT_MAX_REQUESTS,
            clock=clock,
            name=namespace,
        )
        for namespace in DATA_NAMESPACES
    }
    limiters[f"{base_path}/admin"] = SlidingWindowRateLimiter(
        window_ms=limits.RATE_LIMIT_ADMIN_WINDOW_MS,
        max_requests=limits.RATE_LIMIT_ADMIN_MAX_REQUESTS,
        clock=clock,
        name="admin",
    )
    return limiters


# ============================================================================
# Application Factory
# ============================================================================


def create_app(
    settings: Settings | None = None,
    *,
    cache_store: CacheStore | None = None,
    record_source: RecordSource | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration (defaults to ``get_settings()``)
        cache_store: Pre-built store; defaults to one backed by Redis
        record_source: Query collaborator for the data routes
        clock: Monotonic clock for the rate limiters
    """
    settings = settings or get_settings()
    if cache_store is None:
        cache_store = CacheStore.from_settings(settings, RedisClient(settings))
    record_source = record_source or InMemoryRecordSource()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Housing market dashboard API with response caching and rate limiting",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    rate_limiters = build_rate_limiters(settings, clock=clock)
    cache_policies = build_cache_policies(settings)

    app.state.settings = settings
    app.state.cache_store = cache_store
    app.state.record_source = record_source
    app.state.rate_limiters = rate_limiters

    setup_middleware(
        app,
        settings=settings,
        cache_store=cache_store,
        cache_policies=cache_policies,
        rate_limit_policies=[
            RateLimitPolicy(prefix=prefix, limiter=limiter) for prefix, limiter in rate_limiters.items()
        ],
    )

    base_path = settings.app.API_BASE_PATH
    app.include_router(health_router, prefix=base_path)
    app.include_router(housing_router, prefix=base_path)
    app.include_router(rental_router, prefix=base_path)
    app.include_router(analytics_router, prefix=base_path)
    app.include_router(admin_router, prefix=base_path)

    include_detail = settings.app.ENVIRONMENT == "development"

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": f"{base_path}/health",
        }

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(request: Request, exc: RateLimitExceededError):
        return rate_limit_response(exc)

    @app.exception_handler(DashboardError)
    async def dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
        logger.error(
            f"Request failed: {exc.message}",
            error_type=type(exc).__name__,
            path=request.url.path,
            details=exc.details,
        )
        return internal_error_response(exc, include_detail=include_detail)

    return app


# Create application instance
app = create_app()


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "housing_dashboard.application.app:app",
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
