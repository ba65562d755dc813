"""
Middleware Package
==================

AVAILABLE MIDDLEWARE:
---------------------
1. error_handler: Catch-all 500 formatting
2. request_context: Request ID propagation and access logging
3. rate_limit: Sliding-window admission per route group
4. response_cache: GET response caching with X-Cache tagging

MIDDLEWARE ORDERING:
--------------------
Starlette runs the LAST registered middleware FIRST. ``setup_middleware``
registers innermost to outermost so a request flows:

    ErrorHandling → CORS → RequestContext → RateLimit → ResponseCache → route

Admission therefore happens before the cache lookup, and the cache lookup
before the handler.
"""

from collections.abc import Sequence
from functools import partial

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from housing_dashboard.core.config.constants import HEADER_CACHE, HEADER_REQUEST_ID
from housing_dashboard.core.config.settings import Settings
from housing_dashboard.core.logging.logger import get_logger
from housing_dashboard.core.resilience.rate_limiter import get_client_identity
from housing_dashboard.infrastructure.cache.cache_store import CacheStore

from .error_handler import ErrorHandlingMiddleware, add_error_handling_middleware
from .rate_limit import RateLimitMiddleware, RateLimitPolicy
from .request_context import RequestContextMiddleware
from .response_cache import CachePolicy, ResponseCacheMiddleware

logger = get_logger(__name__)


def setup_middleware(
    app: FastAPI,
    settings: Settings,
    cache_store: CacheStore,
    cache_policies: Sequence[CachePolicy],
    rate_limit_policies: Sequence[RateLimitPolicy],
) -> None:
    """Register all middleware, innermost first."""
    # 1. Response cache (innermost: closest to the route handlers)
    if settings.cache.CACHE_ENABLED and cache_policies:
        app.add_middleware(ResponseCacheMiddleware, cache_store=cache_store, policies=list(cache_policies))

    # 2. Rate limiting (before any cache lookup)
    if settings.rate_limit.RATE_LIMIT_ENABLED and rate_limit_policies:
        known_keys = frozenset(settings.app.API_KEYS)
        if settings.app.ADMIN_API_KEY:
            known_keys |= {settings.app.ADMIN_API_KEY}
        app.add_middleware(
            RateLimitMiddleware,
            policies=list(rate_limit_policies),
            identity_func=partial(get_client_identity, api_keys=known_keys),
        )

    # 3. Request ID + access log
    app.add_middleware(RequestContextMiddleware)

    # 4. CORS (adds headers to every response, including 429s and 500s)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_REQUEST_ID, HEADER_CACHE, "Retry-After"],
    )

    # 5. Error handling (outermost)
    add_error_handling_middleware(app, include_traceback=settings.app.ENVIRONMENT == "development")

    logger.info(
        "Middleware registered",
        cached_groups=[p.prefix for p in cache_policies],
        limited_groups=[p.prefix for p in rate_limit_policies],
    )


__all__ = [
    "CachePolicy",
    "ErrorHandlingMiddleware",
    "RateLimitMiddleware",
    "RateLimitPolicy",
    "RequestContextMiddleware",
    "ResponseCacheMiddleware",
    "setup_middleware",
]
