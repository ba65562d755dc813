"""
FastAPI dependencies.

Everything a route needs is built once by ``create_app`` and stored on
``app.state``; these accessors hand it to handlers.
"""

from fastapi import Request

from housing_dashboard.application.services.record_source import RecordSource
from housing_dashboard.core.config.settings import Settings
from housing_dashboard.core.resilience.rate_limiter import SlidingWindowRateLimiter
from housing_dashboard.infrastructure.cache.cache_store import CacheStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_cache_store(request: Request) -> CacheStore:
    return request.app.state.cache_store


def get_record_source(request: Request) -> RecordSource:
    return request.app.state.record_source


def get_rate_limiters(request: Request) -> dict[str, SlidingWindowRateLimiter]:
    return request.app.state.rate_limiters
