"""
Configuration package.

Exposes the settings model and the shared constants:

    from housing_dashboard.core.config import get_settings, HEADER_CACHE
"""

from housing_dashboard.core.config.constants import (
    CACHE_KEY_SEPARATOR,
    DEFAULT_CACHE_NAMESPACE,
    DEFAULT_CACHE_TTL,
    HEADER_API_KEY,
    HEADER_CACHE,
    HEADER_RATE_LIMIT_LIMIT,
    HEADER_RATE_LIMIT_REMAINING,
    HEADER_REQUEST_ID,
    HEADER_RETRY_AFTER,
    NAMESPACE_ANALYTICS,
    NAMESPACE_HOUSING,
    NAMESPACE_RENTAL,
    CacheStatus,
    HealthStatus,
    Stage,
)
from housing_dashboard.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    "CACHE_KEY_SEPARATOR",
    "DEFAULT_CACHE_NAMESPACE",
    "DEFAULT_CACHE_TTL",
    "HEADER_API_KEY",
    "HEADER_CACHE",
    "HEADER_RATE_LIMIT_LIMIT",
    "HEADER_RATE_LIMIT_REMAINING",
    "HEADER_REQUEST_ID",
    "HEADER_RETRY_AFTER",
    "NAMESPACE_ANALYTICS",
    "NAMESPACE_HOUSING",
    "NAMESPACE_RENTAL",
    "CacheStatus",
    "HealthStatus",
    "Settings",
    "Stage",
    "get_settings",
    "reload_settings",
]
