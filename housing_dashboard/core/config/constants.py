"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the housing dashboard API.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for header names and key prefixes
- Type-safe enums for cache and health states

Author: Platform Team
Date: 2026-02-11
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Request processing stages used as the ``stage`` field of log events.

    The order mirrors a server request: admission, cache lookup, handler.
    """

    INITIALIZATION = "0.0_INITIALIZATION"
    RATE_LIMITING = "1.0_RATE_LIMITING"
    CACHE_LOOKUP = "2.0_CACHE_LOOKUP"
    QUERY_EXECUTION = "3.0_QUERY_EXECUTION"
    CACHE_WRITE = "4.0_CACHE_WRITE"
    CLEANUP = "5.0_CLEANUP"

    # Client side
    CLIENT_REQUEST = "C.1_CLIENT_REQUEST"
    CLIENT_RETRY = "C.2_CLIENT_RETRY"
    CLIENT_CACHE = "C.3_CLIENT_CACHE"


# ============================================================================
# Cache
# ============================================================================


class CacheStatus(str, Enum):
    """Value of the X-Cache response header."""

    HIT = "HIT"
    MISS = "MISS"


class HealthStatus(str, Enum):
    """Health states reported by the cache store and health routes."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    DISCONNECTED = "disconnected"


# Application-wide key prefix; every cache key starts with it
DEFAULT_CACHE_NAMESPACE = "housing_dashboard"
CACHE_KEY_SEPARATOR = ":"

# Resource namespaces
NAMESPACE_HOUSING = "housing"
NAMESPACE_RENTAL = "rental"
NAMESPACE_ANALYTICS = "analytics"

DEFAULT_CACHE_TTL = 300  # seconds

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_CACHE = "X-Cache"
HEADER_API_KEY = "X-API-Key"
HEADER_RETRY_AFTER = "Retry-After"
HEADER_RATE_LIMIT_LIMIT = "X-RateLimit-Limit"
HEADER_RATE_LIMIT_REMAINING = "X-RateLimit-Remaining"

# ============================================================================
# Client defaults
# ============================================================================

CLIENT_DEFAULT_BASE_URL = "http://localhost:8000/api"
CLIENT_DEFAULT_TIMEOUT = 10.0  # seconds
CLIENT_DEFAULT_MAX_RETRIES = 3
CLIENT_DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds
CLIENT_DEFAULT_CACHE_TTL = 300.0  # seconds
