"""
Cache-Related Exceptions

Raised by the Redis client layers. The cache store catches all of them and
degrades to a miss; they never reach an HTTP response.

Author: Platform Team
Date: 2026-02-11
"""

from housing_dashboard.core.exceptions.base import DashboardError


class CacheError(DashboardError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to the cache (Redis).

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port configuration
    - Authentication failure
    """
    pass


class CacheKeyError(CacheError):
    """
    Raised when a cache key operation fails.

    Common causes:
    - Operation timeout
    - Connection dropped mid-command
    - Memory limit exceeded
    """
    pass


class CacheSerializationError(CacheError):
    """Raised when a value cannot be encoded to, or decoded from, JSON."""
    pass
