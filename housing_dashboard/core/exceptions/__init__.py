"""
Exception Module

Structured exception hierarchy for the housing dashboard API.
Exceptions are organized by theme.

Module Structure:
-----------------
- **base.py**: DashboardError base class
- **cache.py**: Cache-related exceptions (Redis)
- **rate_limit.py**: Rate limiting exceptions
- **client.py**: API client exceptions (normalized ``{message, status}``)
- **data.py**: Record source exceptions

Usage:
------
```python
from housing_dashboard.core.exceptions import CacheConnectionError, ApiTimeoutError
from housing_dashboard.core.exceptions.client import is_retryable_error
```

Author: Platform Team
Date: 2026-02-11
"""

from housing_dashboard.core.exceptions.base import DashboardError
from housing_dashboard.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
)
from housing_dashboard.core.exceptions.client import (
    ApiError,
    ApiHTTPError,
    ApiNetworkError,
    ApiResponseError,
    ApiTimeoutError,
    is_retryable_error,
)
from housing_dashboard.core.exceptions.data import RecordSourceError, UnknownResourceError
from housing_dashboard.core.exceptions.rate_limit import RateLimitError, RateLimitExceededError

__all__ = [
    # Base
    "DashboardError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
    # Client
    "ApiError",
    "ApiHTTPError",
    "ApiNetworkError",
    "ApiResponseError",
    "ApiTimeoutError",
    "is_retryable_error",
    # Data
    "RecordSourceError",
    "UnknownResourceError",
    # Rate limit
    "RateLimitError",
    "RateLimitExceededError",
]
