"""
Consumer-side access to the housing dashboard API.

- ``ApiClient``: HTTP calls with default headers, an overall timeout and
  normalized errors
- ``ApiQuery`` / ``PaginatedApiQuery``: cached, retried, cancellable fetches
- ``fetch_many``: several GETs at once
"""

from housing_dashboard.client.api_client import ApiClient, ApiClientConfig
from housing_dashboard.client.api_query import (
    ApiQuery,
    PaginatedApiQuery,
    QueryOptions,
    QueryState,
)
from housing_dashboard.client.batch import BatchResult, fetch_many
from housing_dashboard.client.cache import ClientCache, ClientCacheEntry

__all__ = [
    "ApiClient",
    "ApiClientConfig",
    "ApiQuery",
    "BatchResult",
    "ClientCache",
    "ClientCacheEntry",
    "PaginatedApiQuery",
    "QueryOptions",
    "QueryState",
    "fetch_many",
]
