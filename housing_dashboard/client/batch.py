"""
Concurrent fetch of several independent endpoints.

Each request either lands in ``results`` or, when it fails with an
``ApiError``, in ``errors``; one failure never hides the others.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from housing_dashboard.client.api_client import ApiClient
from housing_dashboard.core.exceptions import ApiError
from housing_dashboard.core.logging import get_logger

logger = get_logger(__name__)

RequestSpec = str | tuple[str, dict[str, Any] | None]


@dataclass
class BatchResult:
    results: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, ApiError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


async def fetch_many(client: ApiClient, requests: dict[str, RequestSpec]) -> BatchResult:
    """
    GET every request concurrently.

    Args:
        client: API client
        requests: Mapping of result key to an endpoint, or ``(endpoint, params)``

    Example:
        batch = await fetch_many(client, {
            "overview": "/analytics/market-overview",
            "trends": ("/housing/price-trends/7/2", None),
        })
    """
    batch = BatchResult()

    async def _one(key: str, spec: RequestSpec) -> None:
        endpoint, params = (spec, None) if isinstance(spec, str) else spec
        try:
            batch.results[key] = await client.get(endpoint, params)
        except ApiError as e:
            logger.warning("Batch request failed", key=key, endpoint=endpoint, error=e.message)
            batch.errors[key] = e

    await asyncio.gather(*(_one(key, spec) for key, spec in requests.items()))
    return batch
