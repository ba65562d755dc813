"""
API Client Core
===============

Asynchronous HTTP client for the housing dashboard API. Every data fetch on
the consumer side goes through it.

RESPONSIBILITIES
----------------
1. **Default headers**: JSON content negotiation plus ``X-API-Key`` when configured
2. **Overall timeout**: the whole call (connect, send, read) is bounded by
   ``config.timeout``; httpx's per-phase timeouts alone would let a slow
   trickle of bytes run far past it
3. **Error normalization**: every failure becomes an ``ApiError`` carrying
   ``message`` and, when the server answered, ``status``:

   - timeout: ``ApiTimeoutError`` (retryable)
   - network or transport failure: ``ApiNetworkError`` (retryable)
   - HTTP 5xx: ``ApiHTTPError`` (retryable)
   - HTTP 4xx: ``ApiHTTPError``
   - undecodable body: ``ApiResponseError``

   Caller cancellation is not an error: ``asyncio.CancelledError``
   propagates untouched.

Retrying is NOT done here; ``ApiQuery`` owns the retry policy so it can
cancel pending backoff timers together with the call.

USAGE
-----
```python
async with ApiClient(ApiClientConfig(base_url="http://localhost:8000/api")) as client:
    listings = await client.get("/housing/listings", {"region_id": 7})
```

Author: Platform Team
Date: 2026-02-13
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import orjson
from pydantic import BaseModel, Field

from housing_dashboard.core.config.constants import (
    CLIENT_DEFAULT_BASE_URL,
    CLIENT_DEFAULT_TIMEOUT,
    HEADER_API_KEY,
    Stage,
)
from housing_dashboard.core.config.settings import Settings
from housing_dashboard.core.exceptions import (
    ApiHTTPError,
    ApiNetworkError,
    ApiResponseError,
    ApiTimeoutError,
)
from housing_dashboard.core.logging import get_logger

logger = get_logger(__name__)


class ApiClientConfig(BaseModel):
    """
    Validated, immutable client configuration.

    Example:
        config = ApiClientConfig(base_url="https://dashboard.example.com/api", timeout=5.0)
        config = ApiClientConfig.from_settings(get_settings())
    """

    model_config = {"frozen": True}

    base_url: str = Field(default=CLIENT_DEFAULT_BASE_URL, description="API base URL")
    api_key: str | None = Field(default=None, description="Sent as X-API-Key")
    timeout: float = Field(default=CLIENT_DEFAULT_TIMEOUT, gt=0, le=300, description="Overall timeout (s)")
    max_connections: int = Field(default=10, ge=1, le=100, description="Maximum pooled connections")

    @classmethod
    def from_settings(cls, settings: Settings) -> ApiClientConfig:
        client = settings.client
        return cls(
            base_url=client.CLIENT_BASE_URL,
            api_key=client.CLIENT_API_KEY,
            timeout=client.CLIENT_TIMEOUT,
            max_connections=client.CLIENT_MAX_CONNECTIONS,
        )


def _error_message(response: httpx.Response) -> str:
    """Prefer the server's ``message``/``error`` field over a generic text."""
    try:
        body = orjson.loads(response.content)
    except orjson.JSONDecodeError:
        body = None
    if isinstance(body, dict):
        for field in ("message", "error", "detail"):
            if isinstance(body.get(field), str):
                return body[field]
    return f"HTTP error! status: {response.status_code}"


class ApiClient:
    """
    Async client with default headers, an overall timeout and normalized errors.

    Use as an async context manager, or call ``aclose()`` when done. The
    underlying ``httpx.AsyncClient`` is created lazily on first request.

    Args:
        config: Client configuration
        transport: Optional httpx transport (``httpx.MockTransport`` in tests)
    """

    def __init__(
        self,
        config: ApiClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or ApiClientConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> ApiClient:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("HTTP client closed")

    def default_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.config.api_key:
            headers[HEADER_API_KEY] = self.config.api_key
        return headers

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=self.default_headers(),
                timeout=httpx.Timeout(self.config.timeout),
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=max(1, self.config.max_connections // 2),
                ),
                transport=self._transport,
            )
        return self._client

    @staticmethod
    def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
        if not params:
            return None
        return {k: v for k, v in params.items() if v is not None}

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Perform one HTTP call and return the decoded JSON body.

        Raises:
            ApiTimeoutError: the call exceeded ``config.timeout``
            ApiNetworkError: transport failure
            ApiHTTPError: non-2xx status (``status`` set)
            ApiResponseError: body was not JSON
        """
        client = self._ensure_client()
        log = logger.bind(stage=Stage.CLIENT_REQUEST.value, method=method, endpoint=endpoint)

        content = orjson.dumps(json) if json is not None else None
        try:
            response = await asyncio.wait_for(
                client.request(
                    method,
                    endpoint,
                    params=self._clean_params(params),
                    content=content,
                    headers=headers,
                ),
                timeout=self.config.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            log.warning("API request timed out", timeout=self.config.timeout)
            raise ApiTimeoutError(
                f"Request timed out after {self.config.timeout:g}s",
                details={"endpoint": endpoint, "method": method},
            ) from e
        except httpx.TransportError as e:
            log.warning("API request failed", error=str(e), error_type=type(e).__name__)
            raise ApiNetworkError(
                str(e) or "Network error",
                details={"endpoint": endpoint, "method": method},
            ) from e

        if response.is_error:
            message = _error_message(response)
            log.warning("API request rejected", status=response.status_code, message=message)
            raise ApiHTTPError(message, status=response.status_code, details={"endpoint": endpoint})

        if not response.content:
            return None
        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise ApiResponseError(
                "Response body is not valid JSON",
                status=response.status_code,
                details={"endpoint": endpoint},
            ) from e

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, data: Any = None) -> Any:
        return await self.request("POST", endpoint, json=data)

    async def put(self, endpoint: str, data: Any = None) -> Any:
        return await self.request("PUT", endpoint, json=data)

    async def delete(self, endpoint: str) -> Any:
        return await self.request("DELETE", endpoint)

    async def health_check(self) -> Any:
        return await self.get("/health")
