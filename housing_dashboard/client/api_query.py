"""
Request Cache / Retry Hook
==========================

``ApiQuery`` binds one ``(endpoint, params)`` pair to an observable
``QueryState`` and owns the single network call that feeds it.

LIFECYCLE
---------
::

    mount() ──► cache hit? ──yes──► state.data (synchronous, no I/O)
                    │
                    no
                    ▼
               cancel pending task ──► new task: client.get() with retry
                                                   │
                      success ──► cache write + state.data + last_fetch
                      retryable failure ──► backoff, try again
                      exhausted / non-retryable ──► state.error
                      cancelled ──► nothing

RULES
-----
- At most one pending task per query. Starting a new call cancels the old
  one first; the task is also the abort handle for its backoff sleep, so
  cancelling it clears both.
- Every call carries a generation number. A result (or error) from a call
  that has been superseded is dropped and never cached.
- After ``unmount()`` no state update and no callback is delivered.
- Backoff delay before retry ``n`` (1-based) is ``retry_base_delay * 2**(n-1)``,
  handled by tenacity's ``AsyncRetrying``.

USAGE
-----
```python
async with ApiClient(config) as client:
    query = ApiQuery(client, "/housing/listings", {"region_id": 7})
    query.mount()
    await query.wait()
    print(query.state.data)
    await query.unmount()
```

Author: Platform Team
Date: 2026-02-13
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Any

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from housing_dashboard.client.api_client import ApiClient
from housing_dashboard.client.cache import ClientCache
from housing_dashboard.core.cache_keys import build_cache_key, canonical_json
from housing_dashboard.core.config.constants import (
    CLIENT_DEFAULT_CACHE_TTL,
    CLIENT_DEFAULT_MAX_RETRIES,
    CLIENT_DEFAULT_RETRY_BASE_DELAY,
    Stage,
)
from housing_dashboard.core.config.settings import Settings
from housing_dashboard.core.exceptions import ApiError, is_retryable_error
from housing_dashboard.core.logging import get_logger

logger = get_logger(__name__)

CLIENT_CACHE_NAMESPACE = "client"


@dataclass(frozen=True)
class QueryOptions:
    immediate: bool = True
    cache: bool = True
    cache_ttl: float = CLIENT_DEFAULT_CACHE_TTL
    max_retries: int = CLIENT_DEFAULT_MAX_RETRIES
    retry_base_delay: float = CLIENT_DEFAULT_RETRY_BASE_DELAY
    on_success: Callable[[Any], None] | None = None
    on_error: Callable[[ApiError], None] | None = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> QueryOptions:
        client = settings.client
        values: dict[str, Any] = {
            "cache_ttl": client.CLIENT_CACHE_TTL,
            "max_retries": client.CLIENT_MAX_RETRIES,
            "retry_base_delay": client.CLIENT_RETRY_BASE_DELAY,
        }
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class QueryState:
    """Snapshot exposed to consumers; replaced, never mutated."""

    data: Any = None
    loading: bool = False
    error: ApiError | None = None
    last_fetch: float | None = None


class ApiQuery:
    """
    Cached, retried, cancellable fetch of one endpoint.

    Args:
        client: API client used for the network call
        endpoint: Path relative to the client's base URL
        params: Query parameters (``None`` values are dropped by the client)
        options: Caching, retry and callback options
        cache: Shared client cache; a private one is created when omitted
        on_change: Called with the new ``QueryState`` after every update
        sleep: Awaitable used for backoff delays
    """

    def __init__(
        self,
        client: ApiClient,
        endpoint: str,
        params: dict[str, Any] | None = None,
        options: QueryOptions | None = None,
        *,
        cache: ClientCache | None = None,
        on_change: Callable[[QueryState], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.endpoint = endpoint
        self.params: dict[str, Any] = dict(params or {})
        self.options = options or QueryOptions()
        self.cache = cache if cache is not None else ClientCache()
        self.state = QueryState(loading=self.options.immediate)

        self._on_change = on_change
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self._generation = 0
        self._unmounted = False

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    @property
    def cache_key(self) -> str:
        return build_cache_key(CLIENT_CACHE_NAMESPACE, self.endpoint, self.params)

    @property
    def is_cache_valid(self) -> bool:
        return self.options.cache and self.cache.contains(self.cache_key)

    def clear_cache(self) -> None:
        self.cache.delete(self.cache_key)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def mount(self) -> None:
        """Start the first load when ``immediate`` is set."""
        if self.options.immediate:
            self._start()

    def update_params(self, params: dict[str, Any]) -> None:
        """Switch to new parameters; a no-op when they are unchanged."""
        if canonical_json(params) == canonical_json(self.params):
            return
        self.params = dict(params)
        self._start()

    async def refetch(self) -> None:
        """Bypass and drop the cached entry, then load again."""
        if self._unmounted:
            return
        self.clear_cache()
        self._start(use_cache=False)
        await self.wait()

    async def wait(self) -> None:
        """Wait for the pending call, if any, to settle. Never raises."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def unmount(self) -> None:
        """Cancel the pending call and its backoff timer. No updates afterwards."""
        self._unmounted = True
        task = self._cancel_pending()
        if task is not None:
            await asyncio.wait({task})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _cancel_pending(self) -> asyncio.Task | None:
        task, self._task = self._task, None
        if task is None or task.done():
            return None
        task.cancel()
        return task

    def _start(self, *, use_cache: bool = True) -> None:
        if self._unmounted:
            return
        self._cancel_pending()
        self._generation += 1

        key = self.cache_key
        if use_cache and self.options.cache:
            entry = self.cache.get_entry(key)
            if entry is not None:
                logger.debug("Client cache hit", stage=Stage.CLIENT_CACHE.value, key=key)
                self._update(data=entry.data, loading=False, error=None)
                return

        self._update(loading=True, error=None)
        self._task = asyncio.create_task(self._run(self._generation, key, dict(self.params)))

    def _is_current(self, generation: int) -> bool:
        return not self._unmounted and generation == self._generation

    def _update(self, **changes: Any) -> None:
        if self._unmounted:
            return
        self.state = replace(self.state, **changes)
        if self._on_change is not None:
            self._on_change(self.state)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retrying API request",
            stage=Stage.CLIENT_RETRY.value,
            endpoint=self.endpoint,
            attempt=retry_state.attempt_number,
            delay=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(exc),
        )

    async def _fetch_with_retry(self, params: dict[str, Any]) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.options.max_retries + 1),
            wait=wait_exponential(multiplier=self.options.retry_base_delay, exp_base=2),
            retry=retry_if_exception(is_retryable_error),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        data = None
        async for attempt in retrying:
            with attempt:
                data = await self.client.get(self.endpoint, params)
        return data

    async def _run(self, generation: int, key: str, params: dict[str, Any]) -> None:
        try:
            data = await self._fetch_with_retry(params)
        except asyncio.CancelledError:
            logger.debug("API request cancelled", endpoint=self.endpoint)
            raise
        except Exception as e:
            error = e if isinstance(e, ApiError) else ApiError.from_exception(e)
            if not self._is_current(generation):
                return
            logger.error(
                "API request failed",
                endpoint=self.endpoint,
                error=error.message,
                status=error.status,
            )
            self._update(loading=False, error=error)
            if self.options.on_error is not None:
                self.options.on_error(error)
            return

        if not self._is_current(generation):
            logger.debug("Dropping superseded result", endpoint=self.endpoint)
            return

        if self.options.cache:
            self.cache.set(key, data, self.options.cache_ttl)
        self._update(data=data, loading=False, error=None, last_fetch=time.time())
        if self.options.on_success is not None:
            self.options.on_success(data)


class PaginatedApiQuery(ApiQuery):
    """
    ``ApiQuery`` over a paginated endpoint returning
    ``{data, total, page, limit, totalPages}``.
    """

    def __init__(
        self,
        client: ApiClient,
        endpoint: str,
        params: dict[str, Any] | None = None,
        options: QueryOptions | None = None,
        *,
        page: int = 1,
        limit: int = 50,
        **kwargs: Any,
    ):
        params = {**(params or {}), "page": page, "limit": limit}
        super().__init__(client, endpoint, params, options, **kwargs)

    @property
    def page(self) -> int:
        return self.params["page"]

    @property
    def items(self) -> list:
        data = self.state.data or {}
        return data.get("data", [])

    @property
    def total(self) -> int:
        data = self.state.data or {}
        return data.get("total", 0)

    @property
    def total_pages(self) -> int:
        """One until the first page has loaded, never less than one."""
        data = self.state.data or {}
        return max(1, data.get("totalPages") or 1)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    def go_to_page(self, page: int) -> None:
        if page < 1 or page > self.total_pages:
            return
        self.update_params({**self.params, "page": page})

    def next_page(self) -> None:
        if self.has_next_page:
            self.go_to_page(self.page + 1)

    def previous_page(self) -> None:
        if self.has_previous_page:
            self.go_to_page(self.page - 1)
