"""
Server Cache Store

Namespaced, TTL-based JSON cache in front of expensive queries.

The store is an accelerator, never a source of truth:
- every backend call is bounded by ``operation_timeout``
- any failure (unreachable Redis, timeout, bad JSON) is logged and surfaces
  as a miss on read or ``False`` on write
- nothing here raises into a request path, except errors of the query
  function handed to ``cache_query``

Values are serialized with orjson; expiry is enforced by Redis (``SET EX``),
so a read after the TTL is absent rather than stale.

Author: Platform Team
Date: 2026-02-12
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

import orjson

from housing_dashboard.core.cache_keys import build_cache_key
from housing_dashboard.core.config.constants import (
    DEFAULT_CACHE_NAMESPACE,
    DEFAULT_CACHE_TTL,
    HealthStatus,
    Stage,
)
from housing_dashboard.core.config.settings import Settings
from housing_dashboard.core.exceptions import CacheError, CacheSerializationError
from housing_dashboard.core.logging import get_logger
from housing_dashboard.core.resilience.single_flight import SingleFlight

logger = get_logger(__name__)

T = TypeVar("T")


def _encode(value: Any) -> str:
    try:
        return orjson.dumps(value).decode()
    except orjson.JSONEncodeError as e:
        raise CacheSerializationError(f"Value is not JSON serializable: {e}") from e


def _decode(raw: str) -> Any:
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise CacheSerializationError(f"Cached payload is not valid JSON: {e}") from e


class CacheBackend(Protocol):
    """What the store needs from a Redis client (see ``RedisClient``)."""

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    def is_connected(self) -> bool: ...

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool: ...

    async def delete(self, *keys: str) -> int: ...

    async def scan_keys(self, pattern: str) -> list[str]: ...

    async def info(self, section: str | None = None) -> dict[str, Any]: ...

    async def ping(self) -> bool: ...


class CacheStore:
    """
    Namespaced cache over a Redis backend.

    Args:
        backend: Redis client; ``None`` runs the store permanently disconnected
        namespace: Application key prefix (``housing_dashboard``)
        default_ttl: TTL in seconds when ``set`` gets none
        operation_timeout: Upper bound in seconds for any single backend call
        enabled: ``False`` turns every operation into a miss / no-op
        coalesce: Share one execution between concurrent identical
            ``cache_query`` misses
    """

    def __init__(
        self,
        backend: CacheBackend | None,
        *,
        namespace: str = DEFAULT_CACHE_NAMESPACE,
        default_ttl: int = DEFAULT_CACHE_TTL,
        operation_timeout: float = 1.0,
        enabled: bool = True,
        coalesce: bool = True,
    ):
        self._backend = backend
        self.namespace = namespace
        self.default_ttl = default_ttl
        self._operation_timeout = operation_timeout
        self._enabled = enabled
        self._single_flight = SingleFlight() if coalesce else None

        self._hits = 0
        self._misses = 0
        self._errors = 0

    @classmethod
    def from_settings(cls, settings: Settings, backend: CacheBackend | None) -> "CacheStore":
        cache = settings.cache
        return cls(
            backend,
            namespace=cache.CACHE_NAMESPACE,
            default_ttl=cache.CACHE_DEFAULT_TTL,
            operation_timeout=cache.CACHE_OPERATION_TIMEOUT,
            enabled=cache.CACHE_ENABLED,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> bool:
        """
        Connect the backend. A failure leaves the store disconnected and the
        service serving uncached.
        """
        if not self._enabled or self._backend is None:
            logger.info("Cache store running without backend", stage=Stage.INITIALIZATION.value)
            return False
        try:
            await self._backend.connect()
        except (CacheError, OSError) as e:
            logger.warning(
                "Cache backend unavailable, continuing without cache",
                stage=Stage.INITIALIZATION.value,
                error=str(e),
            )
            return False
        return True

    async def disconnect(self) -> None:
        if self._backend is not None and self._backend.is_connected():
            await self._backend.disconnect()

    @property
    def is_connected(self) -> bool:
        return self._enabled and self._backend is not None and self._backend.is_connected()

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    def generate_key(self, namespace: str, *discriminators: Any) -> str:
        """``<app>:<namespace>:<d1>:<d2>...`` with canonical JSON for non-strings."""
        return build_cache_key(self.namespace, namespace, *discriminators)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def _bounded(self, call: Callable[[], Awaitable[T]]) -> T:
        return await asyncio.wait_for(call(), timeout=self._operation_timeout)

    def _record_error(self, operation: str, error: BaseException, **context: Any) -> None:
        self._errors += 1
        logger.warning(
            f"Cache {operation} failed",
            stage=Stage.CACHE_LOOKUP.value if operation == "get" else Stage.CACHE_WRITE.value,
            error=str(error) or error.__class__.__name__,
            error_type=error.__class__.__name__,
            **context,
        )

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` on miss / expiry / failure."""
        if not self.is_connected:
            self._misses += 1
            return None

        try:
            raw = await self._bounded(lambda: self._backend.get(key))
            value = _decode(raw) if raw is not None else None
        except Exception as e:  # cache failures degrade to a miss
            self._record_error("get", e, key=key)
            self._misses += 1
            return None

        if value is None:
            self._misses += 1
        else:
            self._hits += 1
        logger.debug(
            "Cache lookup",
            stage=Stage.CACHE_LOOKUP.value,
            key=key,
            hit=value is not None,
        )
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Serialize and store ``value`` with expiry. ``ttl=None`` uses the
        default; a TTL of zero or less stores nothing. ``False`` on any failure.
        """
        if not self.is_connected:
            return False

        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            return False
        try:
            payload = _encode(value)
            await self._bounded(lambda: self._backend.set(key, payload, ttl))
        except Exception as e:
            self._record_error("set", e, key=key, ttl=ttl)
            return False

        logger.debug("Cache write", stage=Stage.CACHE_WRITE.value, key=key, ttl=ttl)
        return True

    async def delete(self, key: str) -> bool:
        if not self.is_connected:
            return False
        try:
            await self._bounded(lambda: self._backend.delete(key))
        except Exception as e:
            self._record_error("delete", e, key=key)
            return False
        return True

    async def clear_by_pattern(self, pattern: str) -> bool:
        """
        Remove every key matching a glob pattern, e.g.
        ``housing_dashboard:housing:*``. ``False`` on failure.
        """
        if not self.is_connected:
            return False

        async def _clear() -> int:
            keys = await self._backend.scan_keys(pattern)
            if not keys:
                return 0
            return await self._backend.delete(*keys)

        try:
            deleted = await self._bounded(_clear)
        except Exception as e:
            self._record_error("clear_by_pattern", e, pattern=pattern)
            return False

        logger.info("Cache invalidated", stage=Stage.CACHE_WRITE.value, pattern=pattern, deleted=deleted)
        return True

    async def cache_query(
        self,
        namespace: str,
        params: Any,
        query_fn: Callable[[], Awaitable[Any]],
        ttl: int | None = None,
    ) -> Any:
        """
        Cache-aside around ``query_fn``.

        A hit returns the cached value without calling ``query_fn``. On a miss
        the result is stored and returned; concurrent misses for the same key
        share one execution when coalescing is on. Errors raised by
        ``query_fn`` propagate and nothing is stored.
        """
        key = self.generate_key(namespace, params)
        cached = await self.get(key)
        if cached is not None:
            return cached

        async def _compute() -> Any:
            result = await query_fn()
            await self.set(key, result, ttl)
            return result

        if self._single_flight is not None:
            return await self._single_flight.do(key, _compute)
        return await _compute()

    # -------------------------------------------------------------------------
    # Health & Stats
    # -------------------------------------------------------------------------

    async def health_check(self) -> dict[str, Any]:
        """
        ``{"status": "disconnected"}`` without a live backend,
        ``{"status": "healthy", "latency_ms": ...}`` when PING answers within
        the operation timeout, otherwise ``{"status": "unhealthy", "error": ...}``.
        """
        if not self.is_connected:
            return {"status": HealthStatus.DISCONNECTED.value}

        start = time.perf_counter()
        try:
            await self._bounded(self._backend.ping)
        except Exception as e:
            return {
                "status": HealthStatus.UNHEALTHY.value,
                "error": str(e) or e.__class__.__name__,
            }
        return {
            "status": HealthStatus.HEALTHY.value,
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
        }

    def counters(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "errors": self._errors,
            "hit_rate": round(self._hits / total, 4) if total else 0.0,
        }

    async def get_stats(self) -> dict[str, Any]:
        """Local hit/miss counters plus Redis memory and keyspace figures."""
        stats: dict[str, Any] = {
            "connected": self.is_connected,
            "namespace": self.namespace,
            **self.counters(),
        }
        if not self.is_connected:
            return stats

        try:
            memory = await self._bounded(lambda: self._backend.info("memory"))
            keyspace = await self._bounded(lambda: self._backend.info("keyspace"))
        except Exception as e:
            self._record_error("stats", e)
            stats["error"] = str(e) or e.__class__.__name__
            return stats

        stats["memory"] = {
            "used_memory": memory.get("used_memory"),
            "used_memory_human": memory.get("used_memory_human"),
        }
        stats["keyspace"] = {
            db: info.get("keys") if isinstance(info, dict) else info
            for db, info in keyspace.items()
        }
        return stats
