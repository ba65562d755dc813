"""
Redis Client with Connection Pooling

Architecture:
    RedisClient (Public API)
        ├── ConnectionManager (Connection lifecycle, reconnect backoff)
        └── OperationExecutor (Command execution with error handling)

Every command failure surfaces as a ``CacheKeyError`` and every connect
failure as a ``CacheConnectionError``. Callers that treat the cache as an
accelerator (``CacheStore``) catch these and degrade to a miss.

Author: Platform Team
Date: 2026-02-12
"""

from typing import Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.asyncio.retry import Retry
from redis.backoff import AbstractBackoff
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from housing_dashboard.core.config.settings import Settings
from housing_dashboard.core.exceptions import CacheConnectionError, CacheKeyError
from housing_dashboard.core.logging.logger import get_logger

logger = get_logger(__name__)


class LinearCappedBackoff(AbstractBackoff):
    """
    Reconnect delay growing by ``step`` per failure, capped at ``cap``.

    With the defaults: 0.1s, 0.2s, 0.3s, ... up to 3s.
    """

    def __init__(self, step: float = 0.1, cap: float = 3.0):
        self._step = step
        self._cap = cap

    def reset(self) -> None:
        pass

    def compute(self, failures: int) -> float:
        return min(failures * self._step, self._cap)


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# =============================================================================


class ConnectionManager:
    """
    Manages Redis connection lifecycle and pooling.

    Pool Configuration:
    - Max connections: REDIS_MAX_CONNECTIONS
    - Socket / connect timeouts from settings
    - Health check interval: REDIS_HEALTH_CHECK_INTERVAL
    - Reconnect: linear backoff capped at 3s, REDIS_RECONNECT_MAX_RETRIES attempts
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._is_connected = False

    async def connect(self) -> redis.Redis:
        """
        Establish connection to Redis with connection pooling.

        STAGE-REDIS.2: Connection establishment

        Raises:
            CacheConnectionError: If connection fails
        """
        if self._is_connected and self._client:
            return self._client

        redis_settings = self._settings.redis
        try:
            self._pool = ConnectionPool(
                host=redis_settings.REDIS_HOST,
                port=redis_settings.REDIS_PORT,
                db=redis_settings.REDIS_DB,
                password=redis_settings.REDIS_PASSWORD,
                max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
                socket_connect_timeout=redis_settings.REDIS_SOCKET_CONNECT_TIMEOUT,
                socket_timeout=redis_settings.REDIS_SOCKET_TIMEOUT,
                retry=Retry(LinearCappedBackoff(), redis_settings.REDIS_RECONNECT_MAX_RETRIES),
                retry_on_error=[ConnectionError, TimeoutError],
                health_check_interval=redis_settings.REDIS_HEALTH_CHECK_INTERVAL,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=self._pool)

            await self._client.ping()
            self._is_connected = True

            logger.info(
                "Redis connected successfully",
                stage="REDIS.2",
                host=redis_settings.REDIS_HOST,
                port=redis_settings.REDIS_PORT,
                max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
            )
            return self._client

        except (ConnectionError, TimeoutError, OSError) as e:
            logger.error("Failed to connect to Redis", stage="REDIS.2", error=str(e))
            await self._release()
            raise CacheConnectionError(
                message=f"Failed to connect to Redis: {e}",
                details={"host": redis_settings.REDIS_HOST, "port": redis_settings.REDIS_PORT},
            ) from e

    async def _release(self) -> None:
        if self._client is not None:
            await self._client.aclose()
        if self._pool is not None:
            await self._pool.disconnect()
        self._client = None
        self._pool = None
        self._is_connected = False

    async def disconnect(self) -> None:
        """STAGE-REDIS.3: Close client and pool."""
        await self._release()
        logger.info("Redis disconnected", stage="REDIS.3")

    def get_client(self) -> redis.Redis | None:
        return self._client

    def get_pool(self) -> ConnectionPool | None:
        return self._pool

    def is_connected(self) -> bool:
        return self._is_connected


# =============================================================================
# LAYER 2: OPERATION EXECUTOR
# =============================================================================


class OperationExecutor:
    """
    Executes Redis operations with consistent error handling.

    Error Handling Strategy:
    - Catch RedisError exceptions
    - Log error with context (stage, key)
    - Raise CacheKeyError with details
    """

    def __init__(self, redis_client: redis.Redis):
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        """STAGE-REDIS.GET"""
        try:
            return await self._redis.get(key)
        except RedisError as e:
            logger.error("Redis GET failed", stage="REDIS.GET", key=key, error=str(e))
            raise CacheKeyError(message=f"Redis GET failed: {e}", details={"key": key}) from e

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """
        STAGE-REDIS.SET: SET with optional expiry (``EX ttl``).

        Returns:
            True if set successfully
        """
        try:
            result = await self._redis.set(key, value, ex=ttl)
            return bool(result)
        except RedisError as e:
            logger.error("Redis SET failed", stage="REDIS.SET", key=key, error=str(e))
            raise CacheKeyError(message=f"Redis SET failed: {e}", details={"key": key}) from e

    async def delete(self, *keys: str) -> int:
        """STAGE-REDIS.DEL: returns number of keys deleted."""
        if not keys:
            return 0
        try:
            return await self._redis.delete(*keys)
        except RedisError as e:
            logger.error("Redis DELETE failed", stage="REDIS.DEL", keys=keys, error=str(e))
            raise CacheKeyError(message=f"Redis DELETE failed: {e}", details={"keys": keys}) from e

    async def scan_keys(self, pattern: str, count: int = 500) -> list[str]:
        """
        STAGE-REDIS.SCAN: collect keys matching a glob pattern.

        Uses SCAN rather than KEYS so large keyspaces don't block the server.
        """
        try:
            return [key async for key in self._redis.scan_iter(match=pattern, count=count)]
        except RedisError as e:
            logger.error("Redis SCAN failed", stage="REDIS.SCAN", pattern=pattern, error=str(e))
            raise CacheKeyError(message=f"Redis SCAN failed: {e}", details={"pattern": pattern}) from e

    async def info(self, section: str | None = None) -> dict[str, Any]:
        try:
            return await self._redis.info(section) if section else await self._redis.info()
        except RedisError as e:
            logger.error("Redis INFO failed", stage="REDIS.INFO", section=section, error=str(e))
            raise CacheKeyError(message=f"Redis INFO failed: {e}", details={"section": section}) from e

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            raise CacheKeyError(message=f"Redis PING failed: {e}") from e


# =============================================================================
# LAYER 3: PUBLIC API
# =============================================================================


class RedisClient:
    """
    Async Redis client with connection pooling.

    Usage:
        client = RedisClient(settings)
        await client.connect()
        await client.set("key", "value", ttl=300)
        value = await client.get("key")
        await client.disconnect()
    """

    def __init__(self, settings: Settings):
        """STAGE-REDIS.1: Client initialization (no I/O)."""
        self._settings = settings
        self._conn_mgr = ConnectionManager(settings)
        self._executor: OperationExecutor | None = None

    async def connect(self) -> None:
        """
        STAGE-REDIS.2: Connection establishment

        Raises:
            CacheConnectionError: If connection fails
        """
        client = await self._conn_mgr.connect()
        self._executor = OperationExecutor(client)

    async def disconnect(self) -> None:
        await self._conn_mgr.disconnect()
        self._executor = None

    def is_connected(self) -> bool:
        return self._executor is not None and self._conn_mgr.is_connected()

    def _require_executor(self) -> OperationExecutor:
        if self._executor is None:
            raise CacheConnectionError("Redis client is not connected")
        return self._executor

    async def get(self, key: str) -> str | None:
        return await self._require_executor().get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        return await self._require_executor().set(key, value, ttl)

    async def delete(self, *keys: str) -> int:
        return await self._require_executor().delete(*keys)

    async def scan_keys(self, pattern: str) -> list[str]:
        return await self._require_executor().scan_keys(pattern)

    async def info(self, section: str | None = None) -> dict[str, Any]:
        return await self._require_executor().info(section)

    async def ping(self) -> bool:
        return await self._require_executor().ping()
