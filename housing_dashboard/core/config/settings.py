#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
housing dashboard API and its client. All configuration is centralized here
so the cache store, rate limiters and API client are built from one explicit
structure instead of ambient globals.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing: construct ``Settings(...)`` with overrides

Author: Platform Team
Date: 2026-02-11
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from housing_dashboard.core.config.constants import (
    CLIENT_DEFAULT_BASE_URL,
    CLIENT_DEFAULT_CACHE_TTL,
    CLIENT_DEFAULT_MAX_RETRIES,
    CLIENT_DEFAULT_RETRY_BASE_DELAY,
    CLIENT_DEFAULT_TIMEOUT,
    DEFAULT_CACHE_NAMESPACE,
    DEFAULT_CACHE_TTL,
    NAMESPACE_ANALYTICS,
    NAMESPACE_HOUSING,
    NAMESPACE_RENTAL,
)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _validate_log_level(value: str) -> str:
    if value.upper() not in VALID_LOG_LEVELS:
        raise ValueError(f"LOG_LEVEL must be one of {VALID_LOG_LEVELS}")
    return value.upper()


class RedisSettings(BaseSettings):
    """
    Redis configuration for the response cache.

    STAGE-0.1: Redis connection configuration

    Redis is an accelerator only; the service starts and serves
    (uncached) when it is unreachable.
    """

    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: float = Field(default=5.0, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")
    REDIS_RECONNECT_MAX_RETRIES: int = Field(default=10, description="Reconnect attempts before giving up")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Response cache configuration.

    STAGE-2: Cache TTL configuration

    Each resource namespace carries its own TTL; analytics aggregates go
    stale faster than listings.
    """

    CACHE_ENABLED: bool = Field(default=True, description="Enable the server response cache")
    CACHE_NAMESPACE: str = Field(default=DEFAULT_CACHE_NAMESPACE, description="Application key prefix")
    CACHE_DEFAULT_TTL: int = Field(default=DEFAULT_CACHE_TTL, gt=0, description="Default TTL in seconds")
    CACHE_TTL_HOUSING: int = Field(default=300, gt=0, description="Housing data TTL")
    CACHE_TTL_RENTAL: int = Field(default=300, gt=0, description="Rental data TTL")
    CACHE_TTL_ANALYTICS: int = Field(default=180, gt=0, description="Analytics data TTL")
    CACHE_OPERATION_TIMEOUT: float = Field(default=1.0, gt=0, description="Upper bound for one cache call (s)")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)

    def ttl_for(self, namespace: str) -> int:
        """Return the TTL configured for a resource namespace."""
        return {
            NAMESPACE_HOUSING: self.CACHE_TTL_HOUSING,
            NAMESPACE_RENTAL: self.CACHE_TTL_RENTAL,
            NAMESPACE_ANALYTICS: self.CACHE_TTL_ANALYTICS,
        }.get(namespace, self.CACHE_DEFAULT_TTL)


class RateLimitSettings(BaseSettings):
    """
    Rate limiting configuration.

    STAGE-1: Sliding-window thresholds

    Data routes share one window/limit; admin routes get a stricter one.
    Limits are enforced per process.
    """

    RATE_LIMIT_ENABLED: bool = Field(default=True, description="Enable rate limiting")
    RATE_LIMIT_WINDOW_MS: int = Field(default=15 * 60 * 1000, gt=0, description="Data route window (ms)")
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=100, gt=0, description="Data route max requests per window")
    RATE_LIMIT_ADMIN_WINDOW_MS: int = Field(default=60 * 1000, gt=0, description="Admin route window (ms)")
    RATE_LIMIT_ADMIN_MAX_REQUESTS: int = Field(default=10, gt=0, description="Admin route max requests")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ClientSettings(BaseSettings):
    """
    API client configuration (consumer side).

    STAGE-C: Client request defaults
    """

    CLIENT_BASE_URL: str = Field(default=CLIENT_DEFAULT_BASE_URL, description="API base URL")
    CLIENT_API_KEY: str | None = Field(default=None, description="API key sent as X-API-Key")
    CLIENT_TIMEOUT: float = Field(default=CLIENT_DEFAULT_TIMEOUT, gt=0, description="Overall request timeout (s)")
    CLIENT_MAX_RETRIES: int = Field(default=CLIENT_DEFAULT_MAX_RETRIES, ge=0, description="Retries after first try")
    CLIENT_RETRY_BASE_DELAY: float = Field(
        default=CLIENT_DEFAULT_RETRY_BASE_DELAY, ge=0, description="Backoff base delay (s)"
    )
    CLIENT_CACHE_TTL: float = Field(default=CLIENT_DEFAULT_CACHE_TTL, gt=0, description="Client cache TTL (s)")
    CLIENT_MAX_CONNECTIONS: int = Field(default=10, gt=0, description="Max pooled HTTP connections")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        return _validate_log_level(v)

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Debug mode")
    APP_NAME: str = Field(default="Housing Dashboard API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    API_BASE_PATH: str = Field(default="/api", description="Prefix for all API routers")
    ADMIN_API_KEY: str | None = Field(default=None, description="X-API-Key required by admin routes")
    API_KEYS: list[str] = Field(
        default_factory=list,
        description="X-API-Key values that count as their own rate-limit identity",
    )
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from housing_dashboard.core.config.settings import get_settings

        settings = get_settings()
        ttl = settings.cache.ttl_for("analytics")
        window = settings.rate_limit.RATE_LIMIT_WINDOW_MS
    """

    # Redis settings
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: float = Field(default=5.0, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: float = Field(default=5.0, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")
    REDIS_RECONNECT_MAX_RETRIES: int = Field(default=10, description="Reconnect attempts before giving up")

    # Cache settings
    CACHE_ENABLED: bool = Field(default=True, description="Enable the server response cache")
    CACHE_NAMESPACE: str = Field(default=DEFAULT_CACHE_NAMESPACE, description="Application key prefix")
    CACHE_DEFAULT_TTL: int = Field(default=DEFAULT_CACHE_TTL, gt=0, description="Default TTL in seconds")
    CACHE_TTL_HOUSING: int = Field(default=300, gt=0, description="Housing data TTL")
    CACHE_TTL_RENTAL: int = Field(default=300, gt=0, description="Rental data TTL")
    CACHE_TTL_ANALYTICS: int = Field(default=180, gt=0, description="Analytics data TTL")
    CACHE_OPERATION_TIMEOUT: float = Field(default=1.0, gt=0, description="Upper bound for one cache call (s)")

    # Rate limiting settings
    RATE_LIMIT_ENABLED: bool = Field(default=True, description="Enable rate limiting")
    RATE_LIMIT_WINDOW_MS: int = Field(default=15 * 60 * 1000, gt=0, description="Data route window (ms)")
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=100, gt=0, description="Data route max requests per window")
    RATE_LIMIT_ADMIN_WINDOW_MS: int = Field(default=60 * 1000, gt=0, description="Admin route window (ms)")
    RATE_LIMIT_ADMIN_MAX_REQUESTS: int = Field(default=10, gt=0, description="Admin route max requests")

    # Client settings
    CLIENT_BASE_URL: str = Field(default=CLIENT_DEFAULT_BASE_URL, description="API base URL")
    CLIENT_API_KEY: str | None = Field(default=None, description="API key sent as X-API-Key")
    CLIENT_TIMEOUT: float = Field(default=CLIENT_DEFAULT_TIMEOUT, gt=0, description="Overall request timeout (s)")
    CLIENT_MAX_RETRIES: int = Field(default=CLIENT_DEFAULT_MAX_RETRIES, ge=0, description="Retries after first try")
    CLIENT_RETRY_BASE_DELAY: float = Field(
        default=CLIENT_DEFAULT_RETRY_BASE_DELAY, ge=0, description="Backoff base delay (s)"
    )
    CLIENT_CACHE_TTL: float = Field(default=CLIENT_DEFAULT_CACHE_TTL, gt=0, description="Client cache TTL (s)")
    CLIENT_MAX_CONNECTIONS: int = Field(default=10, gt=0, description="Max pooled HTTP connections")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Debug mode")
    APP_NAME: str = Field(default="Housing Dashboard API", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    API_BASE_PATH: str = Field(default="/api", description="Prefix for all API routers")
    ADMIN_API_KEY: str | None = Field(default=None, description="X-API-Key required by admin routes")
    API_KEYS: list[str] = Field(
        default_factory=list,
        description="X-API-Key values that count as their own rate-limit identity",
    )
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Allowed CORS origins")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        return _validate_log_level(v)

    # Nested configuration views
    @property
    def redis(self) -> RedisSettings:
        """Get Redis settings."""
        return RedisSettings(
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL,
            REDIS_RECONNECT_MAX_RETRIES=self.REDIS_RECONNECT_MAX_RETRIES,
        )

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_ENABLED=self.CACHE_ENABLED,
            CACHE_NAMESPACE=self.CACHE_NAMESPACE,
            CACHE_DEFAULT_TTL=self.CACHE_DEFAULT_TTL,
            CACHE_TTL_HOUSING=self.CACHE_TTL_HOUSING,
            CACHE_TTL_RENTAL=self.CACHE_TTL_RENTAL,
            CACHE_TTL_ANALYTICS=self.CACHE_TTL_ANALYTICS,
            CACHE_OPERATION_TIMEOUT=self.CACHE_OPERATION_TIMEOUT,
        )

    @property
    def rate_limit(self) -> RateLimitSettings:
        """Get rate limit settings."""
        return RateLimitSettings(
            RATE_LIMIT_ENABLED=self.RATE_LIMIT_ENABLED,
            RATE_LIMIT_WINDOW_MS=self.RATE_LIMIT_WINDOW_MS,
            RATE_LIMIT_MAX_REQUESTS=self.RATE_LIMIT_MAX_REQUESTS,
            RATE_LIMIT_ADMIN_WINDOW_MS=self.RATE_LIMIT_ADMIN_WINDOW_MS,
            RATE_LIMIT_ADMIN_MAX_REQUESTS=self.RATE_LIMIT_ADMIN_MAX_REQUESTS,
        )

    @property
    def client(self) -> ClientSettings:
        """Get API client settings."""
        return ClientSettings(
            CLIENT_BASE_URL=self.CLIENT_BASE_URL,
            CLIENT_API_KEY=self.CLIENT_API_KEY,
            CLIENT_TIMEOUT=self.CLIENT_TIMEOUT,
            CLIENT_MAX_RETRIES=self.CLIENT_MAX_RETRIES,
            CLIENT_RETRY_BASE_DELAY=self.CLIENT_RETRY_BASE_DELAY,
            CLIENT_CACHE_TTL=self.CLIENT_CACHE_TTL,
            CLIENT_MAX_CONNECTIONS=self.CLIENT_MAX_CONNECTIONS,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            DEBUG=self.DEBUG,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            API_BASE_PATH=self.API_BASE_PATH,
            ADMIN_API_KEY=self.ADMIN_API_KEY,
            API_KEYS=self.API_KEYS,
            CORS_ORIGINS=self.CORS_ORIGINS,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

    STAGE-0.3: Settings initialization

    Components never call this themselves; the application factory reads it
    once and hands explicit values to the stores it builds.
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
