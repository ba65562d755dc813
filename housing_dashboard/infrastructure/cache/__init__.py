from housing_dashboard.infrastructure.cache.cache_store import CacheBackend, CacheStore
from housing_dashboard.infrastructure.cache.redis_client import RedisClient

__all__ = ["CacheBackend", "CacheStore", "RedisClient"]
