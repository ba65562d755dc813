"""
Unit Tests for CacheStore

Covers TTL behaviour, namespacing, graceful degradation and cache_query.
"""

import asyncio

import orjson
import pytest
from test_fixtures import CacheTestFactory, FakeRedisBackend, SlowRedisBackend

from housing_dashboard.core.config.constants import HealthStatus
from housing_dashboard.infrastructure.cache.cache_store import CacheStore


@pytest.mark.unit
class TestCacheStoreBasics:
    """get / set / delete against a healthy backend."""

    async def test_set_then_get(self, cache_store):
        assert await cache_store.set("k", {"data": [1, 2]}, ttl=60)
        assert await cache_store.get("k") == {"data": [1, 2]}

    async def test_values_are_json_serialized(self, cache_store, fake_redis):
        await cache_store.set("k", {"b": 1})
        assert orjson.loads(fake_redis.data["k"]) == {"b": 1}

    async def test_missing_key_is_none(self, cache_store):
        assert await cache_store.get("absent") is None

    async def test_default_ttl_applies(self, cache_store, fake_redis):
        await cache_store.set("k", 1)
        assert fake_redis.ttls["k"] == 300

    async def test_non_positive_ttl_stores_nothing(self, cache_store, fake_redis):
        assert not await cache_store.set("k", {"b": 1}, ttl=0)
        assert "k" not in fake_redis.data
        assert fake_redis.set_calls == 0

    async def test_read_after_ttl_is_absent(self, cache_store, clock):
        await cache_store.set("k", "v", ttl=10)
        clock.advance(9.9)
        assert await cache_store.get("k") == "v"

        clock.advance(0.1)
        assert await cache_store.get("k") is None

    async def test_delete(self, cache_store):
        await cache_store.set("k", "v")
        assert await cache_store.delete("k")
        assert await cache_store.get("k") is None

    async def test_generate_key_is_namespaced(self, cache_store):
        key = cache_store.generate_key("housing", "/api/housing/listings", {"page": 1})
        assert key == 'test_dashboard:housing:/api/housing/listings:{"page":1}'

    async def test_counters(self, cache_store):
        await cache_store.set("k", "v")
        await cache_store.get("k")
        await cache_store.get("missing")

        counters = cache_store.counters()
        assert counters["hits"] == 1
        assert counters["misses"] == 1
        assert counters["hit_rate"] == 0.5


@pytest.mark.unit
class TestClearByPattern:
    async def test_clears_only_matching_namespace(self, cache_store):
        await cache_store.set(cache_store.generate_key("housing", "a"), 1)
        await cache_store.set(cache_store.generate_key("housing", "b"), 2)
        await cache_store.set(cache_store.generate_key("rental", "a"), 3)

        assert await cache_store.clear_by_pattern("test_dashboard:housing:*")

        assert await cache_store.get(cache_store.generate_key("housing", "a")) is None
        assert await cache_store.get(cache_store.generate_key("housing", "b")) is None
        assert await cache_store.get(cache_store.generate_key("rental", "a")) == 3

    async def test_no_matches_is_success(self, cache_store):
        assert await cache_store.clear_by_pattern("test_dashboard:nothing:*")


@pytest.mark.unit
class TestGracefulDegradation:
    """A broken backend turns into misses and False, never into exceptions."""

    @pytest.fixture
    def failing_store(self):
        return CacheStore(CacheTestFactory.failing_backend(), namespace="test_dashboard")

    async def test_get_returns_none(self, failing_store):
        assert await failing_store.get("k") is None

    async def test_set_returns_false(self, failing_store):
        assert await failing_store.set("k", "v") is False

    async def test_delete_and_clear_return_false(self, failing_store):
        assert await failing_store.delete("k") is False
        assert await failing_store.clear_by_pattern("*") is False

    async def test_errors_are_counted(self, failing_store):
        await failing_store.get("k")
        await failing_store.set("k", "v")
        assert failing_store.counters()["errors"] == 2

    async def test_unserializable_value_is_not_stored(self, cache_store, fake_redis):
        assert await cache_store.set("k", {"obj": object()}) is False
        assert "k" not in fake_redis.data

    async def test_corrupt_payload_is_a_miss(self, cache_store, fake_redis):
        fake_redis.data["k"] = "{not json"
        assert await cache_store.get("k") is None

    async def test_slow_backend_is_bounded(self):
        store = CacheStore(SlowRedisBackend(delay=5.0), operation_timeout=0.01)
        assert await store.get("k") is None

    async def test_disconnected_backend_is_a_miss(self):
        store = CacheStore(CacheTestFactory.disconnected_backend())
        assert not store.is_connected
        assert await store.get("k") is None
        assert await store.set("k", "v") is False

    async def test_disabled_store_never_touches_backend(self, fake_redis):
        store = CacheStore(fake_redis, enabled=False)
        assert await store.set("k", "v") is False
        assert await store.get("k") is None
        assert fake_redis.get_calls == 0

    async def test_connect_failure_degrades(self):
        store = CacheStore(CacheTestFactory.failing_backend())
        assert await store.connect() is False

    async def test_connect_success(self):
        backend = FakeRedisBackend(connected=False)
        store = CacheStore(backend)
        assert await store.connect() is True
        assert store.is_connected

        await store.disconnect()
        assert not store.is_connected


@pytest.mark.unit
class TestCacheQuery:
    async def test_miss_runs_query_and_caches(self, cache_store):
        calls = 0

        async def query():
            nonlocal calls
            calls += 1
            return [{"id": 1}]

        first = await cache_store.cache_query("housing", {"region_id": 1}, query, ttl=60)
        second = await cache_store.cache_query("housing", {"region_id": 1}, query, ttl=60)

        assert first == second == [{"id": 1}]
        assert calls == 1

    async def test_equal_params_in_any_order_share_entry(self, cache_store):
        calls = 0

        async def query():
            nonlocal calls
            calls += 1
            return {"ok": True}

        await cache_store.cache_query("rental", {"a": 1, "b": 2}, query)
        await cache_store.cache_query("rental", {"b": 2, "a": 1}, query)

        assert calls == 1

    async def test_concurrent_misses_are_coalesced(self, cache_store):
        calls = 0
        release = asyncio.Event()

        async def query():
            nonlocal calls
            calls += 1
            await release.wait()
            return {"ok": True}

        tasks = [
            asyncio.create_task(cache_store.cache_query("analytics", {"r": 1}, query))
            for _ in range(4)
        ]
        await asyncio.sleep(0.01)
        release.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert all(r == {"ok": True} for r in results)

    async def test_cancelled_caller_does_not_fail_concurrent_callers(self, cache_store, fake_redis):
        release = asyncio.Event()

        async def query():
            await release.wait()
            return [1]

        first = asyncio.create_task(cache_store.cache_query("housing", {"r": 1}, query))
        await asyncio.sleep(0.01)
        second = asyncio.create_task(cache_store.cache_query("housing", {"r": 1}, query))
        await asyncio.sleep(0.01)

        first.cancel()
        await asyncio.sleep(0)
        release.set()

        assert await second == [1]
        await asyncio.sleep(0)
        assert orjson.loads(fake_redis.data[cache_store.generate_key("housing", {"r": 1})]) == [1]

    async def test_query_error_propagates_and_is_not_cached(self, cache_store, fake_redis):
        async def query():
            raise RuntimeError("db down")

        with pytest.raises(RuntimeError):
            await cache_store.cache_query("housing", {"r": 1}, query)

        assert fake_redis.data == {}

    async def test_works_without_backend(self):
        store = CacheStore(None)

        async def query():
            return 5

        assert await store.cache_query("housing", {}, query) == 5


@pytest.mark.unit
class TestHealthAndStats:
    async def test_healthy(self, cache_store):
        health = await cache_store.health_check()
        assert health["status"] == HealthStatus.HEALTHY.value
        assert "latency_ms" in health

    async def test_unhealthy(self):
        store = CacheStore(CacheTestFactory.failing_backend())
        health = await store.health_check()
        assert health["status"] == HealthStatus.UNHEALTHY.value
        assert "error" in health

    async def test_disconnected(self):
        store = CacheStore(CacheTestFactory.disconnected_backend())
        assert (await store.health_check())["status"] == HealthStatus.DISCONNECTED.value

    async def test_stats_include_redis_info(self, cache_store):
        await cache_store.set("k", "v")
        stats = await cache_store.get_stats()

        assert stats["connected"] is True
        assert stats["memory"]["used_memory_human"] == "1.00K"
        assert stats["keyspace"] == {"db0": 1}

    async def test_stats_when_disconnected(self):
        store = CacheStore(None)
        stats = await store.get_stats()
        assert stats["connected"] is False
        assert "memory" not in stats
