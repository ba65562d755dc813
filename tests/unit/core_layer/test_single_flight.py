"""
Unit Tests for Single-Flight Coalescing
"""

import asyncio

import pytest

from housing_dashboard.core.resilience.single_flight import SingleFlight


@pytest.mark.unit
class TestSingleFlight:
    async def test_concurrent_calls_share_one_execution(self):
        flight = SingleFlight()
        calls = 0
        release = asyncio.Event()

        async def query():
            nonlocal calls
            calls += 1
            await release.wait()
            return {"rows": 3}

        tasks = [asyncio.create_task(flight.do("k", query)) for _ in range(5)]
        await asyncio.sleep(0)
        assert flight.in_flight("k")

        release.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert results == [{"rows": 3}] * 5
        assert not flight.in_flight("k")

    async def test_different_keys_run_separately(self):
        flight = SingleFlight()
        calls = []

        async def query(key):
            calls.append(key)
            return key

        results = await asyncio.gather(
            flight.do("a", lambda: query("a")),
            flight.do("b", lambda: query("b")),
        )

        assert sorted(calls) == ["a", "b"]
        assert results == ["a", "b"]

    async def test_failure_reaches_every_waiter(self):
        flight = SingleFlight()
        release = asyncio.Event()

        async def query():
            await release.wait()
            raise RuntimeError("db down")

        tasks = [asyncio.create_task(flight.do("k", query)) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, RuntimeError) for r in results)
        assert not flight.in_flight("k")

    async def test_nothing_is_remembered_after_completion(self):
        flight = SingleFlight()
        calls = 0

        async def query():
            nonlocal calls
            calls += 1
            return calls

        assert await flight.do("k", query) == 1
        assert await flight.do("k", query) == 2

    async def test_cancelling_first_caller_leaves_joiners_intact(self):
        flight = SingleFlight()
        calls = 0
        release = asyncio.Event()

        async def query():
            nonlocal calls
            calls += 1
            await release.wait()
            return "value"

        first = asyncio.create_task(flight.do("k", query))
        await asyncio.sleep(0)
        joiner = asyncio.create_task(flight.do("k", query))
        await asyncio.sleep(0)

        first.cancel()
        await asyncio.sleep(0)
        release.set()

        assert await joiner == "value"
        assert first.cancelled()
        assert calls == 1
        assert not flight.in_flight("k")

    async def test_cancelled_joiner_does_not_affect_others(self):
        flight = SingleFlight()
        release = asyncio.Event()

        async def query():
            await release.wait()
            return 7

        tasks = [asyncio.create_task(flight.do("k", query)) for _ in range(3)]
        await asyncio.sleep(0)
        tasks[1].cancel()
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert results[0] == 7
        assert isinstance(results[1], asyncio.CancelledError)
        assert results[2] == 7
