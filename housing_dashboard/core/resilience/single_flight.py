"""
Single-flight call coalescing.

Concurrent callers asking for the same key share one execution of the
underlying coroutine. The first caller starts it as a detached task; every
caller, the first included, awaits that task through ``asyncio.shield``.
Cancelling one caller therefore never cancels the shared execution or the
other callers. Nothing is remembered once the call settles.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from housing_dashboard.core.logging import get_logger

logger = get_logger(__name__)


class SingleFlight:
    """Coalesce concurrent identical calls on one event loop."""

    def __init__(self):
        self._pending: dict[str, asyncio.Future] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._pending

    def _settled(self, key: str, task: asyncio.Future) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        # Mark retrieved: a failure whose callers all went away is still handled
        if not task.cancelled():
            task.exception()

    async def do(self, key: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        task = self._pending.get(key)
        if task is not None:
            logger.debug("Joining in-flight call", key=key)
        else:
            task = asyncio.ensure_future(fn())
            self._pending[key] = task
            task.add_done_callback(lambda t: self._settled(key, t))
        return await asyncio.shield(task)
