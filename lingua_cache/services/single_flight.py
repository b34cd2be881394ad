"""
Single-Flight Request Coalescing

Concurrent cache misses for the same key share one computation instead of
each calling the model.

    request A ──┐
    request B ──┼──> one task (download → transcode → model) ──> result to all
    request C ──┘

Rules:
- The first caller for a key starts the task; later callers join it
- Each caller awaits the task through asyncio.shield, so cancelling one
  caller (client disconnect) does not cancel the work for the others
- When the last waiting caller is cancelled, the task is cancelled too
- Failures are delivered to every waiter; nothing is remembered afterwards,
  so the next request retries
- The entry is removed when the task finishes; completed results are served
  by the cache, not by this map
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from lingua_cache.core.config.constants import Stage
from lingua_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


@dataclass
class _Call:
    task: asyncio.Task
    waiters: int = 0


class SingleFlight:
    """
    In-flight computation map keyed by cache key.

    STAGE-2.5: Single-flight

    Usage:
        flight = SingleFlight()
        value, shared = await flight.run(key, lambda: compute(...))
    """

    def __init__(self):
        self._calls: dict[str, _Call] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._calls

    def __len__(self) -> int:
        return len(self._calls)

    async def run(self, key: str, fn: Callable[[], Awaitable[Any]]) -> tuple[Any, bool]:
        """
        Run ``fn`` once per key across concurrent callers.

        Returns:
            (value, shared) where shared is True for callers that joined an
            existing computation
        """
        call = self._calls.get(key)
        shared = call is not None

        if call is None:
            call = _Call(task=asyncio.ensure_future(fn()))
            self._calls[key] = call
            call.task.add_done_callback(lambda _task, key=key, call=call: self._forget(key, call))
        else:
            log_stage(logger, Stage.SINGLE_FLIGHT, "Joining in-flight computation", cache_key=key)

        call.waiters += 1
        try:
            return await asyncio.shield(call.task), shared
        finally:
            call.waiters -= 1
            if call.waiters == 0 and not call.task.done():
                log_stage(
                    logger, Stage.SINGLE_FLIGHT, "All waiters gone, cancelling computation",
                    level="warning", cache_key=key,
                )
                call.task.cancel()

    def _forget(self, key: str, call: _Call) -> None:
        if self._calls.get(key) is call:
            del self._calls[key]
        # Retrieve the outcome so an unobserved failure is not reported as lost
        if not call.task.cancelled():
            call.task.exception()
