"""
Request sharing for the fetcher.

City info and traffic both geocode the city, so the same normalized URL is
often requested twice within one aggregation. Only the first caller issues
the request; later callers await the same task.
"""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

T = TypeVar("T")


class RequestDeduplicator:
    """
    One in-flight task per cache key.

    Callers await the task through ``asyncio.shield`` so a cancelled caller
    leaves the request running for the cache and for everyone else.
    """

    def __init__(self, debug: bool = False):
        self._tasks: dict[str, asyncio.Task[Any]] = {}
        self._lock = asyncio.Lock()
        self._debug = debug

    async def dedupe(self, key: str, request_fn: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            task = self._tasks.get(key)
            if task is None:
                task = asyncio.create_task(self._run(key, request_fn))
                self._tasks[key] = task
            elif self._debug:
                logger.debug(f"Joining in-flight request: {key[:80]}")

        return await asyncio.shield(task)

    async def _run(self, key: str, request_fn: Callable[[], Awaitable[T]]) -> T:
        try:
            return await request_fn()
        finally:
            async with self._lock:
                self._tasks.pop(key, None)

    def pending(self) -> int:
        return len(self._tasks)

    async def cancel_all(self) -> int:
        """Cancel every pending request; called when the fetcher closes."""
        async with self._lock:
            tasks = list(self._tasks.values())
            self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            logger.debug(f"Cancelled {len(tasks)} in-flight requests")
        return len(tasks)
