"""In-memory snapshot cache with freshness windows and single-flight refresh.

Each key holds the last fetched value and when it was fetched:
- Fresh entry: returned as is.
- Stale entry: returned immediately while one background refresh runs
  (cache-then-revalidate).
- Missing entry: the caller waits for the fetch.

Concurrent requests for the same key share one in-flight fetch. Callers
await that fetch through ``asyncio.shield`` so a caller that goes away
never aborts a fetch other callers (or the cache) depend on.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """Cached value and the clock reading when it was fetched."""

    value: V
    fetched_at: float


class SnapshotCache(Generic[K, V]):
    """Key -> (value, fetched_at) map with at most one fetch in flight per key."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[K, CacheEntry[V]] = {}
        self._in_flight: dict[K, asyncio.Task[V]] = {}

    async def get(
        self,
        key: K,
        loader: Callable[[], Awaitable[V]],
        ttl: float,
        wait_for_fresh: bool = False,
    ) -> V:
        """
        Get a value, fetching or revalidating it as needed.

        Args:
            key: Cache key
            loader: Coroutine factory performing the actual fetch
            ttl: Freshness window in seconds
            wait_for_fresh: Wait for the refresh instead of serving a stale value

        Returns:
            Cached or freshly loaded value

        Raises:
            Whatever the loader raises, when no cached value can be served
        """
        entry = self._entries.get(key)
        if entry is not None and self._clock() - entry.fetched_at < ttl:
            return entry.value

        task = self._start_refresh(key, loader)
        if entry is not None and not wait_for_fresh:
            return entry.value

        return await asyncio.shield(task)

    def _start_refresh(self, key: K, loader: Callable[[], Awaitable[V]]) -> asyncio.Task[V]:
        # No await between lookup and insert: one task per key
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._refresh(key, loader))
            task.add_done_callback(lambda t: self._report_failure(key, t))
            self._in_flight[key] = task
        return task

    async def _refresh(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        try:
            value = await loader()
            self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())
            return value
        finally:
            self._in_flight.pop(key, None)

    @staticmethod
    def _report_failure(key: K, task: asyncio.Task[V]) -> None:
        """Log refresh failures; the stale entry (if any) stays in place."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Refresh failed for {key}: {exc!r}")

    def peek(self, key: K) -> CacheEntry[V] | None:
        """Get the cached entry without triggering a fetch."""
        return self._entries.get(key)

    def is_fresh(self, key: K, ttl: float) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() - entry.fetched_at < ttl

    def in_flight(self, key: K) -> asyncio.Task[V] | None:
        """The pending fetch for a key, if any."""
        return self._in_flight.get(key)

    def invalidate(self, key: K) -> None:
        """Drop a cached entry (an in-flight fetch still completes)."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    async def aclose(self) -> None:
        """Cancel pending fetches (shutdown)."""
        tasks = list(self._in_flight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()

    def __len__(self) -> int:
        return len(self._entries)
