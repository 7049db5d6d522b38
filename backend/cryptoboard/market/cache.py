"""Time-windowed, single-flight cache for upstream responses."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResponseCache(Generic[T]):
    """Caches loader results per key for a fixed window.

    Concurrent callers for the same key share one in-flight load, so the
    loader runs at most once per window no matter how many callers are
    waiting. Results rejected by `should_store` (by default: empty results)
    are handed to the waiters of that load but not kept, so the next call
    after them loads again.

    All access happens on the event loop; no lock is needed beyond the
    in-flight task table.
    """

    def __init__(
        self,
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
        should_store: Callable[[T], bool] = bool,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._should_store = should_store
        self._entries: dict[Hashable, tuple[float, T]] = {}
        self._inflight: dict[Hashable, asyncio.Task] = {}

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for key, loading it if absent or expired."""
        entry = self._entries.get(key)
        if entry is not None:
            stored_at, value = entry
            if self._clock() - stored_at < self._ttl:
                logger.debug("Cache hit for %s", key)
                return value
            del self._entries[key]

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, loader))
            self._inflight[key] = task
        else:
            logger.debug("Joining in-flight load for %s", key)
        # shield: one cancelled waiter must not cancel the shared load
        return await asyncio.shield(task)

    async def _load(self, key: Hashable, loader: Callable[[], Awaitable[T]]) -> T:
        try:
            value = await loader()
            if self._should_store(value):
                self._entries[key] = (self._clock(), value)
            return value
        finally:
            self._inflight.pop(key, None)

    def get(self, key: Hashable) -> T | None:
        """Fresh cached value for key, or None."""
        entry = self._entries.get(key)
        if entry is None or self._clock() - entry[0] >= self._ttl:
            return None
        return entry[1]

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop one key, or everything when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None
