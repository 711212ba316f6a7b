"""Mutual-exclusion regions protecting shared frontier state."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from .frontier import FrontierStore
from .types import SearchHit


class ConcurrencyGuard:
    """Two independent asyncio locks for one crawl run.

    - `draining()` serializes removal of entries from the pending-result queue
      so concurrent drainers never pop the same hit.
    - `merging()` serializes batch merges into domain/keyword/site state.

    asyncio locks wake waiters in FIFO order. Neither region may be held
    across a fetch dispatch.
    """

    def __init__(self) -> None:
        self._queue_lock = asyncio.Lock()
        self._merge_lock = asyncio.Lock()

        self._drain_entries = 0
        self._merge_entries = 0

    @asynccontextmanager
    async def draining(self) -> AsyncIterator[None]:
        async with self._queue_lock:
            self._drain_entries += 1
            yield

    @asynccontextmanager
    async def merging(self) -> AsyncIterator[None]:
        async with self._merge_lock:
            self._merge_entries += 1
            yield

    async def drain_batch(self, frontier: FrontierStore, size: int) -> list[SearchHit]:
        """Atomically pop up to `size` pending hits from `frontier`."""

        async with self.draining():
            return frontier.dequeue_result_batch(size)

    @property
    def merge_locked(self) -> bool:
        return self._merge_lock.locked()

    @property
    def queue_locked(self) -> bool:
        return self._queue_lock.locked()

    def snapshot(self) -> dict[str, int]:
        return {
            "drain_entries": self._drain_entries,
            "merge_entries": self._merge_entries,
        }


__all__ = ["ConcurrencyGuard"]
