"""Contract between the scheduler and whatever executes crawl tasks."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .types import CrawlTask, FetchResponse


@runtime_checkable
class PageFetchPort(Protocol):
    """Executes one crawl task and returns extracted data.

    Implementations own timeouts and retries. Search tasks resolve to a list of
    `SearchHit`, page tasks to a `PageExtraction`; any failure resolves to
    `None` instead of raising.
    """

    async def fetch(self, task: CrawlTask) -> FetchResponse:
        ...


__all__ = ["PageFetchPort"]
