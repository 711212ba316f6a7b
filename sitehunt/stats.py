"""Run counters shared by the scheduler loop and the fetcher worker threads."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import replace
import threading
import time
from typing import Any, Iterable, Mapping

from .frontier import EnqueueResult, EnqueueStatus
from .types import CrawlStats, SiteType


def _positive(count: int) -> bool:
    return count > 0


class StatsCollector:
    """Aggregates crawl outcomes into a `CrawlStats` record plus breakdowns.

    Every mutation takes the same `threading.Lock`, so callers on worker
    threads and on the event loop may report concurrently.
    """

    def __init__(self, base: CrawlStats | None = None) -> None:
        self._lock = threading.Lock()
        self._core = base or CrawlStats()
        self._clock_start = time.monotonic()
        self._clock_stop: float | None = None

        self._enqueue_outcomes: Counter[str] = Counter()
        self._pages_by_strategy: dict[str, Counter[str]] = defaultdict(Counter)
        self._sites_by_type: Counter[str] = Counter()
        self._custom: Counter[str] = Counter()
        self._error_rows = 0
        self._last_frontier: dict[str, int | bool] = {}

    def _add(self, field_name: str, count: int = 1) -> None:
        with self._lock:
            setattr(self._core, field_name, getattr(self._core, field_name) + count)

    # Frontier

    def record_enqueue(self, outcome: EnqueueResult | EnqueueStatus) -> None:
        status = outcome.status if isinstance(outcome, EnqueueResult) else outcome
        with self._lock:
            self._enqueue_outcomes[status.value] += 1
            if status is EnqueueStatus.ENQUEUED:
                self._core.domains_enqueued += 1

    def record_enqueue_many(self, outcomes: Iterable[EnqueueResult]) -> None:
        for outcome in outcomes:
            self.record_enqueue(outcome)

    def record_frontier_snapshot(self, snapshot: Mapping[str, int | bool]) -> None:
        with self._lock:
            self._last_frontier = dict(snapshot)

    def record_cycle(self) -> None:
        self._add("cycles")

    def record_expansion(self, count: int = 1) -> None:
        """Domains put back in the queue by an expansion check."""

        if _positive(count):
            self._add("expansions", count)

    def record_keywords_added(self, count: int) -> None:
        if _positive(count):
            self._add("keywords_added", count)

    # Dispatch

    def record_search(
        self,
        *,
        ok: bool,
        links_queued: int = 0,
        links_dropped: int = 0,
        links_duplicate: int = 0,
    ) -> None:
        """One search dispatch.

        Dropped links are hits outside the searched domain; duplicate links were
        already queued earlier in the run.
        """

        with self._lock:
            self._core.searches_dispatched += 1
            self._core.searches_failed += 0 if ok else 1
            self._core.links_queued += max(0, links_queued)
            self._core.links_dropped += max(0, links_dropped)
            self._core.links_duplicate += max(0, links_duplicate)

    def record_page(self, *, ok: bool, strategy: str | None = None) -> None:
        with self._lock:
            self._core.pages_dispatched += 1
            self._core.pages_failed += 0 if ok else 1
            self._pages_by_strategy[strategy or "unknown"]["ok" if ok else "error"] += 1

    def record_classification_failed(self, count: int = 1) -> None:
        if _positive(count):
            self._add("classifications_failed", count)

    def record_batch_merged(self) -> None:
        self._add("batches_merged")

    # Persistence

    def record_site_saved(self, site_type: SiteType | str) -> None:
        key = site_type.value if isinstance(site_type, SiteType) else str(site_type)
        with self._lock:
            self._core.sites_persisted += 1
            self._sites_by_type[key] += 1

    def record_site_duplicate(self, count: int = 1) -> None:
        if _positive(count):
            self._add("sites_duplicate", count)

    def record_site_failed(self, count: int = 1) -> None:
        if _positive(count):
            self._add("sites_failed", count)

    def record_error_saved(self, count: int = 1) -> None:
        if _positive(count):
            with self._lock:
                self._error_rows += count

    def increment(self, name: str, value: int = 1) -> None:
        """Free-form counter, reported under `custom_counters`."""

        if name and value:
            with self._lock:
                self._custom[name] += value

    # Reporting

    def finish(self) -> None:
        with self._lock:
            self._core.finish()
            self._clock_stop = time.monotonic()

    def core(self) -> CrawlStats:
        with self._lock:
            return replace(self._core)

    def to_json(self) -> dict[str, Any]:
        with self._lock:
            elapsed = (self._clock_stop or time.monotonic()) - self._clock_start
            tasks = self._core.searches_dispatched + self._core.pages_dispatched

            def rate(count: int) -> float:
                return count / elapsed if elapsed > 0 else 0.0

            return {
                **self._core.to_json(),
                "duration_seconds": round(elapsed, 3),
                "throughput": {
                    "tasks_per_second": rate(tasks),
                    "sites_per_second": rate(self._core.sites_persisted),
                },
                "frontier": {
                    "enqueue_status_counts": dict(self._enqueue_outcomes),
                    "snapshot": dict(self._last_frontier),
                },
                "pages": {
                    "by_strategy": {
                        strategy: {"ok": counts["ok"], "error": counts["error"]}
                        for strategy, counts in self._pages_by_strategy.items()
                    },
                },
                "sites": {"by_site_type": dict(self._sites_by_type)},
                "storage": {"error_rows": self._error_rows},
                "custom_counters": dict(self._custom),
            }


__all__ = ["StatsCollector"]
