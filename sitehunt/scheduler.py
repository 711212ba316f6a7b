"""Frontier-expansion crawl scheduler.

One crawl run repeats a cycle of three phases until the frontier is exhausted,
`stop()` is called, or `max_cycles` is reached:

1. domain phase: search one queued community domain with every keyword it has
   not been searched with yet, queueing same-domain result links;
2. exploration phase: visit queued result links in concurrent batches, classify
   each page, and merge every batch into the frontier under the merge lock;
3. expansion check (only when both phases were idle): re-queue searched
   domains that have unseen keywords and are still within the retry ceilings.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Iterable

from .classifier import ClassifierConfig, ClassifierPolicy, ResultClassifier
from .config import CrawlConfig
from .frontier import FrontierStore
from .guard import ConcurrencyGuard
from .port import PageFetchPort
from .stats import StatsCollector
from .storage import TargetSiteStore
from .types import (
    Classification,
    CrawlStage,
    CrawlTask,
    ErrorRecord,
    FetchResponse,
    LinkType,
    PageExtraction,
    PageTask,
    SchedulerState,
    SearchHit,
    SearchTask,
    TargetSiteRecord,
)
from .url import leading_label, normalize_domain, normalize_url


LOGGER = logging.getLogger(__name__)


async def _resolve(value: Any) -> Any:
    # Stores may be plain or coroutine based.
    if inspect.isawaitable(value):
        return await value
    return value


def _task_url(task: CrawlTask) -> str:
    if isinstance(task, SearchTask):
        return f"{task.domain} [{task.keyword}]"
    return task.url


class CrawlScheduler:
    """Drive crawl cycles over one owned `FrontierStore`.

    The frontier is rebuilt at every `start()` and left in place afterwards so
    the last run's state stays inspectable through `frontier`.
    """

    def __init__(
        self,
        config: CrawlConfig,
        port: PageFetchPort,
        store: TargetSiteStore,
        *,
        classifier: ClassifierPolicy | None = None,
        stats: StatsCollector | None = None,
    ) -> None:
        self.config = config
        self.port = port
        self.store = store
        self.classifier = classifier or ResultClassifier(ClassifierConfig.from_crawl_config(config))
        self.stats = stats or StatsCollector()

        self._state = SchedulerState.IDLE
        self._stop_requested = False
        self._stop_event: asyncio.Event | None = None

        self._frontier = FrontierStore(min_keyword_length=config.min_keyword_length)
        self._guard = ConcurrencyGuard()
        self._in_flight: set[str] = set()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def frontier(self) -> FrontierStore:
        return self._frontier

    @property
    def guard(self) -> ConcurrencyGuard:
        return self._guard

    def is_running(self) -> bool:
        return self._state != SchedulerState.IDLE

    def stop(self) -> None:
        """Request a cooperative stop. In-flight fetches finish; nothing new is dispatched."""

        if self._state != SchedulerState.RUNNING:
            LOGGER.info("stop() ignored; scheduler is %s", self._state.value)
            return

        LOGGER.info("Stop requested; finishing in-flight work")
        self._stop_requested = True
        self._state = SchedulerState.STOPPING
        if self._stop_event is not None:
            self._stop_event.set()

    async def start(self) -> None:
        """Run one crawl to completion. A call while already running is ignored."""

        if self._state != SchedulerState.IDLE:
            LOGGER.warning("Crawl already running; ignoring start()")
            return

        self._state = SchedulerState.RUNNING
        self._stop_requested = False
        self._stop_event = asyncio.Event()
        self._frontier = FrontierStore(min_keyword_length=self.config.min_keyword_length)
        self._guard = ConcurrencyGuard()
        self._in_flight = set()

        try:
            self._seed_frontier()
            await self._seed_confirmed()
            await self._run_cycles()
        except Exception as exc:
            LOGGER.exception("Crawl loop failed: %s", exc)
            self._record_error(CrawlStage.SCHEDULE, "", exc)
        finally:
            self._state = SchedulerState.IDLE
            self._stop_event = None
            snapshot = self._frontier.snapshot()
            self.stats.record_frontier_snapshot(snapshot)
            LOGGER.info("Crawl finished: %s", snapshot)

    def _seed_frontier(self) -> None:
        results = self._frontier.enqueue_domains(self.config.seed_domains)
        self.stats.record_enqueue_many(results)
        added = self._frontier.seed_keywords(self.config.seed_keywords)
        self.stats.record_keywords_added(added)
        LOGGER.info(
            "Seeded frontier with %d domains and %d keywords",
            sum(1 for result in results if result.accepted),
            added,
        )

    async def _seed_confirmed(self) -> None:
        try:
            identifiers = await self._call_store(self.store.all_identifiers)
        except Exception as exc:
            LOGGER.warning(
                "Could not load confirmed sites; starting empty: %s: %s",
                exc.__class__.__name__,
                exc,
            )
            return
        added = self._frontier.seed_confirmed(identifiers or ())
        LOGGER.info("Loaded %d confirmed target sites", added)

    def _should_stop(self) -> bool:
        return self._stop_requested

    async def _delay(self, seconds: float) -> None:
        """Sleep for `seconds`, waking early when a stop is requested."""

        if seconds <= 0 or self._stop_event is None:
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def _run_cycles(self) -> None:
        cycle = 0
        while cycle < self.config.max_cycles:
            if self._should_stop():
                LOGGER.info("Stopping before cycle %d", cycle + 1)
                return

            cycle += 1
            self.stats.record_cycle()

            searched = await self._domain_phase()
            if self._should_stop():
                return
            explored = await self._exploration_phase()
            if searched or explored:
                continue
            if self._should_stop():
                return

            if not await self._expansion_check():
                LOGGER.info("Frontier exhausted after %d cycles", cycle)
                return

        LOGGER.info("Reached max_cycles=%d", self.config.max_cycles)

    # Domain phase

    async def _domain_phase(self) -> bool:
        domain = self._frontier.dequeue_domain()
        if domain is None:
            return False

        self._frontier.ensure_history(domain)
        self._frontier.ensure_metadata(domain)
        keywords = self._frontier.pending_keywords_for(domain)
        LOGGER.info("Searching %s with %d pending keywords", domain, len(keywords))

        for index, keyword in enumerate(keywords):
            if self._should_stop():
                break
            if index > 0:
                await self._delay(self.config.search_delay_seconds)
                if self._should_stop():
                    break

            response = await self._dispatch(SearchTask(domain=domain, keyword=keyword), CrawlStage.SEARCH)
            self._frontier.record_keyword_applied(domain, keyword)
            await self._handle_search_response(domain, response)

        return True

    async def _handle_search_response(self, domain: str, response: FetchResponse) -> None:
        if response is None:
            self.stats.record_search(ok=False)
            return

        if isinstance(response, PageExtraction):
            self.stats.record_search(ok=True)
            classification = self._classify(response, response.url)
            if classification is not None:
                await self.merge_batch([classification])
            return

        queued = 0
        dropped = 0
        repeated = 0
        for hit in response:
            url = normalize_url(hit.url) if isinstance(hit, SearchHit) else None
            if url is None or normalize_domain(url) != domain:
                dropped += 1
                continue
            if self._frontier.enqueue_result(url, hit.hint) is None:
                repeated += 1
                continue
            queued += 1

        self.stats.record_search(
            ok=True,
            links_queued=queued,
            links_dropped=dropped,
            links_duplicate=repeated,
        )
        if dropped:
            LOGGER.debug("Dropped %d off-domain links from %s search", dropped, domain)

    # Exploration phase

    async def _exploration_phase(self) -> bool:
        had_work = False
        while not self._should_stop():
            batch = await self._guard.drain_batch(self._frontier, self.config.concurrency)
            if not batch:
                break
            had_work = True

            LOGGER.info(
                "Exploring batch of %d links (%d pending)",
                len(batch),
                self._frontier.pending_result_count,
            )
            responses = await asyncio.gather(
                *(self._dispatch(PageTask(url=hit.url, hint=hit.hint), CrawlStage.EXPLORE) for hit in batch),
                return_exceptions=True,
            )

            classifications: list[Classification] = []
            for hit, response in zip(batch, responses):
                if isinstance(response, BaseException):
                    LOGGER.warning("Exploration of %s failed: %r", hit.url, response)
                    self.stats.record_page(ok=False)
                    continue
                if not isinstance(response, PageExtraction):
                    self.stats.record_page(ok=False)
                    continue

                self.stats.record_page(ok=True, strategy=response.strategy)
                classification = self._classify(response, hit.url)
                if classification is not None:
                    classifications.append(classification)

            await self.merge_batch(classifications)

            if self._frontier.has_pending_results():
                await self._delay(self.config.batch_delay_seconds)

        return had_work

    # Expansion check

    async def _expansion_check(self) -> bool:
        """Re-queue searched domains that have unseen keywords. Returns True if any were."""

        requeued: list[str] = []
        async with self._guard.merging():
            for domain in self._frontier.domains_with_history():
                if self._should_stop():
                    break

                pending = self._frontier.pending_keywords_for(domain)
                if not pending or self._frontier.is_queued(domain):
                    continue

                metadata = self._frontier.ensure_metadata(domain)
                if (
                    metadata.retry_count > self.config.max_domain_retries
                    or metadata.keyword_count > self.config.domain_discovery_limit
                ):
                    continue

                metadata.retry_count += 1
                metadata.keyword_count += len(pending)
                if self._frontier.requeue_domain(domain).accepted:
                    requeued.append(domain)

        self.stats.record_expansion(len(requeued))
        if requeued:
            LOGGER.info("Expanding %d searched domains: %s", len(requeued), ", ".join(requeued))
        return bool(requeued)

    # Merge

    async def merge_batch(self, classifications: Iterable[Classification]) -> None:
        """Merge one batch of classifications into the frontier.

        Frontier mutation happens inside the merge region; store writes happen
        between its two entries. Identifiers being written are reserved so a
        concurrent merge counts them as duplicates instead of writing twice.
        """

        classifications = list(classifications)
        async with self._guard.merging():
            to_persist = self._reserve_sites(classifications)

        outcomes = [(record, await self._persist_site(record)) for record in to_persist]

        async with self._guard.merging():
            for record, saved in outcomes:
                self._in_flight.discard(record.identifier)
                if saved:
                    self._confirm_site(record)
            for classification in classifications:
                added = self._frontier.add_keywords(
                    keyword for keyword in sorted(classification.new_keywords) if len(keyword.strip()) > 1
                )
                self.stats.record_keywords_added(added)
            self.stats.record_batch_merged()

    def _reserve_sites(self, classifications: list[Classification]) -> list[TargetSiteRecord]:
        to_persist: list[TargetSiteRecord] = []
        for classification in classifications:
            for domain in sorted(classification.new_community_domains):
                self.stats.record_enqueue(self._frontier.enqueue_domain(domain))

            for record in classification.new_target_sites:
                if not record.identifier:
                    continue
                if self._frontier.is_confirmed(record.identifier) or record.identifier in self._in_flight:
                    self.stats.record_site_duplicate()
                    continue
                self._in_flight.add(record.identifier)
                to_persist.append(record)
        return to_persist

    async def _persist_site(self, record: TargetSiteRecord) -> bool:
        try:
            await self._call_store(self.store.upsert, record)
        except Exception as exc:
            LOGGER.warning(
                "Failed to persist %s: %s: %s",
                record.identifier,
                exc.__class__.__name__,
                exc,
            )
            self.stats.record_site_failed()
            self._record_error(CrawlStage.PERSIST, record.url, exc)
            return False
        return True

    def _confirm_site(self, record: TargetSiteRecord) -> None:
        self._frontier.mark_confirmed(record.identifier)
        self.stats.record_site_saved(record.site_type)
        LOGGER.info("Confirmed %s site %s", record.site_type.value, record.identifier)

        added = 0
        if record.site_name and record.site_name.strip() != record.identifier:
            added += int(self._frontier.add_keyword(record.site_name))
        if not record.link_type.is_chat_invite and record.link_type != LinkType.COMMUNITY_SITE:
            added += int(self._frontier.add_keyword(leading_label(record.identifier)))
        self.stats.record_keywords_added(added)

    # Helpers

    @staticmethod
    async def _call_store(method: Any, *args: Any) -> Any:
        # Plain store methods do file or network I/O; keep them off the loop.
        if inspect.iscoroutinefunction(method):
            return await method(*args)
        return await _resolve(await asyncio.to_thread(method, *args))

    async def _dispatch(self, task: CrawlTask, stage: CrawlStage) -> FetchResponse:
        try:
            return await self.port.fetch(task)
        except Exception as exc:
            LOGGER.warning(
                "Port raised for %s: %s: %s",
                _task_url(task),
                exc.__class__.__name__,
                exc,
            )
            self._record_error(stage, _task_url(task), exc)
            return None

    def _classify(self, extraction: PageExtraction, source_url: str) -> Classification | None:
        try:
            return self.classifier.classify(extraction, source_url)
        except Exception as exc:
            LOGGER.warning(
                "Classification failed for %s: %s: %s",
                source_url,
                exc.__class__.__name__,
                exc,
            )
            self.stats.record_classification_failed()
            self._record_error(CrawlStage.CLASSIFY, source_url, exc)
            return None

    def _record_error(self, stage: CrawlStage, url: str, exc: BaseException) -> None:
        save_error = getattr(self.store, "save_error", None)
        if not callable(save_error):
            return
        try:
            save_error(ErrorRecord.from_exception(stage=stage, url=url, exc=exc))
        except Exception as save_exc:
            LOGGER.debug("Could not record error row: %s", save_exc)
            return
        self.stats.record_error_saved()


__all__ = ["CrawlScheduler"]
