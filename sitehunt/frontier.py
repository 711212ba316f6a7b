"""In-memory frontier state for one crawl run.

The store holds the domain queue, keyword vocabulary, per-domain search
history, expansion metadata, the pending search-hit queue, and the set of
confirmed target sites. It performs no I/O and no locking; callers that mutate
it from concurrent tasks go through `ConcurrencyGuard`.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .constants import DEFAULT_MIN_KEYWORD_LENGTH
from .types import DomainRetryMetadata, ExtractionHint, SearchHit
from .url import normalize_domain


class EnqueueStatus(str, Enum):
    """Result status for domain enqueue attempts."""

    ENQUEUED = "enqueued"
    SKIPPED_INVALID = "skipped_invalid"
    SKIPPED_QUEUED = "skipped_queued"
    SKIPPED_SEARCHED = "skipped_searched"


@dataclass(frozen=True, slots=True)
class EnqueueResult:
    """Outcome of one domain enqueue attempt."""

    status: EnqueueStatus
    domain: str | None = None

    @property
    def accepted(self) -> bool:
        return self.status == EnqueueStatus.ENQUEUED


class FrontierStore:
    """Queues, sets, and maps describing crawl progress.

    - Domains are deduplicated against both the queue and the search history.
    - The vocabulary keeps insertion order so keyword snapshots are stable.
    - History only grows: a keyword applied to a domain is never pending again.
    """

    def __init__(self, *, min_keyword_length: int = DEFAULT_MIN_KEYWORD_LENGTH) -> None:
        self.min_keyword_length = min_keyword_length

        self._domain_queue: deque[str] = deque()
        self._queued_domains: set[str] = set()

        # dict keys double as an insertion-ordered set
        self._vocabulary: dict[str, None] = {}
        self._history: dict[str, set[str]] = {}
        self._metadata: dict[str, DomainRetryMetadata] = {}

        self._results: deque[SearchHit] = deque()
        self._seen_results: set[str] = set()
        self._confirmed: set[str] = set()

        self._enqueued_count = 0
        self._dequeued_count = 0
        self._requeued_count = 0
        self._results_enqueued = 0
        self._results_dequeued = 0
        self._results_duplicate = 0

    # Domain frontier

    def enqueue_domain(self, domain: str) -> EnqueueResult:
        """Queue a newly discovered domain unless it is queued or already searched."""

        normalized = normalize_domain(domain)
        if not normalized:
            return EnqueueResult(EnqueueStatus.SKIPPED_INVALID)
        if normalized in self._queued_domains:
            return EnqueueResult(EnqueueStatus.SKIPPED_QUEUED, normalized)
        if normalized in self._history:
            return EnqueueResult(EnqueueStatus.SKIPPED_SEARCHED, normalized)

        self._push_domain(normalized)
        self._enqueued_count += 1
        return EnqueueResult(EnqueueStatus.ENQUEUED, normalized)

    def enqueue_domains(self, domains: Iterable[str]) -> list[EnqueueResult]:
        """Attempt to enqueue multiple domains, preserving input order."""

        return [self.enqueue_domain(domain) for domain in domains]

    def requeue_domain(self, domain: str) -> EnqueueResult:
        """Put an already searched domain back in the queue for expansion."""

        normalized = normalize_domain(domain)
        if not normalized:
            return EnqueueResult(EnqueueStatus.SKIPPED_INVALID)
        if normalized in self._queued_domains:
            return EnqueueResult(EnqueueStatus.SKIPPED_QUEUED, normalized)

        self._push_domain(normalized)
        self._requeued_count += 1
        return EnqueueResult(EnqueueStatus.ENQUEUED, normalized)

    def _push_domain(self, domain: str) -> None:
        self._domain_queue.append(domain)
        self._queued_domains.add(domain)

    def dequeue_domain(self) -> str | None:
        """Pop the oldest queued domain, or None when the queue is empty."""

        if not self._domain_queue:
            return None
        domain = self._domain_queue.popleft()
        self._queued_domains.discard(domain)
        self._dequeued_count += 1
        return domain

    def is_queued(self, domain: str) -> bool:
        return normalize_domain(domain) in self._queued_domains

    def has_pending_domains(self) -> bool:
        return bool(self._domain_queue)

    def queued_domains(self) -> list[str]:
        """Return queued domains in dequeue order."""

        return list(self._domain_queue)

    # Keyword vocabulary and history

    def add_keyword(self, keyword: str) -> bool:
        """Add a trimmed keyword to the vocabulary. Returns True when new."""

        if not isinstance(keyword, str):
            return False
        trimmed = keyword.strip()
        if len(trimmed) < self.min_keyword_length or trimmed in self._vocabulary:
            return False
        self._vocabulary[trimmed] = None
        return True

    def add_keywords(self, keywords: Iterable[str]) -> int:
        """Add many keywords and return how many were new."""

        return sum(1 for keyword in keywords if self.add_keyword(keyword))

    def seed_keywords(self, keywords: Iterable[str]) -> int:
        """Add operator-supplied keywords. Only empty strings are rejected."""

        added = 0
        for keyword in keywords:
            trimmed = keyword.strip() if isinstance(keyword, str) else ""
            if trimmed and trimmed not in self._vocabulary:
                self._vocabulary[trimmed] = None
                added += 1
        return added

    def keywords(self) -> list[str]:
        """Return a snapshot of the vocabulary in insertion order."""

        return list(self._vocabulary)

    def ensure_history(self, domain: str) -> set[str]:
        """Return the applied-keyword set for a domain, creating it if needed."""

        normalized = normalize_domain(domain)
        return self._history.setdefault(normalized, set())

    def record_keyword_applied(self, domain: str, keyword: str) -> None:
        """Record that `keyword` has been searched against `domain`."""

        self.ensure_history(domain).add(keyword)

    def applied_keywords(self, domain: str) -> set[str]:
        """Return a copy of keywords already searched against `domain`."""

        return set(self._history.get(normalize_domain(domain), ()))

    def domains_with_history(self) -> list[str]:
        """Return searched domains in first-search order."""

        return list(self._history)

    def pending_keywords_for(self, domain: str) -> list[str]:
        """Return vocabulary keywords not yet applied to `domain`, in vocabulary order."""

        applied = self._history.get(normalize_domain(domain), set())
        return [keyword for keyword in self._vocabulary if keyword not in applied]

    # Expansion metadata

    def ensure_metadata(self, domain: str) -> DomainRetryMetadata:
        """Return retry metadata for `domain`, initializing it on first search."""

        normalized = normalize_domain(domain)
        metadata = self._metadata.get(normalized)
        if metadata is None:
            metadata = DomainRetryMetadata(retry_count=0, keyword_count=len(self._vocabulary))
            self._metadata[normalized] = metadata
        return metadata

    def metadata_for(self, domain: str) -> DomainRetryMetadata | None:
        return self._metadata.get(normalize_domain(domain))

    # Pending search hits

    def enqueue_result(
        self, url: str, hint: ExtractionHint | str = ExtractionHint.GENERIC
    ) -> SearchHit | None:
        """Queue one search hit for exploration.

        A URL is explored at most once per run; repeats return None.
        """

        if url in self._seen_results:
            self._results_duplicate += 1
            return None
        self._seen_results.add(url)
        hit = SearchHit(url=url, hint=ExtractionHint.resolve(hint))
        self._results.append(hit)
        self._results_enqueued += 1
        return hit

    def dequeue_result_batch(self, max_items: int) -> list[SearchHit]:
        """Pop up to `max_items` hits in FIFO order."""

        if max_items <= 0:
            raise ValueError("max_items must be > 0")

        batch: list[SearchHit] = []
        while self._results and len(batch) < max_items:
            batch.append(self._results.popleft())
        self._results_dequeued += len(batch)
        return batch

    def has_pending_results(self) -> bool:
        return bool(self._results)

    @property
    def pending_result_count(self) -> int:
        return len(self._results)

    # Confirmed target sites

    def seed_confirmed(self, identifiers: Iterable[str]) -> int:
        """Load already persisted identifiers. Returns the number added."""

        before = len(self._confirmed)
        self._confirmed.update(item for item in identifiers if item)
        return len(self._confirmed) - before

    def mark_confirmed(self, identifier: str) -> bool:
        """Mark a target site identifier as confirmed. Returns True when new."""

        if not identifier or identifier in self._confirmed:
            return False
        self._confirmed.add(identifier)
        return True

    def is_confirmed(self, identifier: str) -> bool:
        return identifier in self._confirmed

    def confirmed(self) -> set[str]:
        """Return snapshot of confirmed identifiers."""

        return set(self._confirmed)

    def snapshot(self) -> dict[str, int]:
        """Return frontier counters for logs/stats reporting."""

        return {
            "domains_queued": len(self._domain_queue),
            "domains_searched": len(self._history),
            "domains_enqueued": self._enqueued_count,
            "domains_dequeued": self._dequeued_count,
            "domains_requeued": self._requeued_count,
            "keywords": len(self._vocabulary),
            "results_pending": len(self._results),
            "results_enqueued": self._results_enqueued,
            "results_dequeued": self._results_dequeued,
            "results_duplicate": self._results_duplicate,
            "confirmed_sites": len(self._confirmed),
        }


__all__ = [
    "EnqueueResult",
    "EnqueueStatus",
    "FrontierStore",
]
