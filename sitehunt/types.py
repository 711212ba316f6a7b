"""Records and enums passed between the frontier, scheduler, fetcher and store.

Only the standard library is imported here; every other module depends on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


class FetchBackend(str, Enum):
    """Backend used to render direct page visits."""

    REQUESTS = "requests"
    SELENIUM = "selenium"


class SiteType(str, Enum):
    """Classification of a discovered site."""

    ILLEGAL_PRIVATE_SERVER = "illegal_private_server"
    GAMBLING = "gambling"
    AD_BANNER_HOST = "ad_banner_host"
    CHAT_INVITE_LINK = "chat_invite_link"
    COMMUNITY = "community"
    UNKNOWN = "unknown"


# First match wins when an item matches several categories.
SITE_TYPE_PRIORITY: tuple[SiteType, ...] = (
    SiteType.GAMBLING,
    SiteType.ILLEGAL_PRIVATE_SERVER,
    SiteType.AD_BANNER_HOST,
    SiteType.CHAT_INVITE_LINK,
    SiteType.COMMUNITY,
    SiteType.UNKNOWN,
)


class LinkType(str, Enum):
    """What kind of destination a discovered link points at."""

    WEBSITE = "website"
    COMMUNITY_SITE = "community_site"
    OPEN_CHAT_LINK = "open_chat_link"
    DISCORD_LINK = "discord_link"
    TELEGRAM_LINK = "telegram_link"

    @property
    def is_chat_invite(self) -> bool:
        return self in {
            LinkType.OPEN_CHAT_LINK,
            LinkType.DISCORD_LINK,
            LinkType.TELEGRAM_LINK,
        }


class ExtractionHint(str, Enum):
    """Closed set of extraction strategies a task can ask for."""

    SEARCH_RESULT = "search-result-page"
    COMMUNITY_SITE = "community-site"
    SNS_X = "sns-x"
    SNS_YOUTUBE = "sns-youtube"
    GENERIC = "unknown"

    @classmethod
    def resolve(cls, value: Any) -> "ExtractionHint":
        """Map arbitrary input onto a known hint, falling back to GENERIC."""

        if isinstance(value, ExtractionHint):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.GENERIC
        return cls.GENERIC


class CrawlStage(str, Enum):
    """Scheduler stage names for error reporting."""

    SEARCH = "search"
    EXPLORE = "explore"
    CLASSIFY = "classify"
    PERSIST = "persist"
    SCHEDULE = "schedule"


class SchedulerState(str, Enum):
    """Lifecycle states of one scheduler instance."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string for manifests/JSONL."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True, slots=True)
class SearchTask:
    """Search one keyword restricted to one community domain."""

    domain: str
    keyword: str
    hint: ExtractionHint = ExtractionHint.SEARCH_RESULT


@dataclass(frozen=True, slots=True)
class PageTask:
    """Visit one URL directly and extract it with the hinted strategy."""

    url: str
    hint: ExtractionHint = ExtractionHint.GENERIC


CrawlTask = SearchTask | PageTask


@dataclass(frozen=True, slots=True)
class SearchHit:
    """A link found on a search-result page, pending exploration."""

    url: str
    hint: ExtractionHint = ExtractionHint.GENERIC


@dataclass(frozen=True, slots=True)
class ExtractedItem:
    """One unit of extracted page content (a link, a text block, or both)."""

    description: str = ""
    url: str | None = None
    title: str | None = None
    link_type: LinkType | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ExtractedItem":
        """Build an item from loosely typed backend output."""

        url = payload.get("url")
        title = payload.get("title")
        description = payload.get("description")
        raw_link_type = payload.get("link_type", payload.get("linkType"))

        link_type: LinkType | None = None
        if isinstance(raw_link_type, LinkType):
            link_type = raw_link_type
        elif isinstance(raw_link_type, str):
            try:
                link_type = LinkType(raw_link_type.strip().lower())
            except ValueError:
                link_type = None

        return cls(
            description=description if isinstance(description, str) else "",
            url=url.strip() if isinstance(url, str) and url.strip() else None,
            title=title.strip() if isinstance(title, str) and title.strip() else None,
            link_type=link_type,
        )


@dataclass(slots=True)
class PageExtraction:
    """Structured extraction of one directly visited page."""

    url: str
    items: list[ExtractedItem] = field(default_factory=list)
    strategy: str | None = None


FetchResponse = list[SearchHit] | PageExtraction | None


@dataclass(frozen=True, slots=True)
class TargetSiteRecord:
    """One classified target site, as persisted by the target store."""

    url: str
    identifier: str
    site_type: SiteType = SiteType.UNKNOWN
    link_type: LinkType = LinkType.WEBSITE
    site_name: str | None = None
    source_url: str | None = None
    discovered_at: str = field(default_factory=utc_now_iso)

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "normalized_identifier": self.identifier,
            "site_name": self.site_name,
            "site_type": self.site_type.value,
            "link_type": self.link_type.value,
            "source_url": self.source_url,
            "discovered_at": self.discovered_at,
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "TargetSiteRecord":
        identifier = payload.get("normalized_identifier") or payload.get("identifier")
        if not isinstance(identifier, str) or not identifier:
            raise ValueError(f"Target site row missing identifier: {payload!r}")

        return cls(
            url=str(payload.get("url") or identifier),
            identifier=identifier,
            site_type=SiteType(payload.get("site_type", SiteType.UNKNOWN.value)),
            link_type=LinkType(payload.get("link_type", LinkType.WEBSITE.value)),
            site_name=payload.get("site_name"),
            source_url=payload.get("source_url"),
            discovered_at=str(payload.get("discovered_at") or utc_now_iso()),
        )


@dataclass(slots=True)
class Classification:
    """Candidates produced by classifying one page."""

    new_community_domains: set[str] = field(default_factory=set)
    new_target_sites: list[TargetSiteRecord] = field(default_factory=list)
    new_keywords: set[str] = field(default_factory=set)

    @property
    def empty(self) -> bool:
        return not (self.new_community_domains or self.new_target_sites or self.new_keywords)


@dataclass(slots=True)
class DomainRetryMetadata:
    """Per-domain expansion bookkeeping."""

    retry_count: int = 0
    keyword_count: int = 0


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """One error row written to sites/errors.jsonl."""

    stage: CrawlStage
    url: str
    message: str
    error_type: str | None = None
    created_at: str = field(default_factory=utc_now_iso)
    metadata: dict[str, JSONValue] = field(default_factory=dict)

    @classmethod
    def from_exception(
        cls,
        *,
        stage: CrawlStage,
        url: str,
        exc: BaseException,
        **kwargs: Any,
    ) -> "ErrorRecord":
        return cls(
            stage=stage,
            url=url,
            message=str(exc),
            error_type=exc.__class__.__name__,
            **kwargs,
        )

    def to_json(self) -> JSONDict:
        return {
            "stage": self.stage.value,
            "url": self.url,
            "message": self.message,
            "error_type": self.error_type,
            "created_at": self.created_at,
            "metadata": self.metadata,
        }


@dataclass(slots=True)
class CrawlStats:
    """Headline counters for one run, written to `crawl_stats.json`."""

    cycles: int = 0
    searches_dispatched: int = 0
    searches_failed: int = 0
    pages_dispatched: int = 0
    pages_failed: int = 0
    batches_merged: int = 0
    links_queued: int = 0
    links_dropped: int = 0
    links_duplicate: int = 0
    classifications_failed: int = 0
    domains_enqueued: int = 0
    expansions: int = 0
    keywords_added: int = 0
    sites_persisted: int = 0
    sites_duplicate: int = 0
    sites_failed: int = 0

    started_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None

    def finish(self) -> None:
        self.finished_at = utc_now_iso()

    def to_json(self) -> JSONDict:
        return {
            "cycles": self.cycles,
            "searches_dispatched": self.searches_dispatched,
            "searches_failed": self.searches_failed,
            "pages_dispatched": self.pages_dispatched,
            "pages_failed": self.pages_failed,
            "batches_merged": self.batches_merged,
            "links_queued": self.links_queued,
            "links_dropped": self.links_dropped,
            "links_duplicate": self.links_duplicate,
            "classifications_failed": self.classifications_failed,
            "domains_enqueued": self.domains_enqueued,
            "expansions": self.expansions,
            "keywords_added": self.keywords_added,
            "sites_persisted": self.sites_persisted,
            "sites_duplicate": self.sites_duplicate,
            "sites_failed": self.sites_failed,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


__all__ = [
    "Classification",
    "CrawlStage",
    "CrawlStats",
    "CrawlTask",
    "DomainRetryMetadata",
    "ErrorRecord",
    "ExtractedItem",
    "ExtractionHint",
    "FetchBackend",
    "FetchResponse",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "LinkType",
    "PageExtraction",
    "PageTask",
    "SITE_TYPE_PRIORITY",
    "SchedulerState",
    "SearchHit",
    "SearchTask",
    "SiteType",
    "TargetSiteRecord",
    "utc_now_iso",
]
