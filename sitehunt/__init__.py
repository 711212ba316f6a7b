"""Site-hunting crawler package: frontier, scheduler, fetch port, and classifier."""

from .classifier import ClassifierConfig, ClassifierPolicy, ResultClassifier
from .config import CrawlConfig, load_config, save_config
from .fetcher import BrowserFetcher, build_search_query, build_search_url
from .frontier import EnqueueResult, EnqueueStatus, FrontierStore
from .guard import ConcurrencyGuard
from .port import PageFetchPort
from .scheduler import CrawlScheduler
from .stats import StatsCollector
from .storage import Storage, TargetSiteStore
from .types import (
    Classification,
    CrawlStage,
    CrawlStats,
    CrawlTask,
    DomainRetryMetadata,
    ErrorRecord,
    ExtractedItem,
    ExtractionHint,
    FetchBackend,
    FetchResponse,
    LinkType,
    PageExtraction,
    PageTask,
    SchedulerState,
    SearchHit,
    SearchTask,
    SiteType,
    TargetSiteRecord,
    utc_now_iso,
)
from .url import host_from_url, normalize_domain, normalize_url, resolve_url

__all__ = [
    "BrowserFetcher",
    "Classification",
    "ClassifierConfig",
    "ClassifierPolicy",
    "ConcurrencyGuard",
    "CrawlConfig",
    "CrawlScheduler",
    "CrawlStage",
    "CrawlStats",
    "CrawlTask",
    "DomainRetryMetadata",
    "EnqueueResult",
    "EnqueueStatus",
    "ErrorRecord",
    "ExtractedItem",
    "ExtractionHint",
    "FetchBackend",
    "FetchResponse",
    "FrontierStore",
    "LinkType",
    "PageExtraction",
    "PageFetchPort",
    "PageTask",
    "ResultClassifier",
    "SchedulerState",
    "SearchHit",
    "SearchTask",
    "SiteType",
    "StatsCollector",
    "Storage",
    "TargetSiteRecord",
    "TargetSiteStore",
    "build_search_query",
    "build_search_url",
    "host_from_url",
    "load_config",
    "normalize_domain",
    "normalize_url",
    "resolve_url",
    "save_config",
    "utc_now_iso",
]
