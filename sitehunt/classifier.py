"""Keyword-indicator classification of extracted page content.

The classifier maps one `PageExtraction` into candidate community domains,
candidate target sites, and candidate keywords. It is deterministic and has no
side effects; the scheduler decides what to do with its output.
"""

from __future__ import annotations

import logging
import re
import string
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Protocol
from urllib.parse import urlsplit

from .config import CrawlConfig
from .constants import (
    COMMUNITY_PATH_MARKERS,
    DEFAULT_AD_BANNER_INDICATORS,
    DEFAULT_GAMBLING_INDICATORS,
    DEFAULT_ILLEGAL_SERVER_INDICATORS,
    DEFAULT_MAX_KEYWORDS_PER_ITEM,
    DEFAULT_MIN_KEYWORD_LENGTH,
    DEFAULT_PERSIST_UNKNOWN_SITES,
    DISCORD_HOSTS,
    OPEN_CHAT_HOSTS,
    TELEGRAM_HOSTS,
)
from .types import (
    SITE_TYPE_PRIORITY,
    Classification,
    ExtractedItem,
    LinkType,
    PageExtraction,
    SiteType,
    TargetSiteRecord,
)
from .url import host_from_url, host_matches, normalize_domain, normalize_url


LOGGER = logging.getLogger(__name__)

TOKEN_STRIP_CHARS = string.punctuation + "“”‘’「」『』【】《》〈〉·…"
KEYWORD_STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "you", "your", "are", "this", "that", "from",
        "http", "https", "www", "com", "net", "org", "html", "php",
        "있습니다", "합니다", "그리고", "하지만", "입니다",
    }
)


class ClassifierPolicy(Protocol):
    """Anything that turns one page extraction into frontier candidates."""

    def classify(self, extraction: PageExtraction, source_url: str) -> Classification:
        ...


@dataclass(slots=True)
class ClassifierConfig:
    """Indicator lists and keyword filters for `ResultClassifier`."""

    gambling_indicators: list[str] = field(default_factory=lambda: list(DEFAULT_GAMBLING_INDICATORS))
    illegal_server_indicators: list[str] = field(
        default_factory=lambda: list(DEFAULT_ILLEGAL_SERVER_INDICATORS)
    )
    ad_banner_indicators: list[str] = field(default_factory=lambda: list(DEFAULT_AD_BANNER_INDICATORS))
    community_hosts: list[str] = field(default_factory=list)
    min_keyword_length: int = DEFAULT_MIN_KEYWORD_LENGTH
    max_keywords_per_item: int | None = DEFAULT_MAX_KEYWORDS_PER_ITEM
    persist_unknown_sites: bool = DEFAULT_PERSIST_UNKNOWN_SITES

    @classmethod
    def from_crawl_config(cls, config: CrawlConfig) -> "ClassifierConfig":
        return cls(
            gambling_indicators=list(config.gambling_indicators),
            illegal_server_indicators=list(config.illegal_server_indicators),
            ad_banner_indicators=list(config.ad_banner_indicators),
            community_hosts=list(config.seed_domains),
            min_keyword_length=config.min_keyword_length,
            max_keywords_per_item=config.max_keywords_per_item,
            persist_unknown_sites=config.persist_unknown_sites,
        )


def _lowered(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(value.strip().lower() for value in values if value and value.strip())


class ResultClassifier:
    """Indicator-list classifier for extracted page items.

    Site type priority is fixed: gambling, illegal private server, ad banner
    host, chat invite link, community, unknown. The first category that matches
    wins.
    """

    def __init__(self, config: ClassifierConfig | None = None) -> None:
        self.config = config or ClassifierConfig()
        self._gambling = _lowered(self.config.gambling_indicators)
        self._illegal_server = _lowered(self.config.illegal_server_indicators)
        self._ad_banner = _lowered(self.config.ad_banner_indicators)

    def classify(self, extraction: PageExtraction | Any, source_url: str) -> Classification:
        """Classify every item of one page. Malformed items are skipped."""

        result = Classification()
        seen_targets: set[str] = set()

        for raw_item in self._iter_items(extraction):
            try:
                item = self._coerce_item(raw_item)
                if item is None:
                    continue
                self._classify_item(item, source_url, result, seen_targets)
            except Exception as exc:
                LOGGER.debug(
                    "Skipping malformed item from %s: %s: %s",
                    source_url,
                    exc.__class__.__name__,
                    exc,
                )

        return result

    @staticmethod
    def _iter_items(extraction: Any) -> list[Any]:
        if isinstance(extraction, Mapping):
            items = extraction.get("items", extraction.get("extracted_data"))
        else:
            items = getattr(extraction, "items", None)
        if not isinstance(items, (list, tuple)):
            return []
        return list(items)

    @staticmethod
    def _coerce_item(raw_item: Any) -> ExtractedItem | None:
        if isinstance(raw_item, ExtractedItem):
            return raw_item
        if isinstance(raw_item, Mapping):
            return ExtractedItem.from_mapping(raw_item)
        return None

    def _classify_item(
        self,
        item: ExtractedItem,
        source_url: str,
        result: Classification,
        seen_targets: set[str],
    ) -> None:
        description = item.description if isinstance(item.description, str) else ""
        keywords = self.extract_keywords(description)
        result.new_keywords.update(keywords)

        if not item.url:
            return

        url = normalize_url(item.url)
        if url is None:
            return

        link_type = item.link_type or self.infer_link_type(url)
        if link_type == LinkType.COMMUNITY_SITE:
            domain = normalize_domain(url)
            if domain:
                result.new_community_domains.add(domain)
            return

        # Navigation links back into the page being explored are never targets.
        if normalize_domain(url) == normalize_domain(source_url):
            return

        site_type = self.classify_site_type(" ".join(filter(None, (item.title, description))), link_type)
        if site_type == SiteType.UNKNOWN and not self.config.persist_unknown_sites:
            return

        identifier = url if link_type.is_chat_invite else normalize_domain(url)
        if not identifier or identifier in seen_targets:
            return
        seen_targets.add(identifier)

        result.new_target_sites.append(
            TargetSiteRecord(
                url=url,
                identifier=identifier,
                site_type=site_type,
                link_type=link_type,
                site_name=item.title,
                source_url=source_url,
            )
        )

    def classify_site_type(self, text: str, link_type: LinkType | None = None) -> SiteType:
        """Return the highest-priority site type whose rule matches."""

        lowered = (text or "").lower()
        rules = {
            SiteType.GAMBLING: lambda: self._mentions(lowered, self._gambling),
            SiteType.ILLEGAL_PRIVATE_SERVER: lambda: self._mentions(lowered, self._illegal_server),
            SiteType.AD_BANNER_HOST: lambda: self._mentions(lowered, self._ad_banner),
            SiteType.CHAT_INVITE_LINK: lambda: link_type is not None and link_type.is_chat_invite,
            SiteType.COMMUNITY: lambda: link_type == LinkType.COMMUNITY_SITE,
            SiteType.UNKNOWN: lambda: True,
        }
        for site_type in SITE_TYPE_PRIORITY:
            if rules[site_type]():
                return site_type
        return SiteType.UNKNOWN

    @staticmethod
    def _mentions(text: str, indicators: tuple[str, ...]) -> bool:
        return any(indicator in text for indicator in indicators)

    def infer_link_type(self, url: str) -> LinkType:
        """Infer a link type from the URL alone."""

        host = host_from_url(url)
        path = (urlsplit(url).path or "/").lower()

        if host_matches(host, OPEN_CHAT_HOSTS):
            return LinkType.OPEN_CHAT_LINK
        if host == "discord.gg" or (host_matches(host, DISCORD_HOSTS) and path.startswith("/invite")):
            return LinkType.DISCORD_LINK
        if host_matches(host, TELEGRAM_HOSTS):
            return LinkType.TELEGRAM_LINK
        if host_matches(host, self.config.community_hosts):
            return LinkType.COMMUNITY_SITE
        if any(marker in path + "/" for marker in COMMUNITY_PATH_MARKERS):
            return LinkType.COMMUNITY_SITE
        return LinkType.WEBSITE

    def extract_keywords(self, text: str) -> list[str]:
        """Split free text into candidate search keywords.

        Tokens are lowercased and stripped of surrounding punctuation; short,
        numeric, URL-like and stopword tokens are dropped.
        """

        if not text:
            return []

        keywords: dict[str, None] = {}
        for token in re.split(r"\s+", text):
            word = token.strip(TOKEN_STRIP_CHARS).lower()
            if len(word) < self.config.min_keyword_length:
                continue
            if word.isdigit() or "/" in word or "://" in word:
                continue
            if word in KEYWORD_STOPWORDS:
                continue
            keywords.setdefault(word, None)
            if (
                self.config.max_keywords_per_item is not None
                and len(keywords) >= self.config.max_keywords_per_item
            ):
                break
        return list(keywords)


__all__ = [
    "ClassifierConfig",
    "ClassifierPolicy",
    "KEYWORD_STOPWORDS",
    "ResultClassifier",
]
