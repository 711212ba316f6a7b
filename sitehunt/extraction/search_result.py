"""Search-engine result page extraction: organic result links with hints."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

from bs4 import Tag

from ..constants import COMMUNITY_PATH_MARKERS, SNS_X_HOSTS, SNS_YOUTUBE_HOSTS
from ..types import CrawlTask, ExtractionHint, SearchHit, SearchTask
from ..url import host_from_url, host_matches, normalize_url, resolve_url
from .base import RenderedPage, make_soup


# How far up the DOM to look for a highlighted snippet next to a result title.
SNIPPET_SEARCH_DEPTH = 8


def hint_for_url(url: str) -> ExtractionHint:
    """Pick the extraction strategy a search hit should be explored with."""

    host = host_from_url(url)
    if host_matches(host, SNS_X_HOSTS):
        return ExtractionHint.SNS_X
    if host_matches(host, SNS_YOUTUBE_HOSTS):
        return ExtractionHint.SNS_YOUTUBE

    path = (urlsplit(url).path or "/").lower() + "/"
    if any(marker in path for marker in COMMUNITY_PATH_MARKERS):
        return ExtractionHint.COMMUNITY_SITE
    return ExtractionHint.GENERIC


def _unwrap_redirect(url: str) -> str:
    # Result anchors are sometimes `/url?q=<target>` redirects.
    parsed = urlsplit(url)
    if parsed.path == "/url":
        params = parse_qs(parsed.query)
        for key in ("q", "url"):
            values = params.get(key)
            if values and values[0].startswith(("http://", "https://")):
                return values[0]
    return url


class SearchResultStrategy:
    """Extract organic result links from a rendered search-result page.

    When `require_keyword_match` is set, a result is kept only if its title or
    a highlighted snippet near it mentions the searched keyword.
    """

    name = "search_result"

    def __init__(self, *, require_keyword_match: bool = True) -> None:
        self.require_keyword_match = require_keyword_match

    def extract(self, page: RenderedPage, task: CrawlTask) -> list[SearchHit]:
        soup = make_soup(page.html)
        keyword = task.keyword if isinstance(task, SearchTask) else None
        engine_host = host_from_url(page.base_url)

        hits: list[SearchHit] = []
        seen: set[str] = set()

        for anchor in soup.find_all("a", href=True):
            title_element = anchor.find("h3")
            if title_element is None:
                continue

            href = anchor["href"].strip()
            if href.startswith(("#", "/search")):
                continue

            resolved = resolve_url(page.base_url, href, normalize=False)
            if not resolved:
                continue
            target = normalize_url(_unwrap_redirect(resolved))
            if not target:
                continue

            target_host = host_from_url(target)
            if target_host == engine_host or "google." in target_host:
                continue
            if target in seen:
                continue

            if self.require_keyword_match and keyword:
                title = title_element.get_text(" ", strip=True)
                if keyword.lower() not in title.lower() and not self._snippet_mentions(anchor, keyword):
                    continue

            seen.add(target)
            hits.append(SearchHit(url=target, hint=hint_for_url(target)))

        return hits

    @staticmethod
    def _snippet_mentions(anchor: Tag, keyword: str) -> bool:
        # The result block is the widest ancestor that holds only this title.
        container: Tag = anchor
        current = anchor.parent
        depth = 0
        while (
            current is not None
            and current.name not in {"body", "html", "[document]"}
            and depth < SNIPPET_SEARCH_DEPTH
        ):
            if len(current.find_all("h3")) > 1:
                break
            container = current
            current = current.parent
            depth += 1

        return any(
            keyword.lower() in highlight.get_text(" ", strip=True).lower()
            for highlight in container.find_all(["em", "b"])
        )


__all__ = [
    "SearchResultStrategy",
    "hint_for_url",
]
