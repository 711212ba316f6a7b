"""Social platform post extraction (X, YouTube)."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import parse_qs, urlsplit

from ..constants import SNS_X_HOSTS, SNS_YOUTUBE_HOSTS
from ..types import CrawlTask, ExtractedItem, PageExtraction
from ..url import extract_anchors_from_html, host_matches, normalize_url
from .base import RenderedPage, extract_meta_description, extract_title, make_soup


# Platform link shorteners/redirectors carrying the real target in a query param.
REDIRECT_PARAMS = ("q", "url", "u")


class SocialPostStrategy:
    """Extract a post's title/description and the links leaving the platform."""

    def __init__(self, name: str, platform_hosts: Sequence[str]) -> None:
        self.name = name
        self.platform_hosts = tuple(platform_hosts)

    def extract(self, page: RenderedPage, task: CrawlTask) -> PageExtraction:
        soup = make_soup(page.html)
        title = extract_title(soup)
        description = extract_meta_description(soup)

        items: list[ExtractedItem] = []
        if title or description:
            items.append(ExtractedItem(description=description, title=title))

        seen: set[str] = set()
        for url, anchor_text in extract_anchors_from_html(page.html, base_url=page.base_url):
            target = self._unwrap(url)
            if target is None or target in seen:
                continue
            seen.add(target)
            items.append(ExtractedItem(description=anchor_text, url=target, title=anchor_text or None))

        return PageExtraction(url=page.base_url, items=items, strategy=self.name)

    def _unwrap(self, url: str) -> str | None:
        parsed = urlsplit(url)
        if not host_matches(parsed.hostname or "", self.platform_hosts):
            return url

        params = parse_qs(parsed.query)
        for key in REDIRECT_PARAMS:
            values = params.get(key)
            if values:
                target = normalize_url(values[0])
                if target and not host_matches(urlsplit(target).hostname or "", self.platform_hosts):
                    return target
        return None


def x_strategy() -> SocialPostStrategy:
    return SocialPostStrategy("sns_x", SNS_X_HOSTS + ("t.co",))


def youtube_strategy() -> SocialPostStrategy:
    return SocialPostStrategy("sns_youtube", SNS_YOUTUBE_HOSTS)


__all__ = [
    "SocialPostStrategy",
    "x_strategy",
    "youtube_strategy",
]
