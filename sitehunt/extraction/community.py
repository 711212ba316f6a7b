"""Community board post extraction: Trafilatura body text + outbound links."""

from __future__ import annotations

import logging

import trafilatura

from ..types import CrawlTask, ExtractedItem, PageExtraction
from ..url import extract_anchors_from_html, host_from_url
from .base import RenderedPage, extract_title, make_soup


LOGGER = logging.getLogger(__name__)


class CommunitySiteStrategy:
    """Extract a board post's text and the links it advertises.

    Links back to the board itself are navigation and are dropped; every other
    link becomes an item whose description is its anchor text.
    """

    name = "community_site"

    def __init__(self, *, max_links: int | None = 200) -> None:
        self.max_links = max_links

    def extract(self, page: RenderedPage, task: CrawlTask) -> PageExtraction:
        soup = make_soup(page.html)
        title = extract_title(soup)
        items: list[ExtractedItem] = []

        body_text = self._extract_body_text(page.html)
        if not body_text:
            body_text = soup.get_text(" ", strip=True)
        if body_text:
            items.append(ExtractedItem(description=body_text, title=title))

        own_host = host_from_url(page.base_url)
        link_items = 0
        for url, anchor_text in extract_anchors_from_html(page.html, base_url=page.base_url):
            if host_from_url(url) == own_host:
                continue
            items.append(ExtractedItem(description=anchor_text, url=url, title=anchor_text or None))
            link_items += 1
            if self.max_links is not None and link_items >= self.max_links:
                break

        return PageExtraction(url=page.base_url, items=items, strategy=self.name)

    @staticmethod
    def _extract_body_text(html: str) -> str:
        try:
            extracted = trafilatura.extract(
                html,
                output_format="txt",
                include_comments=True,
                include_tables=False,
                include_images=False,
                deduplicate=True,
            )
        except Exception as exc:
            LOGGER.debug("Trafilatura extraction failed: %s: %s", exc.__class__.__name__, exc)
            return ""
        return (extracted or "").strip()


__all__ = ["CommunitySiteStrategy"]
