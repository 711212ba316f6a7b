"""Fallback extraction used for any page without a dedicated strategy."""

from __future__ import annotations

from ..types import CrawlTask, ExtractedItem, PageExtraction
from ..url import extract_anchors_from_html, host_from_url
from .base import RenderedPage, extract_title, make_soup


class GenericStrategy:
    """Every outbound link on the page plus its visible body text."""

    name = "generic"

    def __init__(self, *, max_text_chars: int = 20_000) -> None:
        self.max_text_chars = max_text_chars

    def extract(self, page: RenderedPage, task: CrawlTask) -> PageExtraction:
        soup = make_soup(page.html)
        for element in soup(["script", "style", "noscript"]):
            element.decompose()

        title = extract_title(soup)
        body = soup.body or soup
        text = body.get_text(" ", strip=True)[: self.max_text_chars]

        items: list[ExtractedItem] = []
        if text:
            items.append(ExtractedItem(description=text, title=title))

        own_host = host_from_url(page.base_url)
        for url, anchor_text in extract_anchors_from_html(page.html, base_url=page.base_url):
            if host_from_url(url) == own_host:
                continue
            items.append(ExtractedItem(description=anchor_text, url=url, title=anchor_text or None))

        return PageExtraction(url=page.base_url, items=items, strategy=self.name)


__all__ = ["GenericStrategy"]
