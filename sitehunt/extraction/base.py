"""Shared extraction contract and HTML helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from bs4 import BeautifulSoup

from ..types import CrawlTask, FetchResponse


@dataclass(slots=True)
class RenderedPage:
    """HTML produced by a rendering backend for one task."""

    requested_url: str
    final_url: str
    html: str

    @property
    def base_url(self) -> str:
        return self.final_url or self.requested_url


class ExtractionStrategy(Protocol):
    """One extraction variant: turns a rendered page into port output."""

    name: str

    def extract(self, page: RenderedPage, task: CrawlTask) -> FetchResponse:
        ...


def make_soup(html: str | bytes) -> BeautifulSoup:
    if isinstance(html, bytes):
        html = html.decode("utf-8", errors="replace")
    return BeautifulSoup(html, "lxml")


def extract_title(soup: BeautifulSoup) -> str | None:
    meta = soup.find("meta", attrs={"property": "og:title"})
    if meta and (meta.get("content") or "").strip():
        return meta["content"].strip()
    if soup.title and soup.title.get_text(strip=True):
        return soup.title.get_text(" ", strip=True)
    heading = soup.find(["h1", "h2"])
    if heading:
        text = heading.get_text(" ", strip=True)
        if text:
            return text
    return None


def extract_meta_description(soup: BeautifulSoup) -> str:
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        meta = soup.find("meta", attrs=attrs)
        if meta and (meta.get("content") or "").strip():
            return meta["content"].strip()
    return ""


__all__ = [
    "ExtractionStrategy",
    "RenderedPage",
    "extract_meta_description",
    "extract_title",
    "make_soup",
]
