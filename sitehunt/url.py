"""URL and domain helpers shared by the classifier, scheduler and extractors.

Identifiers built from these helpers must stay stable across runs because the
target store deduplicates on them.
"""

from __future__ import annotations

import posixpath
import re
from typing import Iterable
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup


WEB_SCHEMES = frozenset({"http", "https"})
DEFAULT_PORTS = {"http": 80, "https": 443}
IGNORED_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:", "sms:")

# Ad and referral parameters that never change which page is served.
TRACKING_PARAMS = frozenset({"fbclid", "gclid", "igshid", "mc_cid", "mc_eid", "ref_src", "spm"})


def _bare_host(host: str) -> str:
    host = host.strip().lower().strip(".")
    return host[4:] if host.startswith("www.") else host


def host_from_url(url: str) -> str:
    """Return the lowercased host of `url` without a `www.` prefix."""

    try:
        return _bare_host(urlsplit(url).hostname or "")
    except ValueError:
        return ""


def normalize_domain(domain_or_url: str) -> str:
    """Reduce a bare domain or a full URL to its comparable host form."""

    raw = (domain_or_url or "").strip()
    if not raw:
        return ""
    if "://" not in raw:
        raw = "//" + raw
    host = host_from_url(raw)
    if host:
        return host
    # urlsplit rejects some malformed netlocs (bad ports, stray brackets)
    return _bare_host(raw.lstrip("/").split("/", 1)[0].rsplit(":", 1)[0])


def leading_label(domain: str) -> str:
    """`casino` for `casino.example.com`."""

    return normalize_domain(domain).partition(".")[0]


def host_matches(host: str, candidates: Iterable[str]) -> bool:
    """True when `host` is one of `candidates` or a subdomain of one."""

    host = normalize_domain(host)
    if not host:
        return False
    for candidate in candidates:
        parent = normalize_domain(candidate)
        if parent and (host == parent or host.endswith("." + parent)):
            return True
    return False


def _clean_query(query: str) -> str:
    kept = [
        (key, value)
        for key, value in parse_qsl(query, keep_blank_values=True)
        if key.lower() not in TRACKING_PARAMS and not key.lower().startswith("utm_")
    ]
    return urlencode(kept, doseq=True)


def _clean_path(path: str) -> str:
    path = posixpath.normpath(re.sub(r"/{2,}", "/", path or "/"))
    if not path.startswith("/"):
        path = "/" + path.lstrip(".")
    return path.rstrip("/") or "/"


def normalize_url(url: str) -> str | None:
    """Canonical form of an absolute web URL, or None when it is not one.

    Host and scheme are lowercased, default ports, fragments and tracking
    parameters dropped. Remaining query parameters keep their order since
    board software routes on them.
    """

    raw = (url or "").strip()
    try:
        parts = urlsplit(raw)
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if scheme not in WEB_SCHEMES or not host:
        return None

    netloc = host
    if port is not None and DEFAULT_PORTS[scheme] != port:
        netloc = f"{host}:{port}"
    return urlunsplit((scheme, netloc, _clean_path(parts.path), _clean_query(parts.query), ""))


def resolve_url(base_url: str, href: str | None, *, normalize: bool = True) -> str | None:
    """Absolute URL for an href found on `base_url`, skipping non-web links."""

    href = (href or "").strip()
    if not href or href.lower().startswith(IGNORED_HREF_PREFIXES):
        return None

    absolute = urljoin(base_url, href)
    if normalize:
        return normalize_url(absolute)
    return absolute if normalize_url(absolute) else None


def extract_anchors_from_html(html: str | bytes, *, base_url: str) -> list[tuple[str, str]]:
    """Collect `(url, text)` for each distinct outbound link, in page order."""

    anchors: dict[str, str] = {}
    for element in BeautifulSoup(html, "lxml").find_all(["a", "area"]):
        url = resolve_url(base_url, element.get("href"))
        if url and url not in anchors:
            anchors[url] = element.get_text(" ", strip=True) or (element.get("title") or "").strip()
    return list(anchors.items())


__all__ = [
    "extract_anchors_from_html",
    "host_from_url",
    "host_matches",
    "leading_label",
    "normalize_domain",
    "normalize_url",
    "resolve_url",
]
