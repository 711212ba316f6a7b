"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_AD_BANNER_INDICATORS,
    DEFAULT_BATCH_DELAY_SECONDS,
    DEFAULT_CONCURRENCY,
    DEFAULT_DOMAIN_DISCOVERY_LIMIT,
    DEFAULT_FETCH_BACKEND,
    DEFAULT_GAMBLING_INDICATORS,
    DEFAULT_HEADLESS,
    DEFAULT_ILLEGAL_SERVER_INDICATORS,
    DEFAULT_MAX_CYCLES,
    DEFAULT_MAX_DOMAIN_RETRIES,
    DEFAULT_MAX_KEYWORDS_PER_ITEM,
    DEFAULT_MIN_KEYWORD_LENGTH,
    DEFAULT_PERSIST_UNKNOWN_SITES,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_SEARCH_DELAY_SECONDS,
    DEFAULT_SEARCH_URL,
    DEFAULT_SEED_DOMAINS,
    DEFAULT_SEED_KEYWORDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .types import FetchBackend, JSONDict, JSONValue
from .url import normalize_domain


def _as_int(value: Any, key: str) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Invalid bool for '{key}': {value!r}")


def _as_str_list(value: Any, key: str) -> list[str]:
    # Comma-separated strings are accepted for env/CLI style inputs.
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, Iterable) and not isinstance(value, (bytes, Mapping)):
        return [str(item).strip() for item in value if str(item).strip()]
    raise ValueError(f"Invalid string list for '{key}': {value!r}")


def _to_backend(value: Any) -> FetchBackend:
    if isinstance(value, FetchBackend):
        return value
    if isinstance(value, str):
        return FetchBackend(value.strip().lower())
    raise ValueError(f"Invalid backend value: {value!r}")


def _dedupe_domains(values: Iterable[str]) -> list[str]:
    dedup: dict[str, None] = {}
    for item in values:
        domain = normalize_domain(item)
        if domain:
            dedup.setdefault(domain, None)
    return list(dedup)


def _dedupe_keywords(values: Iterable[str]) -> list[str]:
    dedup: dict[str, None] = {}
    for item in values:
        keyword = item.strip()
        if keyword:
            dedup.setdefault(keyword, None)
    return list(dedup)


@dataclass(slots=True)
class CrawlConfig:
    """Top-level crawler configuration used by scheduler/fetcher/classifier."""

    seed_domains: list[str] = field(default_factory=lambda: list(DEFAULT_SEED_DOMAINS))
    seed_keywords: list[str] = field(default_factory=lambda: list(DEFAULT_SEED_KEYWORDS))

    max_cycles: int = DEFAULT_MAX_CYCLES
    concurrency: int = DEFAULT_CONCURRENCY
    search_delay_seconds: float = DEFAULT_SEARCH_DELAY_SECONDS
    batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS
    max_domain_retries: int = DEFAULT_MAX_DOMAIN_RETRIES
    domain_discovery_limit: int = DEFAULT_DOMAIN_DISCOVERY_LIMIT

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retries: int = DEFAULT_RETRIES
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    backend: FetchBackend = DEFAULT_FETCH_BACKEND
    headless: bool = DEFAULT_HEADLESS
    user_agent: str = DEFAULT_USER_AGENT
    search_url: str = DEFAULT_SEARCH_URL

    gambling_indicators: list[str] = field(default_factory=lambda: list(DEFAULT_GAMBLING_INDICATORS))
    illegal_server_indicators: list[str] = field(
        default_factory=lambda: list(DEFAULT_ILLEGAL_SERVER_INDICATORS)
    )
    ad_banner_indicators: list[str] = field(default_factory=lambda: list(DEFAULT_AD_BANNER_INDICATORS))
    min_keyword_length: int = DEFAULT_MIN_KEYWORD_LENGTH
    max_keywords_per_item: int | None = DEFAULT_MAX_KEYWORDS_PER_ITEM
    persist_unknown_sites: bool = DEFAULT_PERSIST_UNKNOWN_SITES

    metadata: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.seed_domains = _dedupe_domains(self.seed_domains)
        self.seed_keywords = _dedupe_keywords(self.seed_keywords)
        self.backend = _to_backend(self.backend)

        if self.max_cycles <= 0:
            raise ValueError("max_cycles must be > 0")
        if self.concurrency <= 0:
            raise ValueError("concurrency must be > 0")
        if self.search_delay_seconds < 0:
            raise ValueError("search_delay_seconds must be >= 0")
        if self.batch_delay_seconds < 0:
            raise ValueError("batch_delay_seconds must be >= 0")
        if self.max_domain_retries < 0:
            raise ValueError("max_domain_retries must be >= 0")
        if self.domain_discovery_limit <= 0:
            raise ValueError("domain_discovery_limit must be > 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds must be >= 0")
        if self.min_keyword_length < 2:
            raise ValueError("min_keyword_length must be >= 2")
        if self.max_keywords_per_item is not None and self.max_keywords_per_item <= 0:
            raise ValueError("max_keywords_per_item must be > 0 when set")
        if not self.search_url.startswith(("http://", "https://")):
            raise ValueError(f"search_url must be an http(s) URL: {self.search_url!r}")

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility."""

        return {
            "seed_domains": self.seed_domains,
            "seed_keywords": self.seed_keywords,
            "max_cycles": self.max_cycles,
            "concurrency": self.concurrency,
            "search_delay_seconds": self.search_delay_seconds,
            "batch_delay_seconds": self.batch_delay_seconds,
            "max_domain_retries": self.max_domain_retries,
            "domain_discovery_limit": self.domain_discovery_limit,
            "timeout_seconds": self.timeout_seconds,
            "retries": self.retries,
            "retry_backoff_seconds": self.retry_backoff_seconds,
            "backend": self.backend.value,
            "headless": self.headless,
            "user_agent": self.user_agent,
            "search_url": self.search_url,
            "gambling_indicators": self.gambling_indicators,
            "illegal_server_indicators": self.illegal_server_indicators,
            "ad_banner_indicators": self.ad_banner_indicators,
            "min_keyword_length": self.min_keyword_length,
            "max_keywords_per_item": self.max_keywords_per_item,
            "persist_unknown_sites": self.persist_unknown_sites,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary."""

        def _list(key: str, default: Iterable[str]) -> list[str]:
            value = payload.get(key)
            if value is None:
                return list(default)
            return _as_str_list(value, key)

        return cls(
            seed_domains=_list("seed_domains", DEFAULT_SEED_DOMAINS),
            seed_keywords=_list("seed_keywords", DEFAULT_SEED_KEYWORDS),
            max_cycles=int(payload.get("max_cycles", DEFAULT_MAX_CYCLES)),
            concurrency=int(payload.get("concurrency", DEFAULT_CONCURRENCY)),
            search_delay_seconds=float(
                payload.get("search_delay_seconds", DEFAULT_SEARCH_DELAY_SECONDS)
            ),
            batch_delay_seconds=float(
                payload.get("batch_delay_seconds", DEFAULT_BATCH_DELAY_SECONDS)
            ),
            max_domain_retries=int(payload.get("max_domain_retries", DEFAULT_MAX_DOMAIN_RETRIES)),
            domain_discovery_limit=int(
                payload.get("domain_discovery_limit", DEFAULT_DOMAIN_DISCOVERY_LIMIT)
            ),
            timeout_seconds=float(payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            retries=int(payload.get("retries", DEFAULT_RETRIES)),
            retry_backoff_seconds=float(
                payload.get("retry_backoff_seconds", DEFAULT_RETRY_BACKOFF_SECONDS)
            ),
            backend=_to_backend(payload.get("backend", DEFAULT_FETCH_BACKEND)),
            headless=_as_bool(payload.get("headless", DEFAULT_HEADLESS), "headless"),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            search_url=str(payload.get("search_url", DEFAULT_SEARCH_URL)),
            gambling_indicators=_list("gambling_indicators", DEFAULT_GAMBLING_INDICATORS),
            illegal_server_indicators=_list(
                "illegal_server_indicators",
                DEFAULT_ILLEGAL_SERVER_INDICATORS,
            ),
            ad_banner_indicators=_list("ad_banner_indicators", DEFAULT_AD_BANNER_INDICATORS),
            min_keyword_length=int(payload.get("min_keyword_length", DEFAULT_MIN_KEYWORD_LENGTH)),
            max_keywords_per_item=_as_int(
                payload.get("max_keywords_per_item", DEFAULT_MAX_KEYWORDS_PER_ITEM),
                "max_keywords_per_item",
            ),
            persist_unknown_sites=_as_bool(
                payload.get("persist_unknown_sites", DEFAULT_PERSIST_UNKNOWN_SITES),
                "persist_unknown_sites",
            ),
            metadata=dict(payload.get("metadata", {})),
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")

    return CrawlConfig.from_dict(payload)


def save_config(config: CrawlConfig, path: str | Path) -> None:
    """Save CrawlConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(
            yaml.safe_dump(payload, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "CrawlConfig",
    "load_config",
    "save_config",
]
