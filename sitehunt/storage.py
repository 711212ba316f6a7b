"""Filesystem-backed storage for discovered target sites and run manifests.

Storage owns the on-disk layout. Other modules should use this API instead of
building paths manually.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable

from .config import CrawlConfig
from .types import CrawlStats, ErrorRecord, JSONDict, TargetSiteRecord


LOGGER = logging.getLogger(__name__)


@runtime_checkable
class TargetSiteStore(Protocol):
    """Durable keyed store of confirmed target sites."""

    def all_identifiers(self) -> set[str]:
        ...

    def upsert(self, record: TargetSiteRecord) -> TargetSiteRecord:
        ...


class Storage:
    """Persist crawl outputs under a single `output_dir` root."""

    def __init__(self, output_dir: str | Path, *, load_existing: bool = True) -> None:
        self.output_dir = Path(output_dir)

        self.sites_dir = self.output_dir / "sites"
        self.manifests_dir = self.output_dir / "manifests"
        self.logs_dir = self.output_dir / "logs"

        self.target_sites_path = self.sites_dir / "target_sites.jsonl"
        self.errors_path = self.sites_dir / "errors.jsonl"
        self.crawl_config_path = self.manifests_dir / "crawl_config.json"
        self.crawl_stats_path = self.manifests_dir / "crawl_stats.json"

        self._jsonl_lock = threading.Lock()
        self._state_lock = threading.Lock()

        self._records: dict[str, TargetSiteRecord] = {}

        self._ensure_layout()
        if load_existing:
            self._load_state()

    @property
    def paths(self) -> JSONDict:
        """Return important output paths for logging/CLI status messages."""

        return {
            "output_dir": str(self.output_dir),
            "target_sites": str(self.target_sites_path),
            "errors": str(self.errors_path),
            "crawl_config": str(self.crawl_config_path),
            "crawl_stats": str(self.crawl_stats_path),
            "log_dir": str(self.logs_dir),
        }

    def _ensure_layout(self) -> None:
        self.sites_dir.mkdir(parents=True, exist_ok=True)
        self.manifests_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def _load_state(self) -> None:
        if not self.target_sites_path.exists():
            return

        with self.target_sites_path.open("r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = TargetSiteRecord.from_json(json.loads(line))
                except (json.JSONDecodeError, ValueError, TypeError) as exc:
                    LOGGER.debug(
                        "Skipping unreadable target site row %s:%d: %s",
                        self.target_sites_path,
                        line_number,
                        exc,
                    )
                    continue
                self._records.setdefault(record.identifier, record)

    def all_identifiers(self) -> set[str]:
        """Return snapshot copy of persisted target site identifiers."""

        with self._state_lock:
            return set(self._records)

    def get(self, identifier: str) -> TargetSiteRecord | None:
        with self._state_lock:
            return self._records.get(identifier)

    def records(self) -> list[TargetSiteRecord]:
        """Return persisted records in first-write order."""

        with self._state_lock:
            return list(self._records.values())

    def upsert(self, record: TargetSiteRecord) -> TargetSiteRecord:
        """Persist `record` unless its identifier exists; return the stored row.

        The first write for an identifier wins. A failed append leaves the
        index untouched so a later call can retry.
        """

        with self._state_lock:
            existing = self._records.get(record.identifier)
            if existing is not None:
                return existing
            self._append_jsonl(self.target_sites_path, record.to_json())
            self._records[record.identifier] = record
            return record

    def save_error(self, record: ErrorRecord) -> None:
        """Append error record to `sites/errors.jsonl`."""

        self._append_jsonl(self.errors_path, record.to_json())

    def save_crawl_config(self, config: CrawlConfig | Mapping[str, Any]) -> None:
        """Write crawl config manifest atomically as JSON."""

        payload: Mapping[str, Any]
        if isinstance(config, CrawlConfig):
            payload = config.to_dict()
        else:
            payload = config
        self._atomic_write_json(self.crawl_config_path, dict(payload))

    def save_crawl_stats(self, stats: CrawlStats | Mapping[str, Any]) -> None:
        """Write crawl stats manifest atomically as JSON."""

        payload: Mapping[str, Any]
        if isinstance(stats, CrawlStats):
            payload = stats.to_json()
        else:
            payload = stats
        self._atomic_write_json(self.crawl_stats_path, dict(payload))

    def _append_jsonl(self, path: Path, payload: Mapping[str, Any]) -> None:
        line = json.dumps(payload, ensure_ascii=False, sort_keys=True)
        with self._jsonl_lock:
            with path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")

    @staticmethod
    def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
        content = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise


__all__ = [
    "Storage",
    "TargetSiteStore",
]
