"""CLI entrypoint for running a site-hunting crawl."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
import signal
import sys
from typing import Any

from .classifier import ClassifierConfig, ResultClassifier
from .config import CrawlConfig, load_config
from .fetcher import BrowserFetcher
from .scheduler import CrawlScheduler
from .stats import StatsCollector
from .storage import Storage
from .types import FetchBackend


LOGGER = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Discover and classify illicit-service sites from community boards.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML crawl config.",
    )
    parser.add_argument(
        "--output_dir",
        type=Path,
        default=Path("sitehunt_output"),
        help="Root output directory for sites/manifests/logs.",
    )

    parser.add_argument(
        "--seed_domain",
        action="append",
        default=[],
        help="Seed community domain (repeatable). Overrides config seeds if provided.",
    )
    parser.add_argument(
        "--seed_keyword",
        action="append",
        default=[],
        help="Seed search keyword (repeatable). Overrides config keywords if provided.",
    )

    parser.add_argument("--max_cycles", type=int, default=None)
    parser.add_argument("--concurrency", type=int, default=None)
    parser.add_argument("--search_delay_seconds", type=float, default=None)
    parser.add_argument("--batch_delay_seconds", type=float, default=None)
    parser.add_argument("--max_domain_retries", type=int, default=None)
    parser.add_argument("--domain_discovery_limit", type=int, default=None)

    parser.add_argument("--timeout_seconds", type=float, default=None)
    parser.add_argument("--retries", type=int, default=None)
    parser.add_argument("--retry_backoff_seconds", type=float, default=None)
    parser.add_argument(
        "--backend",
        type=str,
        choices=[backend.value for backend in FetchBackend],
        default=None,
        help="Backend for direct page visits. Searches always use selenium.",
    )
    parser.add_argument(
        "--headless",
        dest="headless",
        action="store_true",
        default=None,
        help="Run browsers headless (default comes from config).",
    )
    parser.add_argument(
        "--no_headless",
        dest="headless",
        action="store_false",
        help="Show browser windows.",
    )
    parser.add_argument("--user_agent", type=str, default=None)
    parser.add_argument("--search_url", type=str, default=None)
    parser.add_argument(
        "--persist_unknown_sites",
        action="store_true",
        help="Also persist linked websites that match no indicator list.",
    )

    parser.add_argument(
        "--print_stats_json",
        action="store_true",
        help="Print full stats JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config is not None:
        payload: dict[str, Any] = load_config(args.config).to_dict()
    else:
        payload = {}

    if args.seed_domain:
        payload["seed_domains"] = list(args.seed_domain)
    if args.seed_keyword:
        payload["seed_keywords"] = list(args.seed_keyword)

    for key in (
        "max_cycles",
        "concurrency",
        "search_delay_seconds",
        "batch_delay_seconds",
        "max_domain_retries",
        "domain_discovery_limit",
        "timeout_seconds",
        "retries",
        "retry_backoff_seconds",
        "backend",
        "headless",
        "user_agent",
        "search_url",
    ):
        value = getattr(args, key)
        if value is not None:
            payload[key] = value

    if args.persist_unknown_sites:
        payload["persist_unknown_sites"] = True

    config = CrawlConfig.from_dict(payload)
    if not config.seed_domains:
        raise ValueError("No seed domains provided. Use --config or at least one --seed_domain.")
    if not config.seed_keywords:
        raise ValueError("No seed keywords provided. Use --config or at least one --seed_keyword.")
    return config


def setup_logging(output_dir: Path, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "crawl.log"

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    # Browser automation and trafilatura are chatty at INFO/WARNING.
    for name in ("selenium", "urllib3", "trafilatura", "trafilatura.core"):
        logging.getLogger(name).setLevel(logging.ERROR)


def _install_signal_handlers(scheduler: CrawlScheduler) -> None:
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, scheduler.stop)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handler support.
            LOGGER.debug("Signal handler for %s unavailable", signum)


async def run_crawl(config: CrawlConfig, output_dir: Path) -> dict[str, Any]:
    """Run one crawl with the browser fetcher and JSONL storage."""

    storage = Storage(output_dir)
    stats = StatsCollector()
    storage.save_crawl_config(config)

    async with BrowserFetcher(config) as fetcher:
        scheduler = CrawlScheduler(
            config,
            fetcher,
            storage,
            classifier=ResultClassifier(ClassifierConfig.from_crawl_config(config)),
            stats=stats,
        )
        _install_signal_handlers(scheduler)
        await scheduler.start()

    stats.finish()
    payload = stats.to_json()
    storage.save_crawl_stats(payload)
    return {"paths": storage.paths, "stats": payload}


def print_summary(result: dict[str, Any], *, print_stats_json: bool) -> None:
    paths = result.get("paths", {})
    stats = result.get("stats", {})

    print("\n=== Crawl Complete ===")
    print(f"output_dir: {paths.get('output_dir')}")
    print(f"target_sites: {paths.get('target_sites')}")
    print(f"errors: {paths.get('errors')}")
    print(f"stats: {paths.get('crawl_stats')}")

    print("\n--- Core Stats ---")
    for key in [
        "cycles",
        "searches_dispatched",
        "searches_failed",
        "pages_dispatched",
        "pages_failed",
        "links_queued",
        "domains_enqueued",
        "expansions",
        "keywords_added",
        "sites_persisted",
        "sites_failed",
        "duration_seconds",
    ]:
        if key in stats:
            print(f"{key}: {stats[key]}")

    if print_stats_json:
        print("\n--- Full Stats JSON ---")
        print(json.dumps(stats, indent=2, sort_keys=True, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.output_dir, verbose=args.verbose)

    try:
        config = build_config(args)
    except Exception as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    logging.info(
        "Starting crawl: output_dir=%s, seed_domains=%d, seed_keywords=%d, max_cycles=%d",
        args.output_dir,
        len(config.seed_domains),
        len(config.seed_keywords),
        config.max_cycles,
    )

    try:
        result = asyncio.run(run_crawl(config, args.output_dir))
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Crawl execution failed")
        return 1

    print_summary(result, print_stats_json=args.print_stats_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
