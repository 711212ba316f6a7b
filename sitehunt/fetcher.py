"""Browser-backed page fetch port with requests/selenium backends and retries."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable
from urllib.parse import urlencode

import requests
from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.firefox.options import Options as FirefoxOptions

from .config import CrawlConfig
from .extraction import RenderedPage, StrategyRegistry
from .types import CrawlTask, FetchBackend, FetchResponse, PageTask, SearchTask
from .url import normalize_url


LOGGER = logging.getLogger(__name__)


class RetryableFetchError(RuntimeError):
    """A render attempt failed in a way worth retrying."""


class TerminalFetchError(RuntimeError):
    """A render attempt failed and retrying cannot help."""


@dataclass(frozen=True, slots=True)
class _AttemptConfig:
    attempts: int
    backoff_seconds: float


def build_search_query(domain: str, keyword: str) -> str:
    """Search-engine query restricting `keyword` to one site."""

    return f'site:{domain} "{keyword}"'


def build_search_url(search_url: str, domain: str, keyword: str) -> str:
    separator = "&" if "?" in search_url else "?"
    return f"{search_url}{separator}{urlencode({'q': build_search_query(domain, keyword)})}"


class BrowserFetcher:
    """Execute crawl tasks on a worker pool and extract their pages.

    Concurrency model:
    - Work runs on a `ThreadPoolExecutor` sized by `config.concurrency`.
    - Each worker thread owns its selenium driver and requests session, so
      no browser instance is shared between threads.
    - Search tasks always render through selenium; page tasks use
      `config.backend`.
    """

    def __init__(
        self,
        config: CrawlConfig,
        *,
        registry: StrategyRegistry | None = None,
    ) -> None:
        self.config = config
        self.registry = registry or StrategyRegistry()

        self._executor = ThreadPoolExecutor(
            max_workers=config.concurrency,
            thread_name_prefix="sitehunt-fetch",
        )
        self._thread_local = threading.local()

        self._drivers_lock = threading.Lock()
        self._drivers: list = []
        self._sessions: list[requests.Session] = []

        self._closed = False
        self._closed_lock = threading.Lock()

    async def fetch(self, task: CrawlTask) -> FetchResponse:
        """Run one task on the worker pool. Never raises; failures return None."""

        if self._is_closed():
            return None

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, self.fetch_sync, task)
        except Exception as exc:
            LOGGER.warning("Fetch dispatch failed for %r: %s: %s", task, exc.__class__.__name__, exc)
            return None

    def fetch_sync(self, task: CrawlTask) -> FetchResponse:
        """Render and extract one task on the calling thread."""

        url = self.url_for(task)
        if url is None:
            LOGGER.warning("Skipping task with unusable URL: %r", task)
            return None

        backend = FetchBackend.SELENIUM if isinstance(task, SearchTask) else self.config.backend
        render_once = self._render_selenium if backend == FetchBackend.SELENIUM else self._render_requests

        page = self._render_with_retries(
            url=url,
            render_once=render_once,
            attempt_cfg=_AttemptConfig(
                attempts=max(1, self.config.retries + 1),
                backoff_seconds=max(0.0, self.config.retry_backoff_seconds),
            ),
        )
        if page is None:
            return None

        strategy = self.registry.for_hint(task.hint)
        try:
            return strategy.extract(page, task)
        except Exception as exc:
            LOGGER.warning(
                "Extraction with %s failed for %s: %s: %s",
                strategy.name,
                url,
                exc.__class__.__name__,
                exc,
            )
            return None

    def url_for(self, task: CrawlTask) -> str | None:
        if isinstance(task, SearchTask):
            return build_search_url(self.config.search_url, task.domain, task.keyword)
        if isinstance(task, PageTask):
            return normalize_url(task.url)
        return None

    def close(self) -> None:
        """Quit every browser, close sessions, and stop the worker pool."""

        with self._closed_lock:
            if self._closed:
                return
            self._closed = True

        self._executor.shutdown(wait=True, cancel_futures=True)

        with self._drivers_lock:
            drivers, self._drivers = self._drivers, []
            sessions, self._sessions = self._sessions, []

        for driver in drivers:
            try:
                driver.quit()
            except Exception as exc:
                LOGGER.debug("Ignoring driver quit failure: %s", exc)
        for session in sessions:
            session.close()

    async def __aenter__(self) -> "BrowserFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        # Waiting on the pool and quitting browsers blocks.
        await asyncio.to_thread(self.close)

    def __enter__(self) -> "BrowserFetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _is_closed(self) -> bool:
        with self._closed_lock:
            return self._closed

    def _render_with_retries(
        self,
        *,
        url: str,
        render_once: Callable[[str], RenderedPage],
        attempt_cfg: _AttemptConfig,
    ) -> RenderedPage | None:
        for attempt in range(1, attempt_cfg.attempts + 1):
            if self._is_closed():
                return None

            try:
                return render_once(url)
            except TerminalFetchError as exc:
                LOGGER.warning("Fetch failed for %s: %s", url, exc)
                return None
            except Exception as exc:
                LOGGER.warning(
                    "Fetch attempt %d/%d failed for %s: %s: %s",
                    attempt,
                    attempt_cfg.attempts,
                    url,
                    exc.__class__.__name__,
                    exc,
                )

            if attempt < attempt_cfg.attempts and attempt_cfg.backoff_seconds > 0:
                time.sleep(attempt_cfg.backoff_seconds * attempt)

        return None

    def _render_requests(self, url: str) -> RenderedPage:
        session = self._thread_local_session()
        try:
            response = session.get(
                url,
                headers={"User-Agent": self.config.user_agent},
                timeout=self.config.timeout_seconds,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            raise RetryableFetchError(f"{exc.__class__.__name__}: {exc}") from exc

        if response.status_code in {408, 429} or response.status_code >= 500:
            raise RetryableFetchError(f"HTTP {response.status_code}")
        if response.status_code >= 400:
            raise TerminalFetchError(f"HTTP {response.status_code}")

        return RenderedPage(requested_url=url, final_url=response.url or url, html=response.text)

    def _render_selenium(self, url: str) -> RenderedPage:
        driver = self._thread_local_driver()
        try:
            driver.set_page_load_timeout(max(1, int(self.config.timeout_seconds)))
            driver.get(url)
            return RenderedPage(
                requested_url=url,
                final_url=driver.current_url or url,
                html=driver.page_source or "",
            )
        except (TimeoutException, WebDriverException) as exc:
            raise RetryableFetchError(f"{exc.__class__.__name__}: {exc}") from exc

    def _thread_local_session(self) -> requests.Session:
        session = getattr(self._thread_local, "session", None)
        if session is None:
            session = requests.Session()
            self._thread_local.session = session
            with self._drivers_lock:
                self._sessions.append(session)
        return session

    def _thread_local_driver(self):
        driver = getattr(self._thread_local, "driver", None)
        if driver is None:
            driver = self._create_selenium_driver()
            self._thread_local.driver = driver
            with self._drivers_lock:
                self._drivers.append(driver)
        return driver

    def _create_selenium_driver(self):
        errors: list[str] = []

        # Try Chrome first.
        try:
            chrome_options = ChromeOptions()
            if self.config.headless:
                chrome_options.add_argument("--headless=new")
            chrome_options.add_argument("--disable-gpu")
            chrome_options.add_argument("--no-sandbox")
            chrome_options.add_argument("--disable-dev-shm-usage")
            chrome_options.add_argument(f"--user-agent={self.config.user_agent}")
            return webdriver.Chrome(options=chrome_options)
        except Exception as exc:
            errors.append(f"Chrome: {exc}")

        # Fallback to Firefox.
        try:
            firefox_options = FirefoxOptions()
            if self.config.headless:
                firefox_options.add_argument("-headless")
            firefox_options.set_preference("general.useragent.override", self.config.user_agent)
            return webdriver.Firefox(options=firefox_options)
        except Exception as exc:
            errors.append(f"Firefox: {exc}")

        raise TerminalFetchError("; ".join(errors) or "No usable Selenium driver found")


__all__ = [
    "BrowserFetcher",
    "RetryableFetchError",
    "TerminalFetchError",
    "build_search_query",
    "build_search_url",
]
