"""Fetcher contract and the Playwright-backed Google Maps implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from threading import Event
from urllib.parse import quote_plus

import structlog

from ..config import GlobalConfig
from ..models import Record, SearchTask
from .parser import FEED_SELECTOR, ListingParser

MAPS_SEARCH_URL = "https://www.google.com/maps/search/{query}/@{lat:.6f},{lon:.6f},{zoom}z"


class FetchCancelled(RuntimeError):
    """Raised inside a fetch once the scheduler has abandoned the task."""


class BaseFetcher(ABC):
    """Turn one sub-search into zero or more records.

    Implementations are called concurrently from independent worker threads
    and must not share mutable state between calls. ``cancel_event`` is set
    when the task's deadline passes; long-running fetchers should poll it and
    stop early.
    """

    @abstractmethod
    def fetch(self, task: SearchTask, cancel_event: Event) -> list[Record]:
        """Return records found around ``task.center``; raise on failure."""

    def close(self) -> None:
        """Release resources shared across fetches."""


def build_search_url(task: SearchTask, zoom: int = 15) -> str:
    return MAPS_SEARCH_URL.format(
        query=quote_plus(task.query),
        lat=task.center.lat,
        lon=task.center.lon,
        zoom=zoom,
    )


class MapsFetcher(BaseFetcher):
    """Load a Maps search page in headless Chromium and extract listings."""

    def __init__(
        self,
        global_config: GlobalConfig,
        parser: ListingParser | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.global_config = global_config
        self.parser = parser or ListingParser()
        self.logger = logger or structlog.get_logger("grid_crawler.fetcher")

    def fetch(self, task: SearchTask, cancel_event: Event) -> list[Record]:
        url = build_search_url(task, self.global_config.zoom)
        html = self._fetch_page(url, cancel_event)
        if cancel_event.is_set():
            raise FetchCancelled(f"Fetch abandoned: {url}")
        records = self.parser.parse_listings(html, task)
        self.logger.debug("listings_extracted", url=url, count=len(records))
        return records

    def _fetch_page(self, url: str, cancel_event: Event) -> str:
        # One browser per task: Playwright's sync API is bound to the thread that started it.
        session = _PlaywrightSession(self.global_config)
        try:
            return session.load_listing(url, cancel_event)
        finally:
            session.close()


class _PlaywrightSession:
    def __init__(self, global_config: GlobalConfig) -> None:
        self._config = global_config
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    def _ensure_started(self) -> None:
        if self._playwright is not None:
            return
        try:
            from playwright.sync_api import sync_playwright
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError(
                "Browser fetching requires installing the 'playwright' package."
            ) from exc

        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self._config.headless)
        self._context = self._browser.new_context(
            user_agent=self._config.user_agent,
            locale="en-US",
            viewport={"width": 1366, "height": 900},
        )
        self._page = self._context.new_page()

    def load_listing(self, url: str, cancel_event: Event) -> str:
        from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

        self._ensure_started()
        timeout_ms = self._config.navigation_timeout_ms
        try:
            self._page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            self._page.wait_for_selector(FEED_SELECTOR, state="visible", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise RuntimeError(f"Results feed did not load: {exc}") from exc

        # The feed lazy-loads; keep the pointer over the list column while scrolling.
        for _ in range(self._config.scroll_rounds):
            if cancel_event.is_set():
                raise FetchCancelled(f"Fetch abandoned while scrolling: {url}")
            self._page.mouse.move(250, 300)
            self._page.mouse.wheel(0, 6000)
            self._page.wait_for_timeout(self._config.scroll_pause_ms)
        return self._page.content()

    def close(self) -> None:
        if self._page is not None:
            self._page.close()
            self._page = None
        if self._context is not None:
            self._context.close()
            self._context = None
        if self._browser is not None:
            self._browser.close()
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None


__all__ = ["BaseFetcher", "FetchCancelled", "MapsFetcher", "build_search_url"]
