"""Live client fetching sources through a stealth browser."""

from __future__ import annotations

import json
import logging
import time
from contextlib import ExitStack
from types import TracebackType
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeout
from playwright.sync_api import sync_playwright
from playwright_stealth import Stealth

from metalcal.client import Client, bandcamp_url
from metalcal.config import ScraperConfig
from metalcal.errors import FetchError
from metalcal.metallum import records_from_payload

if TYPE_CHECKING:
    from playwright.sync_api import BrowserContext, Page

logger = logging.getLogger(__name__)


def is_cloudflare_challenge(title: str) -> bool:
    """Check if page title indicates a Cloudflare challenge.

    Args:
        title: The page title string.

    Returns:
        True if the title matches a Cloudflare challenge.
    """
    return "just a moment" in title.lower()


def is_signup_redirect(url: str) -> bool:
    """Check if Bandcamp sent us to its signup page.

    Unknown subdomains redirect there instead of returning 404.
    """
    return urlparse(url).path.rstrip("/") == "/signup"


def _click_turnstile(
    page: Page,
    config: ScraperConfig,
) -> bool:
    """Try to click the Cloudflare Turnstile checkbox.

    Returns:
        True if a click was attempted, False otherwise.
    """
    timeout_ms = int(config.turnstile_click_timeout * 1000)
    for frame in page.frames:
        if "challenges.cloudflare.com" in frame.url:
            try:
                frame.locator("body").click(timeout=timeout_ms)
                logger.debug("Clicked Turnstile iframe checkbox")
                return True
            except PlaywrightTimeout:
                logger.debug(
                    "Turnstile iframe click timed out",
                    exc_info=True,
                )

    logger.warning("Could not find Turnstile checkbox to click")
    return False


def _wait_for_content(
    page: Page,
    config: ScraperConfig,
    selector: str,
) -> bool:
    """Wait for a selector, handling Cloudflare Turnstile.

    Args:
        page: The Playwright page object.
        config: Scraper configuration with timeouts.
        selector: CSS selector that marks the real content.

    Returns:
        True if content appeared, False on timeout.
    """
    deadline = time.time() + config.content_timeout
    turnstile_attempts = 0
    poll_ms = int(config.selector_poll_interval * 1000)

    while time.time() < deadline:
        remaining_ms = int((deadline - time.time()) * 1000)
        if remaining_ms <= 0:
            break

        try:
            page.wait_for_selector(
                selector,
                timeout=min(poll_ms, remaining_ms),
            )
            return True
        except PlaywrightTimeout:
            title = page.title()
            if is_cloudflare_challenge(title):
                if turnstile_attempts < config.max_turnstile_attempts:
                    logger.info(
                        "Cloudflare challenge detected (attempt %d/%d)",
                        turnstile_attempts + 1,
                        config.max_turnstile_attempts,
                    )
                    time.sleep(config.turnstile_wait)
                    _click_turnstile(page, config)
                    turnstile_attempts += 1
                else:
                    logger.warning(
                        "Exhausted %d Turnstile attempts",
                        config.max_turnstile_attempts,
                    )
            else:
                logger.debug("Content not ready, title: %s", title)
            time.sleep(config.post_turnstile_wait)

    return False


class BrowserClient(Client):
    """Client backed by a persistent Playwright Chromium profile.

    Use as a context manager; the browser lives for the whole block
    so Cloudflare cookies are shared between requests::

        with BrowserClient(config) as client:
            calendar = scrape_year(client, 2025)
    """

    def __init__(self, config: ScraperConfig | None = None) -> None:
        self.config = config or ScraperConfig()
        self._stack = ExitStack()
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._cleared = False

    def __enter__(self) -> BrowserClient:
        stealth = Stealth()
        pw = self._stack.enter_context(stealth.use_sync(sync_playwright()))
        logger.info("Launching browser (headless=%s)", self.config.headless)
        self._context = pw.chromium.launch_persistent_context(
            user_data_dir=str(self.config.browser_data_dir),
            headless=self.config.headless,
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            args=["--disable-blink-features=AutomationControlled"],
        )
        self._stack.callback(self._context.close)
        self._page = self._context.new_page()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._stack.close()
        self._context = None
        self._page = None
        self._cleared = False

    def _require_page(self) -> Page:
        if self._page is None:
            raise FetchError("BrowserClient used outside its with block")
        return self._page

    def _goto(self, url: str, selector: str) -> Page:
        """Open a URL and wait until the real content shows up."""
        page = self._require_page()
        logger.info("Fetching %s", url)
        try:
            page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as exc:
            raise FetchError(f"Navigation to {url} failed: {exc}") from exc
        if not _wait_for_content(page, self.config, selector):
            raise FetchError(
                f"Timed out waiting for content on {url}."
                " May be blocked by Cloudflare."
            )
        return page

    def fetch_document(self, year: int) -> BeautifulSoup:
        url = self.config.wiki_url.format(year=year)
        page = self._goto(url, self.config.wiki_content_selector)
        return BeautifulSoup(page.content(), "lxml")

    def fetch_page(self, year: int, page: int) -> list[list[str]] | None:
        if not self._cleared:
            # Passing the challenge once stores the clearance cookie
            # that the request API then reuses.
            self._goto(
                self.config.metallum_home_url,
                self.config.metallum_content_selector,
            )
            self._cleared = True

        assert self._context is not None
        url = self.config.metallum_url.format(
            year=year,
            offset=page * self.config.page_size,
            size=self.config.page_size,
        )
        logger.debug("Fetching listing page %d: %s", page, url)
        try:
            response = self._context.request.get(
                url,
                timeout=self.config.request_timeout * 1000,
            )
        except PlaywrightError as exc:
            logger.error("Listing page %d failed: %s", page, exc)
            return None
        if not response.ok:
            logger.error(
                "Listing page %d returned HTTP %d",
                page,
                response.status,
            )
            return None
        try:
            payload = json.loads(response.text())
        except json.JSONDecodeError as exc:
            logger.error("Listing page %d is not JSON: %s", page, exc)
            return None
        return records_from_payload(payload)

    def lookup_artist_link(self, name: str) -> str | None:
        if self._context is None:
            raise FetchError("BrowserClient used outside its with block")
        url = bandcamp_url(name)
        try:
            response = self._context.request.get(
                url,
                timeout=self.config.request_timeout * 1000,
            )
            found = response.ok and not is_signup_redirect(response.url)
        except PlaywrightError as exc:
            logger.debug("Bandcamp lookup for %s failed: %s", name, exc)
            found = False
        time.sleep(self.config.lookup_delay)
        return url if found else None
