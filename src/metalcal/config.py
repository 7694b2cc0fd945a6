"""Configuration for the metalcal scrapers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ScraperConfig:
    """All configurable values for the scrapers.

    All timeout values are in seconds for consistency.
    """

    # Sources
    wiki_url: str = "https://en.wikipedia.org/wiki/{year}_in_heavy_metal_music"
    metallum_home_url: str = "https://www.metal-archives.com/"
    metallum_url: str = (
        "https://www.metal-archives.com/release/ajax-upcoming/json/1"
        "?sEcho=1&iDisplayStart={offset}&iDisplayLength={size}"
        "&fromDate={year}-01-01&toDate={year}-12-31"
    )
    page_size: int = 100
    max_pages: int = 500

    # Browser
    browser_data_dir: Path = field(
        default_factory=lambda: Path.cwd() / "browser_data"
    )
    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 800

    # Timeouts (all in seconds)
    content_timeout: float = 90.0
    request_timeout: float = 30.0
    selector_poll_interval: float = 5.0
    turnstile_wait: float = 3.0
    post_turnstile_wait: float = 2.0
    turnstile_click_timeout: float = 3.0
    lookup_delay: float = 0.15

    # Retry limits
    max_turnstile_attempts: int = 3

    # CSS selectors
    wiki_content_selector: str = "#mw-content-text"
    metallum_content_selector: str = "#header"
    table_selector: str = "#table_{month}"
    row_selector: str = ":scope > tbody > tr, :scope > tr"
    header_label: str = "Artist"
