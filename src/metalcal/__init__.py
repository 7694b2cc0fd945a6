"""Scrape heavy metal release dates into a yearly calendar."""

from metalcal.client import Client, FixtureClient, bandcamp_url
from metalcal.config import ScraperConfig
from metalcal.errors import (
    DateParseError,
    FetchError,
    MetalcalError,
    NoItemError,
    PageLimitError,
    ParseError,
    SelectorError,
    StoreError,
)
from metalcal.jobs import attach_artist_links, scrape_year, update_calendar
from metalcal.metallum import MetallumReleaseParts
from metalcal.models import (
    Calendar,
    MetallumInfo,
    Month,
    Release,
    merge_calendars,
)
from metalcal.normalize import (
    collapse_whitespace,
    normalize_album_title,
    parse_free_text_date,
)
from metalcal.settings import AppSettings, load_settings
from metalcal.store import CalendarStore

__all__ = [
    "AppSettings",
    "Calendar",
    "CalendarStore",
    "Client",
    "DateParseError",
    "FetchError",
    "FixtureClient",
    "MetallumInfo",
    "MetallumReleaseParts",
    "MetalcalError",
    "Month",
    "NoItemError",
    "PageLimitError",
    "ParseError",
    "Release",
    "ScraperConfig",
    "SelectorError",
    "StoreError",
    "attach_artist_links",
    "bandcamp_url",
    "collapse_whitespace",
    "load_settings",
    "merge_calendars",
    "normalize_album_title",
    "parse_free_text_date",
    "scrape_year",
    "update_calendar",
]
