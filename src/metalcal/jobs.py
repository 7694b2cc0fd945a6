"""Scrape-and-save cycle run on a schedule."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from metalcal import metallum, wiki
from metalcal.config import ScraperConfig
from metalcal.models import Calendar, merge_calendars

if TYPE_CHECKING:
    from metalcal.client import Client
    from metalcal.settings import AppSettings
    from metalcal.store import CalendarStore

logger = logging.getLogger(__name__)


def scrape_year(
    client: Client,
    year: int,
    config: ScraperConfig | None = None,
) -> Calendar:
    """Scrape both sources for a year and merge them.

    Wiki releases come first within each day.

    Raises:
        MetalcalError: If either scrape fails.
    """
    if config is None:
        config = ScraperConfig()
    from_wiki = wiki.scrape(client, year, config)
    from_metallum = metallum.scrape(client, year, config)
    merged = merge_calendars(from_wiki, from_metallum)
    logger.info(
        "Merged %d wiki and %d metallum releases into %d",
        len(from_wiki),
        len(from_metallum),
        len(merged),
    )
    return merged


def attach_artist_links(calendar: Calendar, client: Client) -> Calendar:
    """Return a copy of the calendar with Bandcamp links filled in.

    Each artist is looked up once.
    """
    links: dict[str, str | None] = {}
    linked = Calendar(calendar.year)
    for month, day, release in calendar:
        if release.artist not in links:
            links[release.artist] = client.lookup_artist_link(release.artist)
        url = links[release.artist]
        if url is not None:
            release = dataclasses.replace(release, bandcamp_url=url)
        linked.add_release(month, day, release)

    found = sum(1 for url in links.values() if url)
    logger.info("Found Bandcamp pages for %d/%d artists", found, len(links))
    return linked


def update_calendar(
    client: Client,
    store: CalendarStore,
    year: int,
    settings: AppSettings,
    config: ScraperConfig | None = None,
) -> Calendar:
    """Scrape, merge and persist the calendar of a year.

    Artist links are only looked up in production. Nothing is stored
    if any step fails.

    Returns:
        The calendar that was stored.
    """
    calendar = scrape_year(client, year, config)
    if settings.is_prod:
        calendar = attach_artist_links(calendar, client)
    store.create_or_replace_year(calendar)
    return calendar
