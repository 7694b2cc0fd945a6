"""Parse the yearly wiki release tables into a Calendar."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from metalcal.config import ScraperConfig
from metalcal.errors import SelectorError
from metalcal.models import Calendar, Month, Release

if TYPE_CHECKING:
    from metalcal.client import Client

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = ScraperConfig()


def _select(node: Tag, selector: str) -> list[Tag]:
    """Run a CSS selector, wrapping syntax errors."""
    try:
        return list(node.select(selector))
    except SelectorSyntaxError as exc:
        raise SelectorError(f"Bad selector {selector!r}: {exc}") from exc


def _cell_texts(row: Tag) -> list[str]:
    """Return the trimmed text of each direct child element."""
    return [
        child.get_text().strip()
        for child in row.children
        if isinstance(child, Tag)
    ]


def process_table(
    table: Tag,
    calendar: Calendar,
    month: Month,
    config: ScraperConfig = _DEFAULT_CONFIG,
) -> None:
    """Add the releases of one month table to the calendar.

    The row shape tells what a row holds: one cell is another album
    by the previous artist, two cells are ``artist, album`` and three
    cells are ``day, artist, album``. Day and artist carry over
    between rows because the source uses rowspans.

    Args:
        table: The ``<table>`` element.
        calendar: Calendar to add releases to.
        month: Month the table lists.
        config: Scraper configuration with selectors.
    """
    current_day = 1
    current_artist = ""

    for row in _select(table, config.row_selector):
        cells = _cell_texts(row)
        if len(cells) == 1:
            calendar.add_release(
                month,
                current_day,
                Release(current_artist, cells[0]),
            )
        elif len(cells) == 2:
            current_artist = cells[0]
            calendar.add_release(
                month,
                current_day,
                Release(current_artist, cells[1]),
            )
        elif len(cells) == 3:
            try:
                current_day = int(cells[0])
            except ValueError:
                logger.debug(
                    "Keeping day %d, unparsable day cell %r",
                    current_day,
                    cells[0],
                )
            current_artist = cells[1]
            if current_artist == config.header_label:
                continue
            calendar.add_release(
                month,
                current_day,
                Release(current_artist, cells[2]),
            )


def extract_calendar(
    document: BeautifulSoup,
    year: int,
    config: ScraperConfig = _DEFAULT_CONFIG,
) -> Calendar:
    """Build a Calendar from a parsed wiki year page.

    Each month has a table whose id is derived from its name. The
    page puts October's continuation under the November id, so two
    November tables are read as October then November.

    Args:
        document: Parsed year page.
        year: Year the page describes.
        config: Scraper configuration with selectors.

    Returns:
        The populated Calendar.
    """
    calendar = Calendar(year)

    for month in Month:
        selector = config.table_selector.format(month=month.label)
        tables = _select(document, selector)

        if len(tables) == 2 and month is Month.NOVEMBER:
            process_table(tables[0], calendar, Month.OCTOBER, config)
            process_table(tables[1], calendar, month, config)
        elif len(tables) == 1:
            process_table(tables[0], calendar, month, config)
        else:
            logger.debug(
                "Skipping %s: %d tables found",
                month.label,
                len(tables),
            )

    return calendar


def scrape(
    client: Client,
    year: int,
    config: ScraperConfig = _DEFAULT_CONFIG,
) -> Calendar:
    """Fetch the wiki page for a year and parse it.

    Raises:
        FetchError: If the page cannot be fetched.
    """
    document = client.fetch_document(year)
    calendar = extract_calendar(document, year, config)
    logger.info("Wiki: %d releases for %d", len(calendar), year)
    return calendar
