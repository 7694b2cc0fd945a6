"""Parse the metal database's paginated upcoming-releases listing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any

from bs4 import BeautifulSoup

from metalcal.config import ScraperConfig
from metalcal.errors import NoItemError, PageLimitError
from metalcal.models import Calendar, MetallumInfo, Month, Release
from metalcal.normalize import parse_free_text_date

if TYPE_CHECKING:
    from metalcal.client import Client

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = ScraperConfig()

SPLIT_SEPARATOR = " / "


def _anchors(fragment: str) -> list[tuple[str, str]]:
    """Return ``(text, href)`` for every link in an HTML fragment."""
    soup = BeautifulSoup(fragment, "lxml")
    return [
        (a.get_text().strip(), str(a.get("href", "")))
        for a in soup.find_all("a")
    ]


def _field(record: list[str], index: int) -> str:
    return record[index] if index < len(record) and record[index] else ""


@dataclass(frozen=True)
class MetallumReleaseParts:
    """The decoded fields of one listing record."""

    artist: str
    artist_link: str
    album: str
    album_link: str
    release_type: str
    genre: str
    date: date

    @classmethod
    def from_record(
        cls,
        record: list[str],
        assumed_year: int | None = None,
    ) -> MetallumReleaseParts:
        """Decode a raw six-field record.

        Field 0 holds one link per artist (several for splits), field
        1 the album link, fields 2 and 3 the release type and genre,
        field 4 the release date. Field 5 is not used.

        Args:
            record: Raw record from the ``aaData`` array.
            assumed_year: Year used when the date has none.

        Returns:
            The decoded parts.

        Raises:
            NoItemError: If an artist or album link, or the date,
                is missing.
            DateParseError: If the date cannot be parsed.
        """
        artists = _anchors(_field(record, 0))
        if not artists:
            raise NoItemError(f"No artist link in record: {record!r}")

        albums = _anchors(_field(record, 1))
        if not albums:
            raise NoItemError(f"No album link in record: {record!r}")

        raw_date = _field(record, 4)
        if not raw_date:
            raise NoItemError(f"No release date in record: {record!r}")

        album, album_link = albums[0]
        return cls(
            artist=SPLIT_SEPARATOR.join(name for name, _ in artists),
            artist_link=artists[0][1],
            album=album,
            album_link=album_link,
            release_type=_field(record, 2).strip(),
            genre=_field(record, 3).strip(),
            date=parse_free_text_date(raw_date, assumed_year),
        )

    def to_release(self) -> Release:
        """Build the Release with its metal database info."""
        return Release(
            self.artist,
            self.album,
            metallum=MetallumInfo(
                artist_link=self.artist_link,
                album_link=self.album_link,
                release_type=self.release_type,
                genre=self.genre,
            ),
        )


def records_from_payload(
    payload: dict[str, Any],
) -> list[list[str]] | None:
    """Extract the records of one listing page.

    Args:
        payload: Decoded JSON page.

    Returns:
        The records, or None when the page is empty.
    """
    records = payload.get("aaData") or []
    if not records:
        return None
    return [
        ["" if value is None else str(value) for value in record]
        for record in records
    ]


def scrape(
    client: Client,
    year: int,
    config: ScraperConfig = _DEFAULT_CONFIG,
) -> Calendar:
    """Fetch every listing page of a year into a Calendar.

    Pages are requested in order until the client returns an empty
    page. A listing still returning data after ``config.max_pages``
    pages is rejected rather than stored half-read.

    Raises:
        NoItemError: If a record misses a required field.
        DateParseError: If a record date cannot be parsed.
        PageLimitError: If the listing does not end within
            ``config.max_pages`` pages.
    """
    calendar = Calendar(year)
    page = 0

    while page < config.max_pages:
        records = client.fetch_page(year, page)
        if not records:
            break
        logger.debug("Page %d: %d records", page, len(records))
        for record in records:
            parts = MetallumReleaseParts.from_record(record, year)
            calendar.add_release(
                Month(parts.date.month),
                parts.date.day,
                parts.to_release(),
            )
        page += 1
    else:
        raise PageLimitError(
            f"Listing for {year} did not end after {config.max_pages} pages"
        )

    logger.info("Metallum: %d releases for %d", len(calendar), year)
    return calendar
