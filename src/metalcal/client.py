"""Fetch interface used by the scrapers, and a fixture-backed client."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from bs4 import BeautifulSoup

from metalcal.errors import FetchError
from metalcal.metallum import records_from_payload

logger = logging.getLogger(__name__)


def bandcamp_slug(name: str) -> str:
    """Guess the Bandcamp subdomain of an artist.

    Args:
        name: Artist name.

    Returns:
        Lowercased name without colons or whitespace.
    """
    return "".join(name.lower().replace(":", "").split())


def bandcamp_url(name: str) -> str:
    """Build the guessed Bandcamp URL of an artist."""
    return f"https://{bandcamp_slug(name)}.bandcamp.com"


class Client(ABC):
    """What the scrapers need from the network."""

    @abstractmethod
    def fetch_document(self, year: int) -> BeautifulSoup:
        """Fetch and parse the wiki page of a year.

        Raises:
            FetchError: On transport failure.
        """

    @abstractmethod
    def fetch_page(self, year: int, page: int) -> list[list[str]] | None:
        """Fetch one listing page of the metal database.

        Returns:
            The page records, or None once there is no more data.
        """

    @abstractmethod
    def lookup_artist_link(self, name: str) -> str | None:
        """Return the Bandcamp page of an artist, if one exists."""


class FixtureClient(Client):
    """Client that reads saved pages from a directory.

    Expects ``wiki_<year>.html`` and ``metallum_<year>_<page>.json``
    files. Artist lookups return the guessed URL without any request.
    """

    def __init__(self, fixtures_dir: Path) -> None:
        self.fixtures_dir = Path(fixtures_dir)

    def fetch_document(self, year: int) -> BeautifulSoup:
        path = self.fixtures_dir / f"wiki_{year}.html"
        try:
            html = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise FetchError(f"Cannot read {path}: {exc}") from exc
        return BeautifulSoup(html, "lxml")

    def fetch_page(self, year: int, page: int) -> list[list[str]] | None:
        path = self.fixtures_dir / f"metallum_{year}_{page}.json"
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable page %s: %s", path, exc)
            return None
        return records_from_payload(payload)

    def lookup_artist_link(self, name: str) -> str | None:
        return bandcamp_url(name)
