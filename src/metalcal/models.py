"""Domain models for metalcal."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from metalcal.normalize import (
    MONTH_NAMES,
    month_number,
    normalize_album_title,
    normalize_artist_name,
)

logger = logging.getLogger(__name__)


class Month(Enum):
    """Calendar months, valued 1-12."""

    JANUARY = 1
    FEBRUARY = 2
    MARCH = 3
    APRIL = 4
    MAY = 5
    JUNE = 6
    JULY = 7
    AUGUST = 8
    SEPTEMBER = 9
    OCTOBER = 10
    NOVEMBER = 11
    DECEMBER = 12

    @property
    def label(self) -> str:
        """Capitalized English name, e.g. ``"October"``."""
        return MONTH_NAMES[self.value - 1]

    @classmethod
    def from_name(cls, name: str) -> Month:
        """Look up a month by full or abbreviated English name.

        Raises:
            ValueError: If the name is not a month.
        """
        return cls(month_number(name))


@dataclass(frozen=True)
class MetallumInfo:
    """Extra data only the metal database listing provides."""

    artist_link: str
    album_link: str
    release_type: str
    genre: str


@dataclass(frozen=True)
class Release:
    """One album release by an artist.

    Equality only looks at ``artist`` and ``album``, so the same
    album found in both sources counts as one release.
    """

    artist: str
    album: str
    metallum: MetallumInfo | None = field(default=None, compare=False)
    bandcamp_url: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "artist", normalize_artist_name(self.artist))
        object.__setattr__(self, "album", normalize_album_title(self.album))

    def __str__(self) -> str:
        """Format as 'Artist - Album'."""
        return f"{self.artist} - {self.album}"

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready representation."""
        data: dict[str, Any] = {
            "artist": self.artist,
            "album": self.album,
        }
        if self.metallum is not None:
            data["metallum"] = {
                "artist_link": self.metallum.artist_link,
                "album_link": self.metallum.album_link,
                "release_type": self.metallum.release_type,
                "genre": self.metallum.genre,
            }
        if self.bandcamp_url is not None:
            data["bandcamp_url"] = self.bandcamp_url
        return data


class Calendar:
    """Releases of one year, indexed by month and day.

    All twelve months are always present. Within a day, releases keep
    insertion order and equal releases are stored once.
    """

    def __init__(self, year: int) -> None:
        self.year = year
        self.data: dict[Month, dict[int, list[Release]]] = {
            month: {} for month in Month
        }

    def __repr__(self) -> str:
        return f"Calendar(year={self.year}, releases={len(self)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Calendar):
            return NotImplemented
        return self.year == other.year and self.data == other.data

    def __len__(self) -> int:
        return sum(
            len(releases)
            for days in self.data.values()
            for releases in days.values()
        )

    def __iter__(self) -> Iterator[tuple[Month, int, Release]]:
        """Yield ``(month, day, release)`` in calendar order."""
        for month in Month:
            days = self.data[month]
            for day in sorted(days):
                for release in days[day]:
                    yield month, day, release

    def add_release(
        self,
        month: Month,
        day: int,
        release: Release,
    ) -> bool:
        """Add a release unless an equal one is already on that day.

        Returns:
            True if the release was inserted.
        """
        releases = self.data.setdefault(month, {}).setdefault(day, [])
        if release in releases:
            return False
        releases.append(release)
        return True

    def get_releases(self, month: Month, day: int) -> list[Release]:
        """Return the releases on a day, empty if there are none."""
        return list(self.data[month].get(day, []))

    def artists(self) -> set[str]:
        """Return every artist name in the calendar."""
        return {release.artist for _, _, release in self}

    def merge(self, other: Calendar) -> Calendar:
        """Shortcut for :func:`merge_calendars`."""
        return merge_calendars(self, other)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready representation, skipping empty days."""
        releases: dict[str, dict[str, list[dict[str, Any]]]] = {}
        for month, day, release in self:
            releases.setdefault(month.label, {}).setdefault(
                str(day), []
            ).append(release.to_dict())
        return {"year": self.year, "releases": releases}


def merge_calendars(a: Calendar, b: Calendar) -> Calendar:
    """Union two calendars into a new one.

    Releases of ``a`` come first, then releases of ``b`` that ``a``
    does not already have on the same day. Neither input is changed.

    Args:
        a: First calendar; its year is kept.
        b: Second calendar.

    Returns:
        A new Calendar.
    """
    if a.year != b.year:
        logger.warning(
            "Merging calendars of different years (%d, %d), keeping %d",
            a.year,
            b.year,
            a.year,
        )
    merged = Calendar(a.year)
    for calendar in (a, b):
        for month, day, release in calendar:
            merged.add_release(month, day, release)
    return merged
