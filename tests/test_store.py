"""Tests for SQLite calendar persistence."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from datetime import date
from pathlib import Path

import pytest

from metalcal.errors import StoreError
from metalcal.models import Calendar, MetallumInfo, Month, Release
from metalcal.store import CalendarStore

INFO = MetallumInfo(
    artist_link="https://ma/bands/Wintersun/1",
    album_link="https://ma/albums/Wintersun/Time_II/2",
    release_type="Full-length",
    genre="Melodic Death Metal",
)


@pytest.fixture
def store(tmp_path: Path) -> CalendarStore:
    """Initialized store in a temporary directory."""
    s = CalendarStore(tmp_path / "db" / "metalcal.db")
    s.initialize()
    return s


@pytest.fixture
def calendar() -> Calendar:
    """Small 2024 calendar with one metal database release."""
    c = Calendar(2024)
    c.add_release(
        Month.AUGUST,
        30,
        Release("Wintersun", "Time II", metallum=INFO),
    )
    c.add_release(Month.AUGUST, 30, Release("Opeth", "Last Will"))
    c.add_release(Month.OCTOBER, 15, Release("Grave Digger", "Bone Collector"))
    return c


class _FailingCalendar(Calendar):
    """Calendar whose iteration breaks after the first release."""

    def __iter__(self) -> Iterator[tuple[Month, int, Release]]:
        yield Month.JANUARY, 1, Release("Ulver", "Liminal")
        raise sqlite3.OperationalError("disk I/O error")


class TestCreateOrReplaceYear:
    def test_stores_releases(
        self,
        store: CalendarStore,
        calendar: Calendar,
    ) -> None:
        store.create_or_replace_year(calendar)
        assert store.count_for_year(2024) == 3
        assert store.releases_on(date(2024, 8, 30)) == [
            Release("Wintersun", "Time II"),
            Release("Opeth", "Last Will"),
        ]

    def test_round_trips_metadata(
        self,
        store: CalendarStore,
        calendar: Calendar,
    ) -> None:
        store.create_or_replace_year(calendar)
        wintersun, opeth = store.releases_on(date(2024, 8, 30))
        assert wintersun.metallum == INFO
        assert opeth.metallum is None

    def test_replaces_previous_year(
        self,
        store: CalendarStore,
        calendar: Calendar,
    ) -> None:
        store.create_or_replace_year(calendar)
        newer = Calendar(2024)
        newer.add_release(Month.MAY, 3, Release("Ulver", "Liminal"))
        store.create_or_replace_year(newer)

        assert store.count_for_year(2024) == 1
        assert store.releases_on(date(2024, 8, 30)) == []

    def test_other_years_untouched(
        self,
        store: CalendarStore,
        calendar: Calendar,
    ) -> None:
        store.create_or_replace_year(calendar)
        other = Calendar(2025)
        other.add_release(Month.JANUARY, 10, Release("Opeth", "Next"))
        store.create_or_replace_year(other)

        assert store.count_for_year(2024) == 3
        assert store.count_for_year(2025) == 1

    def test_keeps_bandcamp_link_of_artist(self, store: CalendarStore) -> None:
        linked = Calendar(2024)
        linked.add_release(
            Month.MAY,
            3,
            Release("Ulver", "Liminal", bandcamp_url="https://ulver.bandcamp.com"),
        )
        store.create_or_replace_year(linked)
        unlinked = Calendar(2024)
        unlinked.add_release(Month.MAY, 3, Release("Ulver", "Liminal"))
        store.create_or_replace_year(unlinked)

        (release,) = store.releases_on(date(2024, 5, 3))
        assert release.bandcamp_url == "https://ulver.bandcamp.com"

    def test_failure_keeps_previous_data(
        self,
        store: CalendarStore,
        calendar: Calendar,
    ) -> None:
        store.create_or_replace_year(calendar)
        with pytest.raises(StoreError):
            store.create_or_replace_year(_FailingCalendar(2024))

        assert store.count_for_year(2024) == 3
        assert store.releases_on(date(2024, 1, 1)) == []

    def test_empty_calendar_clears_year(
        self,
        store: CalendarStore,
        calendar: Calendar,
    ) -> None:
        store.create_or_replace_year(calendar)
        store.create_or_replace_year(Calendar(2024))
        assert store.count_for_year(2024) == 0


class TestInMemory:
    def test_memory_database(self, calendar: Calendar) -> None:
        store = CalendarStore(":memory:")
        store.initialize()
        store.create_or_replace_year(calendar)
        assert store.count_for_year(2024) == 3


class TestReleasesOn:
    def test_no_releases(self, store: CalendarStore) -> None:
        assert store.releases_on(date(2030, 1, 1)) == []

    def test_uninitialized_database(self, tmp_path: Path) -> None:
        store = CalendarStore(tmp_path / "missing.db")
        with pytest.raises(StoreError):
            store.releases_on(date(2024, 1, 1))


class TestCountForYear:
    def test_counts_stored_year(
        self,
        store: CalendarStore,
        calendar: Calendar,
    ) -> None:
        store.create_or_replace_year(calendar)
        assert store.count_for_year(2024) == 3
        assert store.count_for_year(2025) == 0

    def test_uninitialized_database(self, tmp_path: Path) -> None:
        store = CalendarStore(tmp_path / "missing.db")
        with pytest.raises(StoreError):
            store.count_for_year(2024)
