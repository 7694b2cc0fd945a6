"""Tests for the metal database listing scraper."""

from datetime import date
from unittest.mock import MagicMock, call

import pytest

from metalcal.config import ScraperConfig
from metalcal.errors import DateParseError, NoItemError, PageLimitError
from metalcal.metallum import (
    MetallumReleaseParts,
    records_from_payload,
    scrape,
)
from metalcal.models import MetallumInfo, Month, Release

ARTIST_URL = "https://www.metal-archives.com/bands/Wintersun/10235"
ALBUM_URL = "https://www.metal-archives.com/albums/Wintersun/Time_II/1241478"


def _record(
    artist: str = f'<a href="{ARTIST_URL}">Wintersun</a>',
    album: str = f'<a href="{ALBUM_URL}">Time II</a>',
    release_type: str = "Full-length",
    genre: str = "Melodic Death Metal",
    released: str = "August 30th, 2024 <!-- 2024-08-30 -->",
) -> list[str]:
    return [artist, album, release_type, genre, released, "<!-- x -->"]


class TestFromRecord:
    def test_decodes_fields(self) -> None:
        parts = MetallumReleaseParts.from_record(_record())
        assert parts == MetallumReleaseParts(
            artist="Wintersun",
            artist_link=ARTIST_URL,
            album="Time II",
            album_link=ALBUM_URL,
            release_type="Full-length",
            genre="Melodic Death Metal",
            date=date(2024, 8, 30),
        )

    def test_split_release_joins_artists(self) -> None:
        artist = (
            '<a href="https://ma/bands/Kill_the_Lord/1">Kill the Lord</a>'
            " / "
            '<a href="https://ma/bands/Fessus/2">Fessus</a>'
        )
        parts = MetallumReleaseParts.from_record(_record(artist=artist))
        assert parts.artist == "Kill the Lord / Fessus"
        assert parts.artist_link == "https://ma/bands/Kill_the_Lord/1"

    def test_first_album_link_only(self) -> None:
        album = '<a href="https://ma/a/1">One</a><a href="https://ma/a/2">Two</a>'
        parts = MetallumReleaseParts.from_record(_record(album=album))
        assert parts.album == "One"
        assert parts.album_link == "https://ma/a/1"

    def test_missing_artist_link(self) -> None:
        with pytest.raises(NoItemError, match="artist"):
            MetallumReleaseParts.from_record(_record(artist="Wintersun"))

    def test_missing_album_link(self) -> None:
        with pytest.raises(NoItemError, match="album"):
            MetallumReleaseParts.from_record(_record(album=""))

    def test_missing_optional_fields(self) -> None:
        record = _record(release_type="", genre="")
        parts = MetallumReleaseParts.from_record(record)
        assert parts.release_type == ""
        assert parts.genre == ""

    def test_short_record_missing_date(self) -> None:
        record = _record()[:2]
        with pytest.raises(NoItemError, match="date"):
            MetallumReleaseParts.from_record(record)

    def test_bad_date(self) -> None:
        with pytest.raises(DateParseError):
            MetallumReleaseParts.from_record(_record(released="Soon"))

    def test_to_release(self) -> None:
        release = MetallumReleaseParts.from_record(
            _record(album=f'<a href="{ALBUM_URL}">Time II [Digipak]</a>')
        ).to_release()
        assert release == Release("Wintersun", "Time II")
        assert release.album == "Time II"
        assert release.metallum == MetallumInfo(
            artist_link=ARTIST_URL,
            album_link=ALBUM_URL,
            release_type="Full-length",
            genre="Melodic Death Metal",
        )


class TestRecordsFromPayload:
    def test_returns_records(self) -> None:
        payload = {"iTotalRecords": 1, "aaData": [_record()]}
        assert records_from_payload(payload) == [_record()]

    def test_empty_page(self) -> None:
        assert records_from_payload({"aaData": []}) is None

    def test_missing_data(self) -> None:
        assert records_from_payload({}) is None

    def test_null_fields_become_empty(self) -> None:
        record = [
            '<a href="https://ma/b/1">Ulver</a>',
            '<a href="https://ma/a/1">Liminal</a>',
            None,
            None,
            "May 3rd, 2024",
            None,
        ]
        (decoded,) = records_from_payload({"aaData": [record]}) or []
        assert decoded[2:] == ["", "", "May 3rd, 2024", ""]

        parts = MetallumReleaseParts.from_record(decoded)
        assert parts.release_type == ""
        assert parts.genre == ""

    def test_null_date_is_missing(self) -> None:
        record = _record()
        record[4] = None  # type: ignore[call-overload]
        (decoded,) = records_from_payload({"aaData": [record]}) or []
        with pytest.raises(NoItemError, match="date"):
            MetallumReleaseParts.from_record(decoded)


class TestScrape:
    def test_stops_on_empty_page(self) -> None:
        client = MagicMock()
        client.fetch_page.side_effect = [[_record()], None]

        calendar = scrape(client, 2024)

        assert client.fetch_page.call_args_list == [
            call(2024, 0),
            call(2024, 1),
        ]
        assert len(calendar) == 1
        assert calendar.get_releases(Month.AUGUST, 30) == [
            Release("Wintersun", "Time II"),
        ]

    def test_reads_every_page(self) -> None:
        second = _record(
            artist='<a href="https://ma/b/2">Ulver</a>',
            album='<a href="https://ma/a/2">Liminal</a>',
            released="May 3rd, 2024",
        )
        client = MagicMock()
        client.fetch_page.side_effect = [[_record()], [second], []]

        calendar = scrape(client, 2024)

        assert client.fetch_page.call_count == 3
        assert calendar.get_releases(Month.MAY, 3) == [
            Release("Ulver", "Liminal"),
        ]
        assert len(calendar) == 2

    def test_duplicates_kept_once(self) -> None:
        client = MagicMock()
        client.fetch_page.side_effect = [[_record(), _record()], None]
        assert len(scrape(client, 2024)) == 1

    def test_page_cap(self) -> None:
        """A listing that never ends is rejected, not kept half-read."""
        client = MagicMock()
        client.fetch_page.return_value = [_record()]

        with pytest.raises(PageLimitError, match="3 pages"):
            scrape(client, 2024, ScraperConfig(max_pages=3))

        assert client.fetch_page.call_count == 3

    def test_last_page_at_cap(self) -> None:
        client = MagicMock()
        client.fetch_page.side_effect = [[_record()], [_record()], None]

        calendar = scrape(client, 2024, ScraperConfig(max_pages=3))

        assert len(calendar) == 1

    def test_decode_error_aborts(self) -> None:
        client = MagicMock()
        client.fetch_page.side_effect = [
            [_record(), _record(artist="no link")],
            None,
        ]
        with pytest.raises(NoItemError):
            scrape(client, 2024)
        assert client.fetch_page.call_count == 1
