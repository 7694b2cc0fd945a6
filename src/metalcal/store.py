"""SQLite persistence for yearly calendars."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from pathlib import Path

from metalcal.errors import StoreError
from metalcal.models import Calendar, MetallumInfo, Release

logger = logging.getLogger(__name__)

_CREATE_TABLES_SQL = """\
CREATE TABLE IF NOT EXISTS artists (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    name         TEXT    NOT NULL UNIQUE,
    genre        TEXT,
    url_bandcamp TEXT,
    url_metallum TEXT
);
CREATE TABLE IF NOT EXISTS releases (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    year         INTEGER NOT NULL,
    month        INTEGER NOT NULL,
    day          INTEGER NOT NULL,
    artist_id    INTEGER NOT NULL REFERENCES artists(id),
    album        TEXT    NOT NULL,
    release_type TEXT,
    url_metallum TEXT,
    UNIQUE(year, month, day, artist_id, album)
);
CREATE INDEX IF NOT EXISTS idx_releases_date ON releases(year, month, day);
"""

# Existing links are kept when a later scrape has none.
_UPSERT_ARTIST_SQL = """\
INSERT INTO artists (name, genre, url_bandcamp, url_metallum)
VALUES (?, ?, ?, ?)
ON CONFLICT(name)
DO UPDATE SET genre        = COALESCE(excluded.genre, genre),
              url_bandcamp = COALESCE(excluded.url_bandcamp, url_bandcamp),
              url_metallum = COALESCE(excluded.url_metallum, url_metallum);
"""

_SELECT_ARTIST_ID_SQL = "SELECT id FROM artists WHERE name = ?;"

_DELETE_YEAR_SQL = "DELETE FROM releases WHERE year = ?;"

_INSERT_RELEASE_SQL = """\
INSERT OR IGNORE INTO releases
    (year, month, day, artist_id, album, release_type, url_metallum)
VALUES (?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_DAY_SQL = """\
SELECT a.name, r.album, r.release_type, r.url_metallum,
       a.genre, a.url_bandcamp, a.url_metallum
FROM releases r JOIN artists a ON a.id = r.artist_id
WHERE r.year = ? AND r.month = ? AND r.day = ?
ORDER BY r.id;
"""

_COUNT_YEAR_SQL = "SELECT COUNT(*) FROM releases WHERE year = ?;"


class CalendarStore:
    """Stores calendars, one year at a time.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file, or ``":memory:"``.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._memory_conn: sqlite3.Connection | None = None

    def _connect(self) -> sqlite3.Connection:
        if self._db_path == ":memory:":
            # A new in-memory connection would be an empty database.
            if self._memory_conn is None:
                self._memory_conn = sqlite3.connect(":memory:")
            return self._memory_conn
        return sqlite3.connect(self._db_path)

    def _close(self, conn: sqlite3.Connection) -> None:
        if conn is not self._memory_conn:
            conn.close()

    def initialize(self) -> None:
        """Create the tables if they don't exist."""
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.executescript(_CREATE_TABLES_SQL)
        finally:
            self._close(conn)
        logger.debug("Calendar database ready at %s", self._db_path)

    def create_or_replace_year(self, calendar: Calendar) -> None:
        """Replace every stored release of the calendar's year.

        Runs in one transaction: on failure the previous data of the
        year is left untouched.

        Raises:
            StoreError: If the database rejects the update.
        """
        conn = self._connect()
        try:
            with conn:
                conn.execute(_DELETE_YEAR_SQL, (calendar.year,))
                artist_ids: dict[str, int] = {}
                for month, day, release in calendar:
                    info = release.metallum
                    conn.execute(
                        _UPSERT_ARTIST_SQL,
                        (
                            release.artist,
                            info.genre if info else None,
                            release.bandcamp_url,
                            info.artist_link if info else None,
                        ),
                    )
                    if release.artist not in artist_ids:
                        row = conn.execute(
                            _SELECT_ARTIST_ID_SQL,
                            (release.artist,),
                        ).fetchone()
                        artist_ids[release.artist] = row[0]
                    conn.execute(
                        _INSERT_RELEASE_SQL,
                        (
                            calendar.year,
                            month.value,
                            day,
                            artist_ids[release.artist],
                            release.album,
                            info.release_type if info else None,
                            info.album_link if info else None,
                        ),
                    )
        except sqlite3.Error as exc:
            raise StoreError(
                f"Failed to store calendar {calendar.year}: {exc}"
            ) from exc
        finally:
            self._close(conn)

        logger.info(
            "Stored %d releases for %d",
            len(calendar),
            calendar.year,
        )

    def releases_on(self, day: date) -> list[Release]:
        """Return the stored releases of a date."""
        conn = self._connect()
        try:
            rows = conn.execute(
                _SELECT_DAY_SQL,
                (day.year, day.month, day.day),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to query {day}: {exc}") from exc
        finally:
            self._close(conn)

        releases: list[Release] = []
        for (
            artist,
            album,
            release_type,
            album_link,
            genre,
            url_bandcamp,
            artist_link,
        ) in rows:
            info = None
            if album_link is not None:
                info = MetallumInfo(
                    artist_link=artist_link or "",
                    album_link=album_link,
                    release_type=release_type or "",
                    genre=genre or "",
                )
            releases.append(
                Release(
                    artist,
                    album,
                    metallum=info,
                    bandcamp_url=url_bandcamp,
                )
            )
        return releases

    def count_for_year(self, year: int) -> int:
        """Return how many releases are stored for a year."""
        conn = self._connect()
        try:
            (count,) = conn.execute(_COUNT_YEAR_SQL, (year,)).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(
                f"Failed to count releases of {year}: {exc}"
            ) from exc
        finally:
            self._close(conn)
        return int(count)
