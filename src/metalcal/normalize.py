"""Cleanup of scraped artist and album strings, and date parsing."""

from __future__ import annotations

import re
from datetime import date

from metalcal.errors import DateParseError

MONTH_NAMES: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_WHITESPACE_RE = re.compile(r"\s+")
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_DAY_RE = re.compile(r"^(\d{1,2})(?:st|nd|rd|th)?$")


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim.

    Args:
        text: Raw text, possibly containing newlines and tabs.

    Returns:
        The cleaned string.
    """
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_artist_name(raw: str) -> str:
    """Normalize an artist name as shown in source tables."""
    return collapse_whitespace(raw)


def normalize_album_title(raw: str) -> str:
    """Normalize an album title.

    Whitespace is collapsed and everything from the first ``[`` on
    is dropped, so ``"Voices in the Sky [Bonus Edition]"`` becomes
    ``"Voices in the Sky"`` and wiki citation marks like ``[12]``
    disappear.

    Args:
        raw: Album title as scraped.

    Returns:
        The normalized title.
    """
    title = collapse_whitespace(raw)
    if "[" in title:
        title = title.split("[", 1)[0].rstrip()
    return title


def month_number(name: str) -> int:
    """Return 1-12 for a full or three-letter English month name.

    Matching is case-sensitive: ``"November"`` and ``"Nov"`` are
    accepted, ``"november"`` is not.

    Raises:
        ValueError: If the name is not a month.
    """
    for number, full in enumerate(MONTH_NAMES, start=1):
        if name in (full, full[:3]):
            return number
    raise ValueError(f"Unknown month name: {name!r}")


def parse_free_text_date(
    text: str,
    assumed_year: int | None = None,
) -> date:
    """Parse dates like ``"November 15th, 2024"``.

    HTML comments and commas are removed, then the text must split
    into ``month day year``. The ordinal suffix is only stripped from
    the day token. With ``assumed_year`` set, ``"January 3rd"`` is
    accepted too.

    Args:
        text: Free-text English date.
        assumed_year: Year to use when the text has none.

    Returns:
        The parsed date.

    Raises:
        DateParseError: If the text is not a valid date.
    """
    cleaned = _COMMENT_RE.sub(" ", text).replace(",", " ")
    tokens = cleaned.split()
    if len(tokens) == 2 and assumed_year is not None:
        tokens.append(str(assumed_year))
    if len(tokens) != 3:
        raise DateParseError(f"Cannot parse date: {text!r}")

    month_token, day_token, year_token = tokens
    day_match = _DAY_RE.match(day_token)
    if not day_match or not year_token.isdigit():
        raise DateParseError(f"Cannot parse date: {text!r}")

    try:
        month = month_number(month_token)
        return date(int(year_token), month, int(day_match.group(1)))
    except ValueError as exc:
        raise DateParseError(f"Cannot parse date: {text!r}") from exc
