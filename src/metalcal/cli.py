"""CLI entry point for metalcal with subcommands."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import AbstractContextManager, nullcontext
from datetime import date
from pathlib import Path

from metalcal import metallum, wiki
from metalcal.browser import BrowserClient
from metalcal.client import Client, FixtureClient
from metalcal.config import ScraperConfig
from metalcal.errors import MetalcalError
from metalcal.jobs import scrape_year, update_calendar
from metalcal.models import Calendar
from metalcal.settings import AppSettings, load_settings
from metalcal.store import CalendarStore

logger = logging.getLogger(__name__)

SOURCES = ("wiki", "metallum", "all")


def _add_fetch_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--year",
        type=int,
        default=date.today().year,
        help="Year to scrape (default: current year)",
    )
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run browser headless (default from config)",
    )
    parser.add_argument(
        "--fixtures",
        help="Read saved pages from this directory instead of the web",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with subcommands.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        description="Heavy metal release calendar",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--config",
        help="Path to config.toml",
    )

    subs = parser.add_subparsers(dest="command")

    # update
    p_update = subs.add_parser(
        "update",
        help="Scrape, merge and store a year",
    )
    _add_fetch_arguments(p_update)

    # scrape
    p_scrape = subs.add_parser(
        "scrape",
        help="Scrape a year and print it as JSON",
    )
    p_scrape.add_argument(
        "source",
        choices=SOURCES,
        help="Which source to scrape",
    )
    p_scrape.add_argument(
        "-o",
        "--output",
        help="Output filename (default: stdout)",
    )
    _add_fetch_arguments(p_scrape)

    # releases
    p_releases = subs.add_parser(
        "releases",
        help="Show stored releases of a day",
    )
    p_releases.add_argument(
        "date",
        nargs="?",
        type=date.fromisoformat,
        help="Date as YYYY-MM-DD (default: today)",
    )

    return parser


def _make_client(
    args: argparse.Namespace,
    settings: AppSettings,
) -> AbstractContextManager[Client]:
    """Pick the fixture or live client from CLI flags."""
    if getattr(args, "fixtures", None):
        return nullcontext(FixtureClient(Path(args.fixtures)))
    headless = getattr(args, "headless", None)
    config = ScraperConfig(
        headless=settings.headless if headless is None else headless,
        browser_data_dir=settings.browser_data_dir,
    )
    return BrowserClient(config)


def _cmd_update(
    args: argparse.Namespace,
    settings: AppSettings,
) -> Calendar:
    """Execute the update subcommand."""
    store = CalendarStore(settings.database_path)
    store.initialize()
    with _make_client(args, settings) as client:
        calendar = update_calendar(client, store, args.year, settings)
    logger.info(
        "%d releases stored for %d",
        len(calendar),
        calendar.year,
    )
    return calendar


def _cmd_scrape(
    args: argparse.Namespace,
    settings: AppSettings,
) -> Calendar:
    """Execute the scrape subcommand."""
    with _make_client(args, settings) as client:
        if args.source == "wiki":
            calendar = wiki.scrape(client, args.year)
        elif args.source == "metallum":
            calendar = metallum.scrape(client, args.year)
        else:
            calendar = scrape_year(client, args.year)

    text = json.dumps(calendar.to_dict(), indent=2, ensure_ascii=False)
    if getattr(args, "output", None):
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        logger.info("%d releases written to %s", len(calendar), args.output)
    else:
        print(text)
    return calendar


def _cmd_releases(
    args: argparse.Namespace,
    settings: AppSettings,
) -> None:
    """Execute the releases subcommand."""
    day = args.date or date.today()
    store = CalendarStore(settings.database_path)
    store.initialize()
    releases = store.releases_on(day)
    if not releases:
        logger.info("No releases on %s", day.isoformat())
        return
    for release in releases:
        line = str(release)
        if release.metallum and release.metallum.genre:
            line += f" [{release.metallum.genre}]"
        print(line)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Args:
        argv: Argument list. Uses sys.argv if None.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=(
            logging.DEBUG
            if getattr(
                args,
                "verbose",
                False,
            )
            else logging.INFO
        ),
        format="%(levelname)s: %(message)s",
    )

    if not getattr(args, "command", None):
        parser.print_help()
        sys.exit(1)

    config_path = Path(args.config) if getattr(args, "config", None) else None
    settings = load_settings(config_path=config_path)

    try:
        if args.command == "update":
            _cmd_update(args, settings)
        elif args.command == "scrape":
            _cmd_scrape(args, settings)
        elif args.command == "releases":
            _cmd_releases(args, settings)
    except MetalcalError as exc:
        logger.error("%s failed: %s", args.command, exc)
        sys.exit(1)
