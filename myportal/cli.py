"""
CLI (Command Line Interface).

Quick terminal commands for checking the extractors against saved or live
portal pages, e.g.:

    myportal map <page.html> --url <source url>
    myportal fetch <url> --map
    myportal menu <index.html> --url <page url>
    myportal profile <index.html>
    myportal timetable <report_studytable_show.html>

Note:
- Every command prints JSON except `timetable`, which renders a rich table
  unless --json is given
- Saved pages are decoded the same way live pages are (server charset
  chain), so Thai pages saved as windows-874 read correctly
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import requests
from bs4 import BeautifulSoup
from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table

from myportal.conflicts import find_conflicts
from myportal.mapper import map_document_to_content
from myportal.menu import PortalScraping
from myportal.model import StudyTimetable
from myportal.profile import StudentProfileScraping
from myportal.scrape import BASE_URL, DEFAULT_THROTTLE_SECONDS, PortalFetcher, PortalFetchError, decode_bytes
from myportal.timetable import DAY_ORDER, parse_study_table


console = Console()


def configure_logging(verbose: bool) -> None:
    """
    Route loguru output to stderr; DEBUG with --verbose, else WARNING.
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _load_document(path_text: str) -> BeautifulSoup | None:
    """
    Read and decode a saved page. Prints the problem and returns None when
    the file cannot be read.
    """
    path = Path(path_text)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        print(f"File not found: {path}")
        return None
    except OSError as exc:
        print(f"Could not read {path}: {exc}")
        return None

    text, encoding = decode_bytes(data)
    logger.debug("Decoded {} as {}", path, encoding)
    return BeautifulSoup(text, "html.parser")


def _cmd_map(args: argparse.Namespace) -> int:
    """
    Print the content model of a saved page.
    """
    soup = _load_document(args.file)
    if soup is None:
        return 1
    _print_json(map_document_to_content(soup, args.url).to_dict())
    return 0


def _cmd_fetch(args: argparse.Namespace) -> int:
    """
    Load a live page; print its title/encoding or, with --map, its content model.
    """
    fetcher = PortalFetcher(base_url=args.base_url, throttle_seconds=args.throttle)
    try:
        content = fetcher.load(args.url)
    except PortalFetchError as exc:
        print(str(exc))
        return 1
    except requests.RequestException as exc:
        print(f"Request failed: {exc}")
        return 1

    if args.map:
        _print_json(map_document_to_content(content.document, content.url).to_dict())
        return 0

    _print_json(
        {
            "url": content.url,
            "title": content.title,
            "encoding": content.encoding,
            "scripts": len(content.scripts),
        }
    )
    return 0


def _cmd_menu(args: argparse.Namespace) -> int:
    soup = _load_document(args.file)
    if soup is None:
        return 1
    _print_json(PortalScraping(soup, args.url).get_portal_dataset().to_dict())
    return 0


def _cmd_profile(args: argparse.Namespace) -> int:
    soup = _load_document(args.file)
    if soup is None:
        return 1
    _print_json(StudentProfileScraping(soup, args.url).extract().to_dict())
    return 0


def render_timetable(timetable: StudyTimetable) -> Table:
    """
    One row per session, weekday order.
    """
    student = timetable.student
    title = " ".join(part for part in (student.student_id, student.name) if part) or "ตารางเรียน"
    caption = " / ".join(part for part in (student.semester, student.year) if part) or None

    table = Table(title=title, caption=caption, box=box.SIMPLE_HEAVY)
    table.add_column("Day", no_wrap=True)
    table.add_column("Time", no_wrap=True)
    table.add_column("Code", no_wrap=True)
    table.add_column("Course")
    table.add_column("Kind")
    table.add_column("Room")
    table.add_column("Building")

    for session in timetable.sessions:
        table.add_row(
            session.day,
            f"{session.start}-{session.end}",
            session.code,
            session.name,
            session.kind,
            session.room,
            session.building,
        )
    return table


def _cmd_timetable(args: argparse.Namespace) -> int:
    """
    Show the study timetable of a saved report_studytable_show page and its conflicts.
    """
    soup = _load_document(args.file)
    if soup is None:
        return 1

    timetable = parse_study_table(soup)
    conflicts = find_conflicts(timetable.sessions)

    if args.json:
        data = timetable.to_dict()
        data["conflicts"] = [[a.to_dict(), b.to_dict()] for a, b in conflicts]
        _print_json(data)
        return 0

    if not timetable.sessions:
        print("No sessions found.")
        return 0

    console.print(render_timetable(timetable))

    if not conflicts:
        console.print("No conflicts found.")
        return 0

    def key(pair) -> tuple[int, str]:
        a, _ = pair
        day = DAY_ORDER.index(a.day) if a.day in DAY_ORDER else len(DAY_ORDER)
        return day, a.start

    console.print(f"Conflicts found: {len(conflicts)}")
    for a, b in sorted(conflicts, key=key):
        console.print(f"- {a.day} {a.start}-{a.end} {a.code} {a.name}  <->  {b.day} {b.start}-{b.end} {b.code} {b.name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="myportal", description="KMITL portal page extractor")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p_map = sub.add_parser("map", help="Print the content model of a saved page")
    p_map.add_argument("file", type=str, help="Saved HTML page")
    p_map.add_argument("--url", type=str, default=None, help="URL the page was loaded from (routing hint)")

    p_fetch = sub.add_parser("fetch", help="Load a live portal page")
    p_fetch.add_argument("url", type=str, help="Page URL, absolute or relative to --base-url")
    p_fetch.add_argument("--base-url", type=str, default=BASE_URL, help=f"Portal base URL (default: {BASE_URL})")
    p_fetch.add_argument(
        "--throttle",
        type=float,
        default=DEFAULT_THROTTLE_SECONDS,
        help=f"Seconds between requests (default: {DEFAULT_THROTTLE_SECONDS})",
    )
    p_fetch.add_argument("--map", action="store_true", help="Print the content model instead of page info")

    p_menu = sub.add_parser("menu", help="Print the menu sections of a saved home page")
    p_menu.add_argument("file", type=str, help="Saved index.php page")
    p_menu.add_argument("--url", type=str, required=True, help="URL the page was loaded from")

    p_profile = sub.add_parser("profile", help="Print the student profile of a saved home page")
    p_profile.add_argument("file", type=str, help="Saved index.php page")
    p_profile.add_argument("--url", type=str, default=None, help="URL the page was loaded from")

    p_timetable = sub.add_parser("timetable", help="Show the study timetable of a saved page")
    p_timetable.add_argument("file", type=str, help="Saved report_studytable_show.php page")
    p_timetable.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "map":
        raise SystemExit(_cmd_map(args))
    if args.command == "fetch":
        raise SystemExit(_cmd_fetch(args))
    if args.command == "menu":
        raise SystemExit(_cmd_menu(args))
    if args.command == "profile":
        raise SystemExit(_cmd_profile(args))
    if args.command == "timetable":
        raise SystemExit(_cmd_timetable(args))

    raise SystemExit(2)
