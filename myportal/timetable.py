"""
Study timetable parsing (report_studytable_show.php -> StudyTimetable).

- Finds the course table of the printed timetable
- Extracts EACH day/time entry of a course row as exactly ONE ClassSession
  ("จ. 09:00-12:00 น.(ท)  พฤ. 13:00-16:00 น.(ป)" = two sessions)
- Reads the student block printed above the course table
- Lays out one weekday as quarter-hour slots for grid rendering

The course table interleaves every data cell with a spacer cell, so data
columns are addressed through the header row, not by fixed offsets.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from myportal.model import PRACTICE, THEORY, ClassSession, StudentInfo, StudyTimetable, TimeSlot
from myportal.text import (
    all_tables,
    element_text,
    extract_cell_content,
    innermost,
    is_positive_int,
    normalize_text,
    row_cells,
    should_keep_cell,
    table_rows,
)


DAY_ORDER = ("จ.", "อ.", "พ.", "พฤ.", "ศ.", "ส.", "อา.")

SESSION_RE = re.compile(
    r"(?P<day>(?:[\u0E01-\u0E2E]{1,2}|อา)\.)\s*"
    r"(?P<start>\d{2}:\d{2})-(?P<end>\d{2}:\d{2})\s*"
    r"น?\.?\((?P<kind>[ทป])\)"
)

COLUMNS = ("order", "code", "name", "credits", "theory", "practice", "time", "room", "building", "note")

# Cell positions of the printed layout (data cell, spacer, data cell, ...)
LEGACY_COLUMN_POSITIONS = (0, 2, 4, 6, 8, 10, 12, 14, 16, 17)

# Grid: 44 quarter hours from 08:00 to 19:00
SLOT_COUNT = 44
DAY_START_MINUTES = 8 * 60
SLOT_MINUTES = 15

STUDENT_LABELS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("student_id", ("รหัสนักศึกษา", "รหัสประจำตัว")),
    ("name", ("ชื่อ", "ชื่อ-นามสกุล", "ชื่อ - นามสกุล")),
    ("department", ("ภาควิชา",)),
    ("major", ("สาขา", "สาขาวิชา")),
    ("semester", ("ภาคเรียน", "ภาคเรียนที่")),
    ("year", ("ปีการศึกษา",)),
)
FACULTY_PREFIX = "คณะ"

_WS_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------


def time_to_minutes(hhmm: str) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.
    Raises ValueError for invalid formats.
    """
    parts = hhmm.strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid time format: {hhmm!r}")
    h = int(parts[0])
    m = int(parts[1])
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Invalid time value: {hhmm!r}")
    return h * 60 + m


def _minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def session_kind(marker: str) -> str:
    return THEORY if marker == "ท" else PRACTICE


def sort_sessions(sessions: List[ClassSession]) -> List[ClassSession]:
    """
    Weekday order first (Monday .. Sunday), then start time.
    """

    def key(session: ClassSession) -> Tuple[int, int]:
        day = DAY_ORDER.index(session.day) if session.day in DAY_ORDER else len(DAY_ORDER)
        try:
            start = time_to_minutes(session.start)
        except ValueError:
            start = 24 * 60
        return day, start

    return sorted(sessions, key=key)


# ---------------------------------------------------------------------------
# Course table
# ---------------------------------------------------------------------------


def find_study_table(soup: BeautifulSoup) -> Optional[Tag]:
    candidates = innermost([t for t in all_tables(soup) if SESSION_RE.search(t.get_text(" "))])
    return candidates[0] if candidates else None


def _first_kept_text(row: Tag) -> str:
    for cell in row_cells(row):
        content = extract_cell_content(cell)
        if should_keep_cell(cell, content):
            return content
    return ""


def is_course_row(row: Tag) -> bool:
    return is_positive_int(_first_kept_text(row)) and SESSION_RE.search(row.get_text(" ")) is not None


def locate_columns(rows: List[Tag], first_data: int) -> Dict[str, int]:
    """
    Map column names to cell positions using the header row.

    The header is the closest row above the first course row that has the
    same number of cells and one label per column; the labeled cells are
    the data columns, the unlabeled ones are spacers.
    """
    width = len(row_cells(rows[first_data]))
    for row in reversed(rows[:first_data]):
        cells = row_cells(row)
        if len(cells) != width:
            continue
        labeled = [i for i, cell in enumerate(cells) if element_text(cell)]
        if len(labeled) == len(COLUMNS):
            return dict(zip(COLUMNS, labeled))
    return dict(zip(COLUMNS, LEGACY_COLUMN_POSITIONS))


def _row_columns(row: Tag, positions: Dict[str, int]) -> Dict[str, Optional[Tag]]:
    cells = row_cells(row)
    if cells and max(positions.values()) < len(cells):
        return {name: cells[index] for name, index in positions.items()}

    # rows printed without spacer cells
    kept = [c for c in cells if should_keep_cell(c, extract_cell_content(c))]
    return {name: (kept[i] if i < len(kept) else None) for i, name in enumerate(COLUMNS)}


def cell_lines(cell: Optional[Tag]) -> List[str]:
    """
    Non-empty lines of a cell; <br> separated values become separate lines.
    """
    if cell is None:
        return []
    return [line for line in (normalize_text(part) for part in cell.get_text("\n").split("\n")) if line]


def _line_at(lines: List[str], index: int) -> str:
    if not lines:
        return ""
    return lines[index] if index < len(lines) else lines[-1]


def parse_course_row(row: Tag, positions: Dict[str, int]) -> List[ClassSession]:
    """
    One course row -> one ClassSession per day/time entry.
    """
    columns = _row_columns(row, positions)

    def text(name: str) -> str:
        return element_text(columns.get(name))

    # The n-th room / building line belongs to the n-th time entry
    rooms = cell_lines(columns.get("room"))
    buildings = cell_lines(columns.get("building"))
    time_cell = columns.get("time")
    time_text = time_cell.get_text(" ") if time_cell is not None else ""

    sessions: List[ClassSession] = []
    for index, m in enumerate(SESSION_RE.finditer(time_text)):
        sessions.append(
            ClassSession(
                order=text("order"),
                code=text("code"),
                name=text("name"),
                credits=text("credits"),
                theory=text("theory"),
                practice=text("practice"),
                day=m.group("day"),
                start=m.group("start"),
                end=m.group("end"),
                kind=session_kind(m.group("kind")),
                room=_line_at(rooms, index),
                building=_line_at(buildings, index),
                note=text("note"),
            )
        )
    return sessions


def parse_sessions(table: Tag) -> List[ClassSession]:
    rows = table_rows(table)
    first_data = next((i for i, row in enumerate(rows) if is_course_row(row)), -1)
    if first_data == -1:
        return []

    positions = locate_columns(rows, first_data)
    sessions: List[ClassSession] = []
    for row in rows[first_data:]:
        if is_course_row(row):
            sessions.extend(parse_course_row(row, positions))
    return sort_sessions(sessions)


# ---------------------------------------------------------------------------
# Student block
# ---------------------------------------------------------------------------


def _strip_label(text: str, label: str) -> Optional[str]:
    """
    "ภาควิชา : xxx" -> "xxx", "ภาควิชา" -> "" (value in the next string), else None.
    """
    if text == label or text == f"{label}:" or text == f"{label} :":
        return ""
    m = re.match(rf"{re.escape(label)}\s*:\s*(.+)$", text)
    return m.group(1).strip() if m else None


def read_labeled_student_info(soup: BeautifulSoup) -> StudentInfo:
    """
    Read the student block by its labels ("ภาควิชา : ...", "ปีการศึกษา" <b>2567</b>, ...).
    """
    strings = [normalize_text(s) for s in soup.stripped_strings]
    strings = [s for s in strings if s]

    found: Dict[str, str] = {}
    for index, text in enumerate(strings):
        if "faculty" not in found and text.startswith(FACULTY_PREFIX) and ":" not in text:
            found["faculty"] = text
            continue
        for name, labels in STUDENT_LABELS:
            if name in found:
                continue
            for label in labels:
                value = _strip_label(text, label)
                if value is None:
                    continue
                if not value and index + 1 < len(strings):
                    value = strings[index + 1]
                if value:
                    found[name] = value
                break

    return StudentInfo(**found)


def _compact(text: str) -> str:
    return _WS_RE.sub("", text)


def _first_cell_elements(row: Tag) -> List[Tag]:
    cell = row.find("td")
    if cell is None:
        return []
    return [child for child in cell.children if isinstance(child, Tag)]


def legacy_student_info(soup: BeautifulSoup) -> StudentInfo:
    """
    Fixed-row reading of the unlabeled printed layout.

    Rows of the first table (nested rows included): 8 = faculty,
    10 = department / major, 12 = semester / year, 14 = student id / name;
    each value is an element of the row's first cell.
    """
    table = soup.find("table")
    if table is None:
        return StudentInfo()
    rows = table.find_all("tr")
    if len(rows) <= 14:
        return StudentInfo()

    def value(row_index: int, element_index: int) -> str:
        elements = _first_cell_elements(rows[row_index])
        return elements[element_index].get_text() if element_index < len(elements) else ""

    return StudentInfo(
        faculty=_compact(rows[8].get_text()),
        department=_compact(value(10, 0)),
        major=_compact(value(10, 1)),
        semester=_compact(value(12, 0)),
        year=_compact(value(12, 1)),
        student_id=_compact(value(14, 0)),
        name=normalize_text(value(14, 1)).lstrip(": "),
    )


def read_student_info(soup: BeautifulSoup) -> StudentInfo:
    info = read_labeled_student_info(soup)
    if info.student_id:
        return info
    return legacy_student_info(soup)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_study_table(soup: BeautifulSoup) -> StudyTimetable:
    table = find_study_table(soup)
    sessions = parse_sessions(table) if table is not None else []
    return StudyTimetable(student=read_student_info(soup), sessions=sessions)


def create_time_slots(sessions: List[ClassSession], day: str = "จ.") -> List[Optional[TimeSlot]]:
    """
    Lay out one weekday as quarter hours from 08:00.

    Each entry is None (free quarter) or a TimeSlot for the session starting
    there; a TimeSlot stands for `span` quarters, so the spans plus the free
    entries add up to 44.
    """
    on_day = [s for s in sessions if s.day == day]
    slots: List[Optional[TimeSlot]] = []

    i = 0
    while i < SLOT_COUNT:
        label = _minutes_to_time(DAY_START_MINUTES + i * SLOT_MINUTES)
        session = next((s for s in on_day if s.start == label), None)
        if session is None:
            slots.append(None)
            i += 1
            continue
        try:
            span = max(1, (time_to_minutes(session.end) - time_to_minutes(session.start)) // SLOT_MINUTES)
        except ValueError:
            span = 1
        slots.append(TimeSlot(session=session, span=span))
        i += span

    return slots
