"""
Midterm score tables (midterm_score.php).

Page layout, top to bottom:
- a form "edit" with year / semester selectors
- one big table: institution, faculty, "ID: ... Name: ...", "Major: ...
  Semester/Year : 1/2568" lines, then the header row
  (No. | Course No | Course Title | Section | <assessment> ...), then one
  row per course, with 1px spacer cells in between
- a legend table (สัญลักษณ์ | ความหมาย) explaining the status icons
- a "หมายเหตุ ..." remark

Score cells hold either a number, "-", or an icon (process.gif,
fail.gif, ...) standing for a status.

The header-line parser and icon mapping are shared with the grade report.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from myportal.forms import find_edit_form, read_select_options, read_year_semester, selected_value
from myportal.model import (
    NOT_ANNOUNCED,
    NOT_ENTERED,
    PROCESSING,
    SCORE,
    ContentModel,
    MidtermScoreBlock,
    ScoreAssessment,
    ScoreboardHeader,
    ScoreCourse,
    ScoreLegendItem,
)
from myportal.text import (
    all_tables,
    element_text,
    has_element_children,
    innermost,
    is_positive_int,
    normalize_text,
    parse_int,
    row_cells,
    table_rows,
)


MIDTERM_TITLE = "ข้อมูลคะแนนเก็บ"
DEFAULT_MIDTERM_ACTION = "midterm_score.php"

NO_DATA = "ไม่มีข้อมูล"
PROCESSING_DISPLAY = "อยู่ระหว่างออกคะแนน"
NOT_ANNOUNCED_DISPLAY = "ยังไม่ประกาศคะแนน"

NOTE_PREFIX = "หมายเหตุ"

# No. | Course No | Course Title | Section
PREAMBLE_COLUMNS = 4
MIN_HEADER_CELLS = 5

_THAI = "\u0E00-\u0E7F"
_ID_RE = re.compile(r"ID:\s*(\d+)")
_ENGLISH_NAME_RE = re.compile(rf"Name:\s*([A-Za-z.\s]+?)\s*(?=[{_THAI}]|ID:|$)")
_THAI_NAME_RE = re.compile(rf"[{_THAI}][{_THAI}.\s]*")
_MAJOR_RE = re.compile(r"Major:\s*(.+?)(?:\s+Semester/Year|$)")
_SEMESTER_RE = re.compile(r"Semester/Year\s*:\s*(\S+)")
_FACULTY_PREFIX_RE = re.compile(r"^Faculty of\s*", re.IGNORECASE)
_INSTITUTION_RE = re.compile(r"King Mongkut", re.IGNORECASE)
_FACULTY_RE = re.compile(r"Faculty", re.IGNORECASE)
_FACULTY_OF_RE = re.compile(r"Faculty of", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoreCellData:
    """
    What a score cell holds: its text and, for icon cells, the image.
    """

    text: str
    img_src: Optional[str] = None
    img_alt: Optional[str] = None


def score_cell_data(cell: Tag) -> ScoreCellData:
    text = element_text(cell)
    image = cell.find("img")
    img_src = image.get("src") if image is not None else None
    img_alt = normalize_text(image.get("alt") or image.get("title") or "") if image is not None else None
    return ScoreCellData(text=text, img_src=img_src or None, img_alt=img_alt)


def is_separator_cell(cell: Tag) -> bool:
    """
    A cell without text or image is a separator when it is at most 2px wide
    or has no element children.
    """
    if element_text(cell) or cell.find("img") is not None:
        return False
    width = parse_int(cell.get("width"))
    if width is not None and width <= 2:
        return True
    return not has_element_children(cell)


def indexed_score_cells(row: Tag) -> List[Tuple[int, ScoreCellData]]:
    """
    (raw cell position, data) for the non-separator cells of a row.
    """
    return [(i, score_cell_data(cell)) for i, cell in enumerate(row_cells(row)) if not is_separator_cell(cell)]


def row_score_cells(row: Tag) -> List[ScoreCellData]:
    """
    Score-table cells of a row with separator cells skipped.
    """
    return [data for _, data in indexed_score_cells(row)]


def map_icon_to_status(src: str, alt: Optional[str] = None) -> Tuple[str, str]:
    """
    Status icon -> (status, display). The icon's alt text wins as display.
    """
    filename = src.split("/")[-1].lower()

    if "process" in filename:
        return PROCESSING, alt or PROCESSING_DISPLAY
    if "fail" in filename:
        return NOT_ANNOUNCED, alt or NOT_ANNOUNCED_DISPLAY
    return NOT_ENTERED, alt or NO_DATA


def format_score_assessment(cell: Optional[ScoreCellData], label: str) -> ScoreAssessment:
    """
    Map one score cell to exactly one of the four statuses.
    """
    if cell is None:
        return ScoreAssessment(label=label, status=NOT_ENTERED, display=NO_DATA, raw="")

    if cell.img_src:
        status, display = map_icon_to_status(cell.img_src, cell.img_alt)
        return ScoreAssessment(label=label, status=status, display=display, raw=cell.img_alt or cell.img_src)

    if not cell.text or cell.text == "-":
        return ScoreAssessment(label=label, status=NOT_ENTERED, display=NO_DATA, raw=cell.text)

    return ScoreAssessment(label=label, status=SCORE, display=cell.text, raw=cell.text)


# ---------------------------------------------------------------------------
# Header lines
# ---------------------------------------------------------------------------


def _is_faculty_line(text: str, grade_report: bool) -> bool:
    # grade report headers print the faculty as "Faculty of ..." apart from the ID line
    if grade_report:
        return bool(_FACULTY_OF_RE.search(text)) and "ID:" not in text
    return bool(_FACULTY_RE.search(text))


def parse_header_lines(lines: Iterable[str], strip_faculty_prefix: bool = False) -> ScoreboardHeader:
    """
    Read the labeled lines printed above a score / grade table.

    Recognized lines: institution (King Mongkut...), faculty, "ID: ...
    Name: <english> <thai>" and "Major: ... Semester/Year : <term/year>".
    """
    found: dict[str, str] = {}

    for raw in lines:
        text = normalize_text(raw)
        if not text:
            continue

        if "institution" not in found and _INSTITUTION_RE.search(text):
            found["institution"] = text
            continue

        if "faculty" not in found and _is_faculty_line(text, strip_faculty_prefix):
            found["faculty"] = _FACULTY_PREFIX_RE.sub("", text).strip() if strip_faculty_prefix else text
            continue

        if "ID:" in text:
            m = _ID_RE.search(text)
            if m:
                found["student_id"] = m.group(1)

            english = _ENGLISH_NAME_RE.search(text)
            if english and english.group(1).strip():
                found["student_english_name"] = normalize_text(english.group(1))

            _, _, after_name = text.partition("Name:")
            thai = _THAI_NAME_RE.search(after_name)
            if thai:
                found["student_thai_name"] = normalize_text(thai.group(0))
            continue

        if "Major:" in text:
            m = _MAJOR_RE.search(text)
            if m:
                found["major"] = m.group(1).strip()
            m = _SEMESTER_RE.search(text)
            if m:
                found["semester"] = m.group(1).strip()

    return ScoreboardHeader(**found)


# ---------------------------------------------------------------------------
# Midterm score table
# ---------------------------------------------------------------------------


def find_midterm_score_table(soup: BeautifulSoup) -> Optional[Tag]:
    """
    Table mentioning the course headers with the most rows (first wins on ties).
    """
    best: Optional[Tag] = None
    max_rows = 0
    for table in all_tables(soup):
        text = element_text(table)
        if not (("Course Title" in text or "Course No" in text) and "Section" in text):
            continue
        n_rows = len(table_rows(table))
        if n_rows > max_rows:
            best, max_rows = table, n_rows
    return best


@dataclass(frozen=True)
class MidtermHeader:
    row_index: int
    # (column index in the row's score cells, assessment label)
    columns: List[Tuple[int, str]]
    header: ScoreboardHeader
    # raw row_cells positions of the header's non-separator cells
    positions: List[int] = field(default_factory=list)
    width: int = 0

    @property
    def assessments(self) -> List[str]:
        return [label for _, label in self.columns]


def locate_midterm_header(rows: List[Tag]) -> Optional[MidtermHeader]:
    for index, row in enumerate(rows):
        indexed = indexed_score_cells(row)
        texts = [cell.text for _, cell in indexed]
        if len(texts) < MIN_HEADER_CELLS:
            continue

        has_title = any(re.search(r"Course Title", t, re.IGNORECASE) for t in texts)
        has_number = any(re.search(r"Course No", t, re.IGNORECASE) for t in texts)
        if not (has_title and has_number):
            continue

        section_index = next(
            (i for i, t in enumerate(texts) if re.fullmatch(r"Section", t.strip(), re.IGNORECASE)),
            -1,
        )
        start = section_index + 1 if section_index >= 0 else PREAMBLE_COLUMNS
        columns = [(i, t) for i, t in enumerate(texts) if i >= start and t]

        header = parse_header_lines(element_text(r) for r in rows[:index])
        return MidtermHeader(
            row_index=index,
            columns=columns,
            header=header,
            positions=[i for i, _ in indexed],
            width=len(row_cells(row)),
        )

    return None


def _course_row_cells(row: Tag, located: MidtermHeader) -> List[ScoreCellData]:
    """
    Cells of a course row lined up with the header's cells.

    Rows as wide as the header are read at the header's positions, so an
    empty score cell keeps its column; other rows fall back to skipping
    separators.
    """
    raw = row_cells(row)
    if located.positions and len(raw) == located.width:
        return [score_cell_data(raw[i]) for i in located.positions]
    return row_score_cells(row)


def parse_midterm_courses(rows: List[Tag], located: MidtermHeader) -> List[ScoreCourse]:
    columns = located.columns
    courses: List[ScoreCourse] = []
    for row in rows:
        cells = _course_row_cells(row, located)
        if not cells:
            continue

        order = cells[0].text
        if not is_positive_int(order):
            continue

        def text_at(i: int) -> str:
            return cells[i].text if i < len(cells) else ""

        assessments = [
            format_score_assessment(cells[i] if i < len(cells) else None, label) for i, label in columns
        ]
        courses.append(
            ScoreCourse(
                order=order,
                course_number=text_at(1),
                course_title=text_at(2),
                section=text_at(3),
                assessments=assessments,
            )
        )
    return courses


def map_legend_item(cell: ScoreCellData, description: str) -> ScoreLegendItem:
    if cell.img_src:
        status, display = map_icon_to_status(cell.img_src, cell.img_alt)
        return ScoreLegendItem(status=status, label=display, description=description)
    if cell.text == "-":
        return ScoreLegendItem(status=NOT_ENTERED, label="-", description=description)
    return ScoreLegendItem(status=SCORE, label=cell.text, description=description)


def extract_midterm_legend(soup: BeautifulSoup) -> List[ScoreLegendItem]:
    candidates = [
        t for t in all_tables(soup) if "สัญลักษณ์" in element_text(t) and "ความหมาย" in element_text(t)
    ]
    candidates = innermost(candidates)
    if not candidates:
        return []

    legend: List[ScoreLegendItem] = []
    for row in table_rows(candidates[0])[1:]:
        cells = row_score_cells(row)
        if len(cells) < 2:
            continue
        description = cells[-1].text
        if not description:
            continue
        legend.append(map_legend_item(cells[0], description))
    return legend


def extract_midterm_note(soup: BeautifulSoup) -> Optional[str]:
    for element in soup.find_all(["p", "strong"]):
        text = element_text(element)
        if text.startswith(NOTE_PREFIX):
            return text
    return None


def extract_midterm_score_content(
    soup: BeautifulSoup,
    source_url: Optional[str] = None,
) -> Optional[ContentModel]:
    table = find_midterm_score_table(soup)
    if table is None:
        return None

    rows = table_rows(table)
    located = locate_midterm_header(rows)
    if located is None:
        return None

    courses = parse_midterm_courses(rows[located.row_index + 1 :], located)
    if not courses:
        return None

    form = find_edit_form(soup)
    year_select, semester_select = read_year_semester(form)
    action_url = (form.get("action") if form is not None else None) or DEFAULT_MIDTERM_ACTION

    header = located.header
    block = MidtermScoreBlock(
        action_url=action_url,
        years=read_select_options(year_select),
        semesters=read_select_options(semester_select),
        selected_year=selected_value(year_select),
        selected_semester=selected_value(semester_select),
        header=header,
        assessments=located.assessments,
        courses=courses,
        legend=extract_midterm_legend(soup),
        note=extract_midterm_note(soup),
    )
    return ContentModel(
        type="midtermScore",
        title=MIDTERM_TITLE,
        subtitle=f"ภาคเรียน {header.semester}" if header.semester else None,
        blocks=[block],
    )
