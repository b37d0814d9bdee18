"""
Grade report (report_gradetable*.php) and transcript (report_transcript*.php).

The grade report comes in two shapes:
- the form page: only the "edit" form with year / semester selectors
- the results page: a course table (header lines + No. | Course No. |
  Course Title | Section | Credit | Type | Grade), a small summary table
  (CA | CP | CD | GP | GPS/GPA | Status) and a small legend table whose
  symbols are coloured "X" glyphs (<font color="#00FF00">X</font>)

Both shapes produce one gradeReport block; the form page simply has no
courses.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from myportal.forms import find_edit_form, read_select_options, read_year_semester, selected_value
from myportal.model import (
    ContentModel,
    GradeReportBlock,
    GradeReportCourse,
    GradeReportLegendItem,
    GradeReportSummary,
    ScheduleOption,
    ScoreboardHeader,
    TranscriptBlock,
)
from myportal.scores import parse_header_lines
from myportal.text import (
    all_tables,
    element_text,
    innermost,
    is_positive_int,
    parse_int,
    row_cells,
    table_rows,
)


GRADE_TITLE = "ข้อมูลผลการเรียน"
GRADE_FORM_SUBTITLE = "เลือกปีการศึกษาและภาคเรียนเพื่อดูผลการเรียน"
DEFAULT_GRADE_ACTION = "report_gradetable_show.php"
GRADE_PDF_MARKER = "report_gradetable_pdf"

TRANSCRIPT_TITLE = "ทรานสคริปต์"
TRANSCRIPT_ACTION = "report_transcript_show2.php"
TRANSCRIPT_PDF_MARKER = "transcript_pdf"

MAX_SUMMARY_ROWS = 15
MAX_LEGEND_ROWS = 10
MIN_NOTE_LENGTH = 100
NOTE_EXCLUDES = ("ID:", "Name:", "Faculty", "Major:")

STANDARD_SEMESTERS = ("1", "2", "3")
YEARS_BACK = 2

_TERM_YEAR_RE = re.compile(r"(\d+)/(\d+)")


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------


def _is_separator_row(row: Tag) -> bool:
    if row.get("height") == "1":
        return True
    cells = row_cells(row)
    return len(cells) == 1 and not element_text(cells[0])


def _data_cells(row: Tag) -> List[Tag]:
    """
    Cells of a grade row without 1px borders and blank white fillers.
    """
    out: List[Tag] = []
    for cell in row_cells(row):
        width = parse_int(cell.get("width"))
        if width is not None and width <= 1:
            continue
        bgcolor = (cell.get("bgcolor") or "").upper()
        if bgcolor == "#FFFFFF" and not element_text(cell):
            continue
        out.append(cell)
    return out


def _header_index(rows: List[Tag], *needles: str) -> int:
    for i, row in enumerate(rows):
        text = element_text(row)
        if all(n in text for n in needles):
            return i
    return -1


# ---------------------------------------------------------------------------
# Table discovery
# ---------------------------------------------------------------------------


def find_grade_course_table(tables: List[Tag]) -> Optional[Tag]:
    """
    Course table: grade headers present, most rows wider than 5 cells.

    Wrapper tables contain the same header text but own few wide rows. The
    first table wins a tie.
    """
    best: Optional[Tag] = None
    max_data_rows = 0
    for table in tables:
        text = element_text(table)
        if not ("Course No" in text and "Grade" in text and ("Course Title" in text or "Section" in text)):
            continue
        data_rows = sum(1 for row in table_rows(table) if len(row_cells(row)) > 5)
        if data_rows > max_data_rows:
            best, max_data_rows = table, data_rows
    return best


def find_grade_summary_table(tables: List[Tag]) -> Optional[Tag]:
    candidates: List[Tag] = []
    for table in tables:
        rows = table_rows(table)
        if len(rows) > MAX_SUMMARY_ROWS:
            continue
        for row in rows[:3]:
            text = element_text(row)
            if "CA" in text and "CP" in text and "GP" in text:
                candidates.append(table)
                break
    found = innermost(candidates)
    return found[0] if found else None


def _has_x_symbol(table: Tag) -> bool:
    return any(element_text(font) == "X" for font in table.select("font[color]"))


def find_grade_legend_table(tables: List[Tag]) -> Optional[Tag]:
    candidates: List[Tag] = []
    for table in tables:
        if not _has_x_symbol(table):
            continue
        rows = table_rows(table)
        if len(rows) > MAX_LEGEND_ROWS:
            continue
        if any(len(row_cells(row)) == 2 for row in rows):
            candidates.append(table)
    found = innermost(candidates)
    return found[0] if found else None


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_grade_header(table: Tag) -> Optional[ScoreboardHeader]:
    lines = [element_text(row) for row in table_rows(table) if not _is_separator_row(row)]
    header = parse_header_lines(lines, strip_faculty_prefix=True)
    return header if header.student_id else None


def extract_grade_courses(table: Tag) -> List[GradeReportCourse]:
    rows = table_rows(table)
    start = _header_index(rows, "No.", "Course No.", "Grade")
    if start == -1:
        return []

    courses: List[GradeReportCourse] = []
    for row in rows[start + 1 :]:
        if _is_separator_row(row):
            continue
        cells = _data_cells(row)
        if len(cells) < 7:
            continue

        values = [t for t in (element_text(c) for c in cells) if t]
        # No, Course No, Title, Section, Credit, Type; the grade may be blank
        if len(values) < 6 or not is_positive_int(values[0]):
            continue
        if not values[1]:
            continue

        courses.append(
            GradeReportCourse(
                no=values[0],
                course_no=values[1],
                course_title=values[2],
                section=values[3],
                credit=values[4],
                type=values[5],
                grade=values[6] if len(values) > 6 else "-",
            )
        )
    return courses


def extract_grade_summaries(table: Tag) -> List[GradeReportSummary]:
    rows = table_rows(table)
    start = _header_index(rows, "CA", "CP", "GP")
    if start == -1:
        return []

    summaries: List[GradeReportSummary] = []
    for row in rows[start + 1 :]:
        if _is_separator_row(row):
            continue
        values = [t for t in (element_text(c) for c in _data_cells(row)) if t]
        if not values:
            continue

        # the pre-semester row only carries GP and GPA
        if len(values) == 3 and "Pre" in values[0]:
            summaries.append(
                GradeReportSummary(label=values[0], ca="", cp="", cd="", gp=values[1], gps_gpa=values[2], status="")
            )
            continue

        if len(values) < 7:
            continue

        summaries.append(
            GradeReportSummary(
                label=values[0],
                ca=values[1],
                cp=values[2],
                cd=values[3],
                gp=values[4],
                gps_gpa=values[5],
                status=values[6],
            )
        )
    return summaries


def symbol_color(color: Optional[str]) -> str:
    value = (color or "").lower()
    if "00ff00" in value:
        return "green"
    if "ff0000" in value:
        return "red"
    return "gray"


def extract_grade_legend(table: Tag) -> List[GradeReportLegendItem]:
    legend: List[GradeReportLegendItem] = []
    for row in table_rows(table)[1:]:
        cells = row_cells(row)
        if len(cells) < 2:
            continue
        symbol_cell, description_cell = cells[0], cells[1]
        # colspan cells carry the note, not a symbol
        if symbol_cell.has_attr("colspan"):
            continue

        description = element_text(description_cell)
        if not description:
            continue

        font = symbol_cell.find("font")
        legend.append(
            GradeReportLegendItem(
                symbol=element_text(symbol_cell),
                symbol_color=symbol_color(font.get("color") if font is not None else None),
                description=description,
            )
        )
    return legend


def extract_grade_note(tables: List[Tag]) -> Optional[str]:
    for table in tables:
        if len(table_rows(table)) > MAX_LEGEND_ROWS or not _has_x_symbol(table):
            continue
        for row in table_rows(table):
            cell = row.find("td", attrs={"colspan": True})
            if cell is None:
                continue
            text = element_text(cell)
            if len(text) > MIN_NOTE_LENGTH and not any(marker in text for marker in NOTE_EXCLUDES):
                return text
    return None


def synthesize_term_options(semester: str) -> Optional[Tuple[List[ScheduleOption], List[ScheduleOption], str, str]]:
    """
    Build selectors from a "term/year" string when the page has none.

    Returns (years, semesters, selected_year, selected_semester): the year
    and the YEARS_BACK years before it, plus the standard terms.
    """
    m = _TERM_YEAR_RE.search(semester)
    if not m:
        return None
    term, year = m.group(1), m.group(2)
    current = int(year)
    years = [ScheduleOption(value=str(current - i), label=str(current - i)) for i in range(YEARS_BACK + 1)]
    semesters = [ScheduleOption(value=s, label=s) for s in STANDARD_SEMESTERS]
    return years, semesters, year, term


def extract_grade_report_content(
    soup: BeautifulSoup,
    source_url: Optional[str] = None,
) -> Optional[ContentModel]:
    tables = all_tables(soup)
    course_table = find_grade_course_table(tables)

    form = find_edit_form(soup)
    year_select, semester_select = read_year_semester(form)
    action_url = (form.get("action") if form is not None else None) or DEFAULT_GRADE_ACTION
    years = read_select_options(year_select)
    semesters = read_select_options(semester_select)
    selected_year = selected_value(year_select)
    selected_semester = selected_value(semester_select)

    if course_table is None:
        block = GradeReportBlock(
            action_url=action_url,
            years=years,
            semesters=semesters,
            selected_year=selected_year,
            selected_semester=selected_semester,
        )
        return ContentModel(type="gradeReport", title=GRADE_TITLE, subtitle=GRADE_FORM_SUBTITLE, blocks=[block])

    header = extract_grade_header(course_table)
    summary_table = find_grade_summary_table(tables)
    legend_table = find_grade_legend_table(tables)
    pdf_link = soup.select_one(f"a[href*='{GRADE_PDF_MARKER}']")

    if not years and header is not None and header.semester:
        synthesized = synthesize_term_options(header.semester)
        if synthesized is not None:
            years, semesters, selected_year, selected_semester = synthesized

    block = GradeReportBlock(
        action_url=action_url,
        pdf_url=(pdf_link.get("href") or None) if pdf_link is not None else None,
        years=years,
        semesters=semesters,
        selected_year=selected_year,
        selected_semester=selected_semester,
        header=header,
        courses=extract_grade_courses(course_table),
        summaries=extract_grade_summaries(summary_table) if summary_table is not None else [],
        legend=extract_grade_legend(legend_table) if legend_table is not None else [],
        note=extract_grade_note(tables),
    )
    return ContentModel(
        type="gradeReport",
        title=GRADE_TITLE,
        subtitle=header.semester if header is not None else None,
        blocks=[block],
    )


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------


def extract_transcript_content(
    soup: BeautifulSoup,
    source_url: Optional[str] = None,
) -> Optional[ContentModel]:
    """
    Transcript pages are only recognized; the UI renders them from the PDF / show page.
    """
    main_table = next(
        (
            t
            for t in all_tables(soup)
            if all(word in t.get_text() for word in ("COURSE TITLE", "CREDIT", "GRADE"))
        ),
        None,
    )
    if main_table is None:
        return None

    pdf_link = soup.select_one(f"a[href*='{TRANSCRIPT_PDF_MARKER}']")
    block = TranscriptBlock(
        action_url=TRANSCRIPT_ACTION,
        pdf_url=(pdf_link.get("href") or None) if pdf_link is not None else None,
    )
    return ContentModel(type="transcript", title=TRANSCRIPT_TITLE, blocks=[block])
