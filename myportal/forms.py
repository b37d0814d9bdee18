"""
Year / semester selection forms.

The personal study table (report_studytable.php) and exam table
(report_examtable.php) pages are just a form named "edit" with two
selectors. The midterm score and grade report pages reuse the same form,
so the option helpers live here too.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from myportal.model import ContentModel, ExamTableBlock, ScheduleOption, ScheduleTableBlock
from myportal.text import normalize_text


STUDY_FORM_PAGE = "report_studytable.php"
STUDY_RESULT_PAGE = "report_studytable_show.php"
EXAM_FORM_PAGE = "report_examtable.php"
EXAM_RESULT_PAGE = "report_examtable_show.php"

SCHEDULE_TITLE = "ตารางเรียนส่วนบุคคล"
EXAM_TITLE = "ตารางสอบส่วนบุคคล"


# ---------------------------------------------------------------------------
# Selector helpers
# ---------------------------------------------------------------------------


def find_edit_form(soup: BeautifulSoup) -> Optional[Tag]:
    return soup.select_one("form[name='edit']")


def option_value(option: Tag) -> str:
    # DOM semantics: a missing value attribute falls back to the text
    value = option.get("value")
    if value is None:
        return normalize_text(option.get_text())
    return value


def read_select_options(select: Optional[Tag]) -> List[ScheduleOption]:
    """
    Turn a <select> into ScheduleOption records, in document order.
    """
    if select is None:
        return []
    options: List[ScheduleOption] = []
    for option in select.find_all("option"):
        value = option_value(option)
        label = option.get_text().strip() or value
        options.append(ScheduleOption(value=value, label=label))
    return options


def selected_value(select: Optional[Tag]) -> Optional[str]:
    """
    Value of the selected option, or of the first option when none is marked.
    """
    if select is None:
        return None
    options = select.find_all("option")
    if not options:
        return None
    for option in options:
        if option.has_attr("selected"):
            return option_value(option)
    return option_value(options[0])


def read_year_semester(form: Optional[Tag]) -> Tuple[Optional[Tag], Optional[Tag]]:
    if form is None:
        return None, None
    return form.select_one("select[name='year']"), form.select_one("select[name='semester']")


# ---------------------------------------------------------------------------
# Schedule / exam form pages
# ---------------------------------------------------------------------------


def _selection_form(
    soup: BeautifulSoup,
    source_url: Optional[str],
    form_page: str,
    result_page: str,
) -> Optional[Tuple[List[ScheduleOption], List[ScheduleOption], str]]:
    form = find_edit_form(soup)
    year_select, semester_select = read_year_semester(form)
    if form is None or year_select is None or semester_select is None:
        return None

    years = read_select_options(year_select)
    semesters = read_select_options(semester_select)

    action_url = form.get("action") or ""
    if not action_url and source_url:
        action_url = source_url.replace(form_page, result_page)

    return years, semesters, action_url


def extract_schedule_table_content(
    soup: BeautifulSoup,
    source_url: Optional[str] = None,
) -> Optional[ContentModel]:
    """
    Personal study table form -> one scheduleTable block.
    """
    parsed = _selection_form(soup, source_url, STUDY_FORM_PAGE, STUDY_RESULT_PAGE)
    if parsed is None:
        return None
    years, semesters, action_url = parsed

    block = ScheduleTableBlock(
        title=SCHEDULE_TITLE,
        years=years,
        semesters=semesters,
        action_url=action_url,
    )
    return ContentModel(type="schedule", title=SCHEDULE_TITLE, blocks=[block])


def extract_exam_table_content(
    soup: BeautifulSoup,
    source_url: Optional[str] = None,
) -> Optional[ContentModel]:
    """
    Personal exam table form -> one examTable block.
    """
    parsed = _selection_form(soup, source_url, EXAM_FORM_PAGE, EXAM_RESULT_PAGE)
    if parsed is None:
        return None
    years, semesters, action_url = parsed

    block = ExamTableBlock(
        title=EXAM_TITLE,
        years=years,
        semesters=semesters,
        action_url=action_url,
    )
    return ContentModel(type="exam", title=EXAM_TITLE, blocks=[block])
