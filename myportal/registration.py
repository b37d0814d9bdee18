"""
Registration related pages.

- check_regis_no_right.php: "may I register this term?" status page
- minor.php: minor program landing page (not rendered natively yet, the
  block only carries the source URL so the UI can link back)
"""

from __future__ import annotations

from typing import Dict, Optional

from bs4 import BeautifulSoup

from myportal.model import ContentModel, MinorProgramBlock, RegistrationEligibilityBlock
from myportal.text import all_tables, element_text, row_cells, table_rows


ELIGIBLE_MARKER = "สามารถลงทะเบียน"
NEGATION = "ไม่"

ELIGIBILITY_TITLE = "ตรวจสอบสิทธิ์ก่อนลงทะเบียน"
ELIGIBILITY_SUBTITLE = "Registration Eligibility Check"

MINOR_URL_MARKER = "minor.php"
MINOR_NAV_PAGES = ("minor_news.php", "minor_program.php", "minor_apply.php")
MINOR_TITLE = "หลักสูตรวิชาโท"
MINOR_SUBTITLE = "Minor Program Management"


# ---------------------------------------------------------------------------
# Registration eligibility
# ---------------------------------------------------------------------------


def heading_grants_eligibility(text: str) -> bool:
    """
    True when the heading says the student can register.

    "ไม่สามารถลงทะเบียน" (cannot register) contains the affirmative phrase,
    so an occurrence directly preceded by the negation does not count.
    """
    start = text.find(ELIGIBLE_MARKER)
    while start != -1:
        if not text[:start].rstrip().endswith(NEGATION):
            return True
        start = text.find(ELIGIBLE_MARKER, start + 1)
    return False


def _scan_student_tables(soup: BeautifulSoup) -> Dict[str, str]:
    """
    Pair label cells with the value cell next to them.
    """
    found: Dict[str, str] = {}
    for table in all_tables(soup):
        for row in table_rows(table):
            cells = row_cells(row)
            if len(cells) < 2:
                continue
            label = element_text(cells[0])
            value = element_text(cells[1])

            if "รหัสนักศึกษา" in label:
                key = "student_id"
            elif "ชื่อ-นามสกุล" in label or "ชื่อ" in label:
                key = "student_name"
            elif "ภาคการศึกษา" in label:
                key = "semester"
            else:
                continue
            # a blank value leaves room for a later row with the same label
            if value and not found.get(key):
                found[key] = value
    return found


def extract_registration_eligibility_content(
    soup: BeautifulSoup,
    source_url: Optional[str] = None,
) -> Optional[ContentModel]:
    prompt = soup.select_one("h1.prompt")
    if prompt is None:
        return None

    has_eligibility = heading_grants_eligibility(element_text(prompt))

    student_id = element_text(soup.select_one("#div_student_id"))
    student_name = element_text(soup.select_one("#div_tname"))
    semester = element_text(soup.select_one("#div_semester"))

    if not student_id or not student_name:
        scanned = _scan_student_tables(soup)
        student_id = student_id or scanned.get("student_id", "")
        student_name = student_name or scanned.get("student_name", "")
        semester = semester or scanned.get("semester", "")

    if not student_id:
        return None

    block = RegistrationEligibilityBlock(
        student_id=student_id,
        student_name=student_name,
        semester=semester or "-",
        has_eligibility=has_eligibility,
    )
    return ContentModel(
        type="registrationEligibility",
        title=ELIGIBILITY_TITLE,
        subtitle=ELIGIBILITY_SUBTITLE,
        blocks=[block],
    )


# ---------------------------------------------------------------------------
# Minor program
# ---------------------------------------------------------------------------


def has_minor_navigation(soup: BeautifulSoup) -> bool:
    for page in MINOR_NAV_PAGES:
        if soup.select_one(f"ul.blue a[href*='{page}']") is not None:
            return True
    return False


def extract_minor_program_content(
    soup: BeautifulSoup,
    source_url: Optional[str] = None,
) -> Optional[ContentModel]:
    is_minor_url = bool(source_url) and MINOR_URL_MARKER in (source_url or "")
    if not is_minor_url and not has_minor_navigation(soup):
        return None

    return ContentModel(
        type="minorProgram",
        title=MINOR_TITLE,
        subtitle=MINOR_SUBTITLE,
        blocks=[MinorProgramBlock(source_url=source_url or "")],
    )
