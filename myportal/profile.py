"""
Student profile of the portal home page.

Most fields sit in elements with stable ids (#div_student_id, #div_t_name,
...). The national ID has no id of its own and is found by its label.
"""

from __future__ import annotations

import re
from typing import List, Optional, Set, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from myportal.model import StudentAnnouncement, StudentProfile
from myportal.text import element_text, row_cells


NATIONAL_ID_LABEL = "เลขประจำตัวประชาชน"
NO_ANNOUNCEMENT = "ไม่มีประกาศ"

PERSONAL_SOURCE = "personal-info"
REGISTRAR_SOURCE = "registrar-highlight"

_NON_DIGIT_RE = re.compile(r"\D")
_WS_RE = re.compile(r"\s+")

# d-dddd-ddddd-dd-d
NATIONAL_ID_GROUPS = ((0, 1), (1, 5), (5, 10), (10, 12), (12, 13))


def format_national_id(digits: str) -> str:
    if len(digits) != 13:
        return digits
    return "-".join(digits[start:end] for start, end in NATIONAL_ID_GROUPS)


def mask_national_id(digits: str) -> str:
    """
    Keep the first digit and the last two, star the rest.
    """
    if not digits:
        return ""
    masked = "".join(
        d if i == 0 or i >= len(digits) - 2 else "*" for i, d in enumerate(digits)
    )
    return format_national_id(masked)


def full_name(title: str, name: str) -> str:
    return " ".join(part for part in (title, name) if part).strip()


class StudentProfileScraping:
    def __init__(self, soup: BeautifulSoup, base_url: Optional[str] = None) -> None:
        self.soup = soup
        self.base_url = base_url

    def extract(self) -> StudentProfile:
        thai_title = self.text_by_id("div_t_prename")
        english_title = self.text_by_id("div_e_prename")
        thai_name = self.text_by_id("div_t_name")
        english_name = self.text_by_id("div_e_name")

        national_id_raw = self.value_by_label(NATIONAL_ID_LABEL) or self.legacy_national_id()
        digits = _NON_DIGIT_RE.sub("", national_id_raw)

        return StudentProfile(
            student_id=self.text_by_id("div_student_id"),
            national_id=format_national_id(digits) or national_id_raw,
            national_id_masked=mask_national_id(digits) or national_id_raw,
            thai_title=thai_title,
            thai_name=thai_name,
            thai_full_name=full_name(thai_title, thai_name),
            english_title=english_title,
            english_name=english_name,
            english_full_name=full_name(english_title, english_name).upper(),
            birth_date=self.text_by_id("div_birth_date"),
            gender=self.text_by_id("div_gender"),
            status=self.text_by_id("div_status"),
            faculty=self.text_by_id("div_faculty_name"),
            curriculum=self.text_by_id("div_curr2_tname"),
            admission_type=self.text_by_id("div_admis_type"),
            admission_year=self.text_by_id("div_admis_year"),
            expected_graduation_year=self.text_by_id("div_grad_year"),
            expected_graduation_date=self.text_by_id("div_grad_date"),
            advisory_message=self.text_by_id("div_msg"),
            announcements=self.extract_announcements(),
        )

    def text_by_id(self, element_id: str) -> str:
        return element_text(self.soup.find(id=element_id))

    def value_by_label(self, label: str) -> str:
        """
        Text of the cell following the first cell that mentions the label.
        """
        needle = _WS_RE.sub("", label)
        for cell in self.soup.find_all("td"):
            # layout cells wrapping the labeled row mention the label too
            if cell.find("td") is not None:
                continue
            if needle not in _WS_RE.sub("", cell.get_text()):
                continue
            row = cell.parent
            cells = row_cells(row) if row is not None else []
            position = next((i for i, c in enumerate(cells) if c is cell), -1)
            if 0 <= position < len(cells) - 1:
                return element_text(cells[position + 1])
        return ""

    def legacy_national_id(self) -> str:
        """
        Older home pages print the national ID, unlabeled, in the last cell
        of the row right above the Thai title row.
        """
        anchor = self.soup.find(id="div_t_prename")
        row = anchor.find_parent("tr") if anchor is not None else None
        previous = row.find_previous_sibling("tr") if row is not None else None
        if previous is None:
            return ""
        cells = previous.find_all("td")
        return element_text(cells[-1]) if cells else ""

    # -- announcements -----------------------------------------------------

    def resolve_href(self, anchor: Tag) -> Optional[str]:
        href = anchor.get("href")
        if not href or href.lower().startswith("javascript"):
            return None
        if not self.base_url:
            return href
        try:
            return urljoin(self.base_url, href)
        except ValueError:
            return href

    def extract_announcements(self) -> List[StudentAnnouncement]:
        announcements: List[StudentAnnouncement] = []

        accordion = self.soup.find(id="accordion")
        if accordion is not None:
            panel = accordion.select_one(".ui-accordion-content") or accordion
            children = [child for child in panel.children if isinstance(child, Tag)]
            for index, element in enumerate(children or [panel]):
                links = element.find_all("a")
                if element.name == "a":
                    links = [element]
                if links:
                    for link_index, link in enumerate(links):
                        title = element_text(link)
                        if not title:
                            continue
                        announcements.append(
                            StudentAnnouncement(
                                id=f"accordion-link-{index}-{link_index}-{link.get('id') or 'anchor'}",
                                title=title,
                                href=self.resolve_href(link),
                                source=PERSONAL_SOURCE,
                                variant="highlight",
                            )
                        )
                    continue

                text = element_text(element)
                if not text:
                    continue
                announcements.append(
                    StudentAnnouncement(
                        id=f"accordion-note-{index}",
                        title=text,
                        source=PERSONAL_SOURCE,
                        variant="empty" if NO_ANNOUNCEMENT in text else "info",
                    )
                )

        spotlight = self.soup.select_one("#kmitl_exp a")
        if spotlight is not None:
            title = element_text(spotlight)
            if title:
                announcements.append(
                    StudentAnnouncement(
                        id=f"spotlight-{spotlight.get('id') or 'primary'}",
                        title=title,
                        href=self.resolve_href(spotlight),
                        source=REGISTRAR_SOURCE,
                        variant="highlight",
                    )
                )

        return dedupe_announcements(announcements)


def dedupe_announcements(announcements: List[StudentAnnouncement]) -> List[StudentAnnouncement]:
    seen: Set[Tuple[str, str]] = set()
    out: List[StudentAnnouncement] = []
    for item in announcements:
        key = (item.title, item.href or "")
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out
