"""
Content model assembly (document -> ContentModel).

Specialized page shapes are routed by substrings of the source URL. The
routing table below is the single place that decides precedence: the
first route whose marker matches and whose handler returns a model wins.
Everything else goes through the generic fallback.

Adding a page shape = writing a handler (soup, source_url) -> ContentModel
or None, and inserting one Route.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from bs4 import BeautifulSoup
from loguru import logger

from myportal.forms import extract_exam_table_content, extract_schedule_table_content
from myportal.generic import map_generic_content
from myportal.grades import extract_grade_report_content, extract_transcript_content
from myportal.model import ContentModel, NoteBlock
from myportal.news import extract_news_list_content
from myportal.registration import extract_minor_program_content, extract_registration_eligibility_content
from myportal.scores import extract_midterm_score_content


Handler = Callable[[BeautifulSoup, Optional[str]], Optional[ContentModel]]

UNSUPPORTED_NOTE = "ฟีเจอร์นี้กำลังอยู่ในระหว่างการพัฒนา กรุณาใช้หน้าต้นฉบับในการดูข้อมูล"


@dataclass(frozen=True)
class Route:
    name: str
    markers: Tuple[str, ...]
    handler: Handler

    def matches(self, source_url: Optional[str]) -> bool:
        if not source_url:
            return False
        return any(marker in source_url for marker in self.markers)


def unsupported_page(title: str) -> Handler:
    """
    Handler for known pages without a native view: one info note, whatever the content.
    """

    def handler(soup: BeautifulSoup, source_url: Optional[str] = None) -> ContentModel:
        return ContentModel(title=title, blocks=[NoteBlock(tone="info", text=UNSUPPORTED_NOTE)])

    return handler


ROUTES: Tuple[Route, ...] = (
    Route("advanceGrade", ("advance_gradetable",), unsupported_page("ข้อมูลผลการเรียน 4+1")),
    Route("graduation", ("grad/grad.php", "unauthor.php"), unsupported_page("แจ้งคาดว่าจะสำเร็จการศึกษา")),
    Route("webboard", ("webboardX.php",), unsupported_page("เว็บบอร์ดสำนักฯ")),
    Route("gradeProcess", ("grade_process.php",), unsupported_page("ขั้นตอนการส่งเกรด")),
    Route("gradeReport", ("report_gradetable",), extract_grade_report_content),
    Route("transcript", ("report_transcript",), extract_transcript_content),
    Route("midtermScore", ("midterm_score",), extract_midterm_score_content),
    Route("newsList", ("newsX.php",), extract_news_list_content),
    Route("schedule", ("report_studytable.php",), extract_schedule_table_content),
    Route("exam", ("report_examtable.php",), extract_exam_table_content),
    Route("minorProgram", ("minor.php",), extract_minor_program_content),
    Route("registrationEligibility", ("check_regis_no_right.php",), extract_registration_eligibility_content),
)


def detect_specialized_content(
    soup: BeautifulSoup,
    source_url: Optional[str] = None,
    routes: Tuple[Route, ...] = ROUTES,
) -> Optional[ContentModel]:
    """
    Try every matching route in order; None when no specialized shape applies.

    A handler that raises is treated as a shape mismatch.
    """
    for route in routes:
        if not route.matches(source_url):
            continue
        try:
            model = route.handler(soup, source_url)
        except Exception:
            logger.exception("Handler {} failed for {}, treating as no match", route.name, source_url)
            continue
        if model is not None:
            logger.debug("Route {} matched {}", route.name, source_url)
            return model
        logger.debug("Route {} declined {}", route.name, source_url)
    return None


def map_document_to_content(soup: BeautifulSoup, source_url: Optional[str] = None) -> ContentModel:
    """
    Parsed page -> ContentModel. Always returns a model.
    """
    specialized = detect_specialized_content(soup, source_url)
    if specialized is not None:
        return specialized

    logger.debug("No specialized shape for {}, using generic extraction", source_url)
    return map_generic_content(soup)


def map_html_to_content(html: str, source_url: Optional[str] = None) -> ContentModel:
    return map_document_to_content(BeautifulSoup(html, "html.parser"), source_url)
