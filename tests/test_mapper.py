"""
Unit tests for content model assembly (routing + fallback).

Contract:
- known pages without a native view get exactly one info note
- a failing or declining handler falls through to the next route / generic extraction
- map_document_to_content always returns a model
"""

import unittest

from bs4 import BeautifulSoup

from myportal import map_html_to_content
from myportal.mapper import (
    ROUTES,
    UNSUPPORTED_NOTE,
    Route,
    detect_specialized_content,
    map_document_to_content,
)
from myportal.model import ContentModel, HeadingBlock, NoteBlock, ParagraphBlock

BASE = "https://new.reg.kmitl.ac.th/u_student/"


def _boom(soup, source_url=None):
    raise RuntimeError("broken page")


def _decline(soup, source_url=None):
    return None


def _ok(soup, source_url=None):
    return ContentModel(title="ok")


class TestUnsupportedPages(unittest.TestCase):
    def test_unsupported_notes(self) -> None:
        cases = {
            "advance_gradetable.php": "ข้อมูลผลการเรียน 4+1",
            "grad/grad.php": "แจ้งคาดว่าจะสำเร็จการศึกษา",
            "unauthor.php": "แจ้งคาดว่าจะสำเร็จการศึกษา",
            "webboardX.php": "เว็บบอร์ดสำนักฯ",
            "grade_process.php": "ขั้นตอนการส่งเกรด",
        }
        soup = BeautifulSoup("<body><h1>อื่น ๆ</h1><table><tr><td>x</td></tr></table></body>", "html.parser")
        for page, title in cases.items():
            with self.subTest(page=page):
                model = map_document_to_content(soup, BASE + page)
                self.assertEqual(model.title, title)
                self.assertEqual(model.blocks, [NoteBlock(tone="info", text=UNSUPPORTED_NOTE)])

    def test_advance_grade_wins_over_grade_report_content(self) -> None:
        soup = BeautifulSoup(
            "<table><tr><td>No.</td><td>Course No.</td><td>Course Title</td><td>Section</td>"
            "<td>Credit</td><td>Type</td><td>Grade</td></tr></table>",
            "html.parser",
        )
        model = map_document_to_content(soup, BASE + "advance_gradetable.php")
        self.assertEqual(model.title, "ข้อมูลผลการเรียน 4+1")


class TestRouting(unittest.TestCase):
    def test_route_table_order(self) -> None:
        names = [route.name for route in ROUTES]
        self.assertEqual(names[:4], ["advanceGrade", "graduation", "webboard", "gradeProcess"])
        self.assertEqual(names[-1], "registrationEligibility")
        self.assertEqual(len(names), 12)

    def test_route_matches_substring(self) -> None:
        route = Route("x", ("midterm_score",), _ok)
        self.assertTrue(route.matches(BASE + "midterm_score.php?year=2567"))
        self.assertFalse(route.matches(BASE + "index.php"))
        self.assertFalse(route.matches(None))

    def test_failing_handler_falls_through(self) -> None:
        soup = BeautifulSoup("<p>x</p>", "html.parser")
        routes = (
            Route("boom", ("page.php",), _boom),
            Route("decline", ("page.php",), _decline),
            Route("ok", ("page.php",), _ok),
        )
        model = detect_specialized_content(soup, BASE + "page.php", routes)
        self.assertEqual(model.title, "ok")

    def test_no_matching_route(self) -> None:
        soup = BeautifulSoup("<p>x</p>", "html.parser")
        routes = (Route("boom", ("page.php",), _boom),)
        self.assertIsNone(detect_specialized_content(soup, BASE + "page.php", routes))
        self.assertIsNone(detect_specialized_content(soup, None, routes))


class TestFallback(unittest.TestCase):
    def test_without_url_uses_generic(self) -> None:
        model = map_html_to_content("<h1>Title</h1><p>Hello</p>")
        self.assertIsNone(model.type)
        self.assertEqual(model.title, "Title")
        self.assertEqual(model.blocks, [HeadingBlock(level=1, text="Title"), ParagraphBlock(text="Hello")])

    def test_unknown_url_uses_generic(self) -> None:
        model = map_html_to_content("<p>สวัสดี</p>", BASE + "index.php")
        self.assertEqual(model.blocks, [ParagraphBlock(text="สวัสดี")])

    def test_empty_document(self) -> None:
        model = map_html_to_content("", BASE + "midterm_score.php")
        self.assertEqual(model.title, "ข้อมูล")
        self.assertEqual(model.blocks, [])

    def test_unknown_content_type_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ContentModel(title="x", type="calendar")


if __name__ == "__main__":
    unittest.main()
