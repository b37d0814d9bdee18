"""
Unit tests for the year / semester selection pages.

Contract:
- options are kept in document order
- the result page URL is derived from the form page URL when the form has no action
- a page without both selectors is not a selection page
"""

import unittest

from bs4 import BeautifulSoup

from myportal.forms import (
    extract_exam_table_content,
    extract_schedule_table_content,
    find_edit_form,
    read_select_options,
    read_year_semester,
    selected_value,
)
from myportal.mapper import map_document_to_content
from myportal.model import ExamTableBlock, ScheduleOption, ScheduleTableBlock

STUDY_URL = "https://new.reg.kmitl.ac.th/u_student/report_studytable.php"
EXAM_URL = "https://new.reg.kmitl.ac.th/u_student/report_examtable.php"

FORM_HTML = """
<html><body>
<form name="edit" method="post" {action}>
  <select name="year">
    <option value="2567">2567</option>
    <option value="2566" selected>2566</option>
  </select>
  <select name="semester">
    <option value="1">1</option>
    <option value="2">2</option>
    <option value="3">ฤดูร้อน</option>
  </select>
  <input type="submit" value="ตกลง">
</form>
</body></html>
"""


def _soup(action: str = 'action="report_studytable_show.php"') -> BeautifulSoup:
    return BeautifulSoup(FORM_HTML.format(action=action), "html.parser")


class TestSelectors(unittest.TestCase):
    def test_options_in_document_order(self) -> None:
        year, semester = read_year_semester(find_edit_form(_soup()))
        self.assertEqual(
            read_select_options(year),
            [ScheduleOption(value="2567", label="2567"), ScheduleOption(value="2566", label="2566")],
        )
        self.assertEqual([o.label for o in read_select_options(semester)], ["1", "2", "ฤดูร้อน"])

    def test_selected_value(self) -> None:
        year, semester = read_year_semester(find_edit_form(_soup()))
        self.assertEqual(selected_value(year), "2566")
        # nothing marked -> first option
        self.assertEqual(selected_value(semester), "1")
        self.assertIsNone(selected_value(None))

    def test_option_without_value_uses_text(self) -> None:
        soup = BeautifulSoup("<select><option> 2565 </option></select>", "html.parser")
        self.assertEqual(read_select_options(soup.find("select")), [ScheduleOption(value="2565", label="2565")])


class TestSchedulePage(unittest.TestCase):
    def test_schedule_form_routed(self) -> None:
        model = map_document_to_content(_soup(), STUDY_URL)
        self.assertEqual(model.type, "schedule")
        self.assertEqual(model.title, "ตารางเรียนส่วนบุคคล")
        self.assertEqual(len(model.blocks), 1)

        block = model.blocks[0]
        self.assertIsInstance(block, ScheduleTableBlock)
        self.assertEqual([o.value for o in block.years], ["2567", "2566"])
        self.assertEqual([o.value for o in block.semesters], ["1", "2", "3"])
        self.assertEqual(block.action_url, "report_studytable_show.php")
        self.assertEqual(block.to_dict()["type"], "scheduleTable")

    def test_action_derived_from_source_url(self) -> None:
        model = extract_schedule_table_content(_soup(action=""), STUDY_URL)
        self.assertEqual(
            model.blocks[0].action_url,
            "https://new.reg.kmitl.ac.th/u_student/report_studytable_show.php",
        )

    def test_action_empty_without_source_url(self) -> None:
        model = extract_schedule_table_content(_soup(action=""))
        self.assertEqual(model.blocks[0].action_url, "")

    def test_missing_selector_is_no_match(self) -> None:
        soup = BeautifulSoup(
            '<form name="edit"><select name="year"><option>2567</option></select></form>', "html.parser"
        )
        self.assertIsNone(extract_schedule_table_content(soup, STUDY_URL))
        # falls through to the generic extractor
        self.assertIsNone(map_document_to_content(soup, STUDY_URL).type)


class TestExamPage(unittest.TestCase):
    def test_exam_form(self) -> None:
        model = extract_exam_table_content(_soup(action=""), EXAM_URL)
        self.assertEqual(model.type, "exam")
        block = model.blocks[0]
        self.assertIsInstance(block, ExamTableBlock)
        self.assertEqual(block.action_url, "https://new.reg.kmitl.ac.th/u_student/report_examtable_show.php")
        self.assertEqual(block.to_dict()["type"], "examTable")
        self.assertEqual(block.to_dict()["actionUrl"], block.action_url)


if __name__ == "__main__":
    unittest.main()
