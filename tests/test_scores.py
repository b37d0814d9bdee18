"""
Unit tests for midterm score pages.

Contract:
- every score cell maps to exactly one of the four statuses
- empty and "-" cells are notEntered
- assessment columns are read relative to the header row
- equally large candidate tables resolve to the first one
"""

import unittest

from bs4 import BeautifulSoup

from myportal.mapper import map_document_to_content
from myportal.model import (
    NOT_ANNOUNCED,
    NOT_ENTERED,
    PROCESSING,
    SCORE,
    SCORE_STATUSES,
    MidtermScoreBlock,
)
from myportal.scores import (
    ScoreCellData,
    extract_midterm_score_content,
    find_midterm_score_table,
    format_score_assessment,
    map_icon_to_status,
    parse_header_lines,
)

MIDTERM_URL = "https://new.reg.kmitl.ac.th/u_student/midterm_score.php"

SCORE_TABLE = """
<table>
  <tr><td>King Mongkut's Institute of Technology Ladkrabang</td></tr>
  <tr><td>Faculty of Engineering</td></tr>
  <tr><td>ID: 65010001 Name: JOHN DOE นายจอห์น โด</td></tr>
  <tr><td>Major: Computer Engineering Semester/Year : 1/2567</td></tr>
  <tr>
    <td>No.</td><td width="1"></td><td>Course No</td><td width="1"></td><td>Course Title</td>
    <td width="1"></td><td>Section</td><td width="1"></td><td>Quiz1</td><td width="1"></td><td>Midterm</td>
  </tr>
  <tr>
    <td>1</td><td width="1"></td><td>01006007</td><td width="1"></td><td>Intro to CS</td>
    <td width="1"></td><td>1</td><td width="1"></td><td>85</td><td width="1"></td><td>-</td>
  </tr>
  <tr>
    <td>2</td><td width="1"></td><td>01006008</td><td width="1"></td><td>Calculus</td>
    <td width="1"></td><td>2</td><td width="1"></td><td><img src="images/process.gif"></td>
    <td width="1"></td><td><img src="images/fail.gif" alt="ยังไม่ประกาศ"></td>
  </tr>
  <tr><td colspan="11">&nbsp;</td></tr>
</table>
"""

LEGEND = """
<table><tr><td>
  <table>
    <tr><td>สัญลักษณ์</td><td>ความหมาย</td></tr>
    <tr><td><img src="images/process.gif" alt="กำลังออกคะแนน"></td><td>อาจารย์กำลังออกคะแนน</td></tr>
    <tr><td>-</td><td>ยังไม่ได้กรอกคะแนน</td></tr>
  </table>
</td></tr></table>
"""

FORM = """
<form name="edit" action="midterm_score.php">
  <select name="year"><option value="2567" selected>2567</option><option value="2566">2566</option></select>
  <select name="semester"><option value="1">1</option><option value="2" selected>2</option></select>
</form>
"""


def _page(body: str) -> BeautifulSoup:
    return BeautifulSoup(f"<html><body>{body}</body></html>", "html.parser")


class TestAssessmentMapping(unittest.TestCase):
    def test_text_cells(self) -> None:
        a = format_score_assessment(ScoreCellData(text="85"), "Quiz1")
        self.assertEqual((a.status, a.display, a.raw), (SCORE, "85", "85"))

        for text in ("", "-"):
            a = format_score_assessment(ScoreCellData(text=text), "Quiz1")
            self.assertEqual(a.status, NOT_ENTERED)
            self.assertEqual(a.display, "ไม่มีข้อมูล")

    def test_missing_cell(self) -> None:
        a = format_score_assessment(None, "Final")
        self.assertEqual((a.label, a.status, a.raw), ("Final", NOT_ENTERED, ""))

    def test_icons(self) -> None:
        self.assertEqual(map_icon_to_status("images/process.gif"), (PROCESSING, "อยู่ระหว่างออกคะแนน"))
        self.assertEqual(map_icon_to_status("images/FAIL.GIF"), (NOT_ANNOUNCED, "ยังไม่ประกาศคะแนน"))
        self.assertEqual(map_icon_to_status("images/blank.gif"), (NOT_ENTERED, "ไม่มีข้อมูล"))
        # alt text wins as display
        self.assertEqual(map_icon_to_status("process.gif", "รอ"), (PROCESSING, "รอ"))

    def test_mapping_is_total(self) -> None:
        cells = [
            None,
            ScoreCellData(text=""),
            ScoreCellData(text="-"),
            ScoreCellData(text="12.5"),
            ScoreCellData(text="ขาดสอบ"),
            ScoreCellData(text="", img_src="x/process.gif"),
            ScoreCellData(text="", img_src="x/fail.gif", img_alt="ไม่ผ่าน"),
            ScoreCellData(text="", img_src="x/unknown.png"),
        ]
        for cell in cells:
            self.assertIn(format_score_assessment(cell, "x").status, SCORE_STATUSES)


class TestHeaderLines(unittest.TestCase):
    def test_parse_lines(self) -> None:
        header = parse_header_lines(
            [
                "King Mongkut's Institute of Technology Ladkrabang",
                "Faculty of Engineering",
                "ID: 65010001 Name: JOHN DOE นายจอห์น โด",
                "Major: Computer Engineering Semester/Year : 1/2567",
            ]
        )
        self.assertEqual(header.institution, "King Mongkut's Institute of Technology Ladkrabang")
        self.assertEqual(header.faculty, "Faculty of Engineering")
        self.assertEqual(header.student_id, "65010001")
        self.assertEqual(header.student_english_name, "JOHN DOE")
        self.assertEqual(header.student_thai_name, "นายจอห์น โด")
        self.assertEqual(header.major, "Computer Engineering")
        self.assertEqual(header.semester, "1/2567")

    def test_faculty_prefix_stripped_on_request(self) -> None:
        header = parse_header_lines(["Faculty of Science"], strip_faculty_prefix=True)
        self.assertEqual(header.faculty, "Science")

    def test_labels_match_any_case(self) -> None:
        header = parse_header_lines(["KING MONGKUT'S INSTITUTE", "faculty of science"])
        self.assertEqual(header.institution, "KING MONGKUT'S INSTITUTE")
        self.assertEqual(header.faculty, "faculty of science")

    def test_id_line_mentioning_faculty(self) -> None:
        line = "Faculty of Engineering ID: 65010001"
        # midterm header: first faculty line wins, whatever else it holds
        self.assertEqual(parse_header_lines([line]).faculty, line)

        # grade report header: the ID line is never the faculty
        header = parse_header_lines([line], strip_faculty_prefix=True)
        self.assertIsNone(header.faculty)
        self.assertEqual(header.student_id, "65010001")

    def test_missing_lines_stay_none(self) -> None:
        header = parse_header_lines(["nothing useful"])
        self.assertIsNone(header.student_id)
        self.assertEqual(header.to_dict(), {})


class TestMidtermPage(unittest.TestCase):
    def test_minimal_table(self) -> None:
        soup = _page(
            "<table>"
            "<tr><td>No.</td><td>Course No</td><td>Course Title</td><td>Section</td><td>Quiz1</td><td>Midterm</td></tr>"
            "<tr><td>1</td><td>01006007</td><td>Intro to CS</td><td>1</td><td>85</td><td>-</td></tr>"
            "</table>"
        )
        model = map_document_to_content(soup, MIDTERM_URL)
        self.assertEqual(model.type, "midtermScore")

        block = model.blocks[0]
        self.assertIsInstance(block, MidtermScoreBlock)
        self.assertEqual(block.assessments, ["Quiz1", "Midterm"])
        self.assertEqual(len(block.courses), 1)

        course = block.courses[0]
        self.assertEqual(course.course_number, "01006007")
        self.assertEqual(course.course_title, "Intro to CS")
        self.assertEqual([(a.status, a.display) for a in course.assessments], [(SCORE, "85"), (NOT_ENTERED, "ไม่มีข้อมูล")])
        self.assertEqual(block.action_url, "midterm_score.php")
        self.assertIsNone(model.subtitle)

    def test_full_page(self) -> None:
        model = extract_midterm_score_content(_page(FORM + SCORE_TABLE + LEGEND + "<p>หมายเหตุ คะแนนเป็นคะแนนดิบ</p>"))
        block = model.blocks[0]

        self.assertEqual(model.subtitle, "ภาคเรียน 1/2567")
        self.assertEqual(block.header.student_id, "65010001")
        self.assertEqual(block.header.student_english_name, "JOHN DOE")
        self.assertEqual([o.value for o in block.years], ["2567", "2566"])
        self.assertEqual(block.selected_year, "2567")
        self.assertEqual(block.selected_semester, "2")

        self.assertEqual([c.order for c in block.courses], ["1", "2"])
        second = block.courses[1].assessments
        self.assertEqual(second[0].status, PROCESSING)
        self.assertEqual(second[1].status, NOT_ANNOUNCED)
        self.assertEqual(second[1].display, "ยังไม่ประกาศ")

        self.assertEqual([(i.status, i.label) for i in block.legend], [(PROCESSING, "กำลังออกคะแนน"), (NOT_ENTERED, "-")])
        self.assertEqual(block.note, "หมายเหตุ คะแนนเป็นคะแนนดิบ")

        data = model.to_dict()
        self.assertEqual(data["type"], "midtermScore")
        self.assertEqual(data["blocks"][0]["type"], "midtermScore")
        self.assertEqual(data["blocks"][0]["courses"][0]["courseNumber"], "01006007")

    def test_empty_score_cell_keeps_its_column(self) -> None:
        soup = _page(
            "<table>"
            "<tr><td>No.</td><td>Course No</td><td>Course Title</td><td>Section</td>"
            "<td>Quiz1</td><td>Quiz2</td><td>Midterm</td></tr>"
            "<tr><td>1</td><td>0100</td><td>A</td><td>1</td><td></td><td>7</td><td>9</td></tr>"
            "</table>"
        )
        course = extract_midterm_score_content(soup, MIDTERM_URL).blocks[0].courses[0]
        self.assertEqual(
            [(a.label, a.status, a.display) for a in course.assessments],
            [("Quiz1", NOT_ENTERED, "ไม่มีข้อมูล"), ("Quiz2", SCORE, "7"), ("Midterm", SCORE, "9")],
        )

    def test_empty_score_cell_between_spacers(self) -> None:
        soup = _page(
            "<table>"
            '<tr><td>No.</td><td width="1"></td><td>Course No</td><td>Course Title</td><td>Section</td>'
            '<td width="1"></td><td>Quiz1</td><td width="1"></td><td>Midterm</td></tr>'
            '<tr><td>1</td><td width="1"></td><td>0100</td><td>A</td><td>1</td>'
            '<td width="1"></td><td></td><td width="1"></td><td>9</td></tr>'
            "</table>"
        )
        course = extract_midterm_score_content(soup, MIDTERM_URL).blocks[0].courses[0]
        self.assertEqual((course.course_number, course.section), ("0100", "1"))
        self.assertEqual([a.status for a in course.assessments], [NOT_ENTERED, SCORE])
        self.assertEqual(course.assessments[1].display, "9")

    def test_narrower_rows_skip_separators(self) -> None:
        soup = _page(
            "<table>"
            '<tr><td>No.</td><td>Course No</td><td>Course Title</td><td>Section</td><td>Quiz1</td></tr>'
            '<tr><td>1</td><td width="1"></td><td>0100</td><td>A</td><td>1</td><td>5</td></tr>'
            "</table>"
        )
        course = extract_midterm_score_content(soup, MIDTERM_URL).blocks[0].courses[0]
        self.assertEqual(course.course_number, "0100")
        self.assertEqual(course.assessments[0].display, "5")

    def test_no_course_rows_is_no_match(self) -> None:
        soup = _page(
            "<table><tr><td>No.</td><td>Course No</td><td>Course Title</td><td>Section</td><td>Quiz1</td></tr></table>"
        )
        self.assertIsNone(extract_midterm_score_content(soup, MIDTERM_URL))
        self.assertIsNone(map_document_to_content(soup, MIDTERM_URL).type)

    def test_tie_goes_to_first_table(self) -> None:
        table = (
            "<table>"
            "<tr><td>No.</td><td>Course No</td><td>Course Title</td><td>Section</td><td>Quiz1</td></tr>"
            "<tr><td>1</td><td>0100</td><td>A</td><td>1</td><td>5</td></tr>"
            "</table>"
        )
        soup = _page(table + table)
        self.assertIs(find_midterm_score_table(soup), soup.find_all("table")[0])


if __name__ == "__main__":
    unittest.main()
