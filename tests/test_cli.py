"""
Tests for CLI entry points.

These tests focus on:
- Exit codes for unreadable files and failed fetches
- JSON output of saved pages written to a temporary directory
- The rich timetable view and its conflict summary
"""

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from rich.console import Console

from myportal.cli import main
from myportal.scrape import PortalFetchError

TIMETABLE = """
<html><body>
<p>รหัสนักศึกษา : 65010001</p>
<table>
  <tr><td>1</td><td>01006007</td><td>INTRO TO CS</td><td>3</td><td>3</td><td>0</td>
      <td>จ. 09:00-12:00 น.(ท)</td><td>ECC-801</td><td>ECC</td><td>-</td></tr>
  <tr><td>2</td><td>01006008</td><td>CALCULUS</td><td>3</td><td>3</td><td>0</td>
      <td>จ. 10:00-11:00 น.(ท)</td><td>HM-601</td><td>HM</td><td>-</td></tr>
</table>
</body></html>
"""


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.dir = Path(tmp.name)

    def _run(self, argv: list) -> tuple:
        out = io.StringIO()
        with contextlib.redirect_stdout(out), self.assertRaises(SystemExit) as ctx:
            main(argv)
        return ctx.exception.code, out.getvalue()

    def _write(self, name: str, html: str) -> str:
        path = self.dir / name
        path.write_bytes(html.encode("cp874"))
        return str(path)

    def test_missing_file_fails(self) -> None:
        code, out = self._run(["map", str(self.dir / "nope.html")])
        self.assertEqual(code, 1)
        self.assertIn("File not found", out)

    def test_map_prints_content_model(self) -> None:
        path = self._write("page.html", "<h1>ประกาศ</h1><p>สวัสดี</p>")
        code, out = self._run(["map", path])
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data["title"], "ประกาศ")
        self.assertEqual(data["blocks"][1], {"type": "paragraph", "text": "สวัสดี"})

    def test_timetable_json_lists_conflicts(self) -> None:
        path = self._write("studytable.html", TIMETABLE)
        code, out = self._run(["timetable", path, "--json"])
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data["student"]["studentId"], "65010001")
        self.assertEqual(len(data["sessions"]), 2)
        self.assertEqual(len(data["conflicts"]), 1)

    def test_timetable_table_view(self) -> None:
        path = self._write("studytable.html", TIMETABLE)
        buffer = io.StringIO()
        with mock.patch("myportal.cli.console", Console(file=buffer, width=200)):
            code, _ = self._run(["timetable", path])
        self.assertEqual(code, 0)
        text = buffer.getvalue()
        self.assertIn("INTRO TO CS", text)
        self.assertIn("Conflicts found: 1", text)

    def test_fetch_error_exit_code(self) -> None:
        fetcher = mock.Mock()
        fetcher.load.side_effect = PortalFetchError("https://portal.example/x.php", 500)
        with mock.patch("myportal.cli.PortalFetcher", return_value=fetcher):
            code, out = self._run(["fetch", "x.php"])
        self.assertEqual(code, 1)
        self.assertIn("500", out)

    def test_command_required(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as ctx:
            main([])
        self.assertNotEqual(ctx.exception.code, 0)


if __name__ == "__main__":
    unittest.main()
