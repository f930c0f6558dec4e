"""
Tests for the per-run log file and console mirroring.
"""

import logging
import os
import re
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from colored_logger import MarkupFormatter, OUTPUT_MARKUP, OUTPUT_TEXT, detect_output_format
from run_logger import RunLogger

LINE_PATTERN = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] .+\n$")


class TestRunLoggerFiles(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_default_file_name(self):
        run_logger = RunLogger.create(self.temp_dir, epoch=1700000000)

        self.assertEqual(run_logger.log_file_name, "Log_backup_1700000000.txt")
        self.assertEqual(run_logger.log_file.parent, Path(self.temp_dir))

    def test_custom_file_name(self):
        run_logger = RunLogger.create(self.temp_dir, "Backup files", epoch=1700000000)

        self.assertEqual(run_logger.log_file_name, "Backup files_1700000000.txt")

    def test_log_directory_is_created(self):
        location = os.path.join(self.temp_dir, "logs", "nested")

        run_logger = RunLogger.create(location)

        self.assertTrue(os.path.isdir(location))
        self.assertEqual(run_logger.log_file.parent, Path(location))

    def test_falls_back_to_temp_dir(self):
        with patch.object(Path, "mkdir", side_effect=PermissionError("denied")):
            run_logger = RunLogger.create(os.path.join(self.temp_dir, "x"), epoch=42)

        self.assertEqual(run_logger.log_file, Path(tempfile.gettempdir()) / "log_file_42.txt")


class TestRunLoggerWrites(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.run_logger = RunLogger(Path(self.temp_dir) / "run.txt")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_lines_are_appended_in_order(self):
        self.run_logger.write("first")
        self.run_logger.write("second")

        lines = self.run_logger.log_file.read_text(encoding="utf-8").splitlines(keepends=True)

        self.assertEqual(len(lines), 2)
        for line in lines:
            self.assertRegex(line, LINE_PATTERN)
        self.assertTrue(lines[0].endswith("] first\n"))
        self.assertTrue(lines[1].endswith("] second\n"))
        self.assertEqual(lines, self.run_logger.lines)

    def test_unicode_is_written_as_utf8(self):
        self.run_logger.write("Adding file: résumé.pdf")

        content = self.run_logger.log_file.read_bytes().decode("utf-8")
        self.assertIn("résumé.pdf", content)

    def test_surrogate_escaped_text_is_written_escaped(self):
        self.run_logger.write("Adding file: bad\udcff.txt")
        self.run_logger.write("next")

        content = self.run_logger.log_file.read_bytes()
        self.assertIn(b"bad\\udcff.txt", content)
        self.assertIn(b"] next\n", content)

    def test_file_write_failure_is_swallowed(self):
        broken = RunLogger(Path(self.temp_dir))  # a directory cannot be appended to

        broken.write("still mirrored")

        self.assertEqual(len(broken.lines), 1)

    def test_lines_are_mirrored_to_console(self):
        with self.assertLogs("backup.run", level="INFO") as captured:
            self.run_logger.write("hello")
            self.run_logger.warning("careful")

        self.assertEqual(captured.records[0].getMessage(), "hello")
        self.assertEqual(captured.records[1].levelno, logging.WARNING)


class TestOutputFormats(unittest.TestCase):
    def test_detect_text(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(detect_output_format(), OUTPUT_TEXT)

    def test_detect_markup_under_gateway(self):
        with patch.dict(os.environ, {"GATEWAY_INTERFACE": "CGI/1.1"}):
            self.assertEqual(detect_output_format(), OUTPUT_MARKUP)

    def test_markup_formatter_escapes(self):
        formatter = MarkupFormatter(fmt="%(message)s")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "<b>a & b</b>", None, None)

        self.assertEqual(formatter.format(record), "&lt;b&gt;a &amp; b&lt;/b&gt;<br />")


if __name__ == "__main__":
    unittest.main()
