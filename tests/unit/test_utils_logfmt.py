"""Tests for the root logger setup."""
import logging
import unittest

from PyMCorr.utils.logfmt import LOGGING_FORMAT, ColorfulFormatter, set_rootlogger


def make_record(level, msg="worker %d failed", args=(1, )):
    return logging.LogRecord("PyMCorr.handler", level, __file__, 1, msg, args, None)


class TestSetRootlogger(unittest.TestCase):
    """Test root logger configuration."""

    def setUp(self):
        self.root = logging.getLogger('')
        self.handlers = list(self.root.handlers)
        self.level = self.root.level

    def tearDown(self):
        for h in list(self.root.handlers):
            if h not in self.handlers:
                self.root.removeHandler(h)
        self.root.setLevel(self.level)

    def test_repeated_calls_keep_one_handler(self):
        set_rootlogger(False, logging.INFO)
        set_rootlogger(True, logging.DEBUG)

        ours = [h for h in self.root.handlers if isinstance(h.formatter, ColorfulFormatter)]
        self.assertEqual(len(ours), 1)
        self.assertTrue(ours[0].formatter.colorize)
        self.assertEqual(self.root.level, logging.DEBUG)


class TestColorfulFormatter(unittest.TestCase):
    """Test level dependent formatting."""

    def test_plain(self):
        s = ColorfulFormatter(fmt=LOGGING_FORMAT, colorize=False).format(make_record(logging.WARNING))
        self.assertIn(" WARNING]", s)
        self.assertTrue(s.endswith("worker 1 failed"))
        self.assertNotIn("\033", s)

    def test_colored_error_is_bold(self):
        s = ColorfulFormatter(fmt=LOGGING_FORMAT, colorize=True).format(make_record(logging.ERROR))
        self.assertIn("\033[31m", s)
        self.assertIn("\033[1mworker 1 failed", s)

    def test_colored_info_is_plain(self):
        s = ColorfulFormatter(fmt=LOGGING_FORMAT, colorize=True).format(make_record(logging.INFO))
        self.assertIn("\033[36m", s)
        self.assertIn("\033[0mworker 1 failed", s)
