"""Tests for PyMCorr.utils.output utilities."""
import unittest
from unittest.mock import Mock, patch
import logging
import os
import tempfile
from pathlib import Path

from PyMCorr.utils.output import catch_IOError, prepare_outdir


class TestCatchIOError(unittest.TestCase):
    """Test catch_IOError decorator functionality."""

    def setUp(self):
        self.mock_logger = Mock(spec=logging.Logger)
        self.decorator = catch_IOError(self.mock_logger)

    def test_successful_call_passes_through(self):
        @self.decorator
        def add(x, y):
            return x + y

        self.assertEqual(add(2, 3), 5)
        self.mock_logger.error.assert_not_called()

    def test_ioerror_is_logged_and_reraised(self):
        @self.decorator
        def failing_function():
            raise IOError(13, "Permission denied", "/test/path.txt")

        with self.assertRaises(IOError):
            failing_function()

        self.mock_logger.error.assert_called_once()
        message = self.mock_logger.error.call_args[0][0]
        self.assertIn("Failed to access '/test/path.txt'", message)
        self.assertIn("[Errno 13] Permission denied", message)

    def test_ioerror_without_strerror(self):
        @self.decorator
        def failing_function():
            raise IOError("Basic error")

        with self.assertRaises(IOError):
            failing_function()

        self.assertIn("[Errno None]", self.mock_logger.error.call_args[0][0])

    def test_indexerror_is_logged_as_invalid_input(self):
        @self.decorator
        def failing_function():
            raise IndexError("'x.tab' misses columns: n")

        with self.assertRaises(IndexError):
            failing_function()

        message = self.mock_logger.error.call_args[0][0]
        self.assertIn("Invalid input file", message)
        self.assertIn("misses columns", message)

    def test_preserves_function_metadata(self):
        @self.decorator
        def documented():
            """Docstring."""

        self.assertEqual(documented.__name__, "documented")
        self.assertEqual(documented.__doc__, "Docstring.")


class TestPrepareOutdir(unittest.TestCase):
    """Test prepare_outdir function functionality."""

    def setUp(self):
        self.mock_logger = Mock(spec=logging.Logger)

    def test_existing_directory(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            self.assertTrue(prepare_outdir(temp_dir, self.mock_logger))
            self.assertTrue(prepare_outdir(Path(temp_dir), self.mock_logger))
            self.mock_logger.critical.assert_not_called()

    def test_path_is_a_file(self):
        with tempfile.NamedTemporaryFile() as temp_file:
            self.assertFalse(prepare_outdir(temp_file.name, self.mock_logger))

        self.assertEqual(self.mock_logger.critical.call_count, 2)
        calls = self.mock_logger.critical.call_args_list
        self.assertIn("is not directory", calls[0][0][0])

    def test_creates_nested_directory(self):
        with tempfile.TemporaryDirectory() as parent_dir:
            nested_dir = os.path.join(parent_dir, "level1", "output")
            self.assertTrue(prepare_outdir(nested_dir, self.mock_logger))
            self.assertTrue(os.path.isdir(nested_dir))
            self.assertIn("Make output directory", self.mock_logger.info.call_args[0][0])

    @patch('pathlib.Path.mkdir')
    def test_directory_creation_failure(self, mock_mkdir):
        mock_mkdir.side_effect = IOError(13, "Permission denied")

        with tempfile.TemporaryDirectory() as parent_dir:
            new_dir = os.path.join(parent_dir, "protected_dir")
            self.assertFalse(prepare_outdir(new_dir, self.mock_logger))

        message = self.mock_logger.critical.call_args[0][0]
        self.assertIn("Failed to make output directory", message)
        self.assertIn("[Errno 13]", message)

    @patch('os.access')
    def test_directory_not_writable(self, mock_access):
        mock_access.return_value = False

        with tempfile.TemporaryDirectory() as temp_dir:
            self.assertFalse(prepare_outdir(temp_dir, self.mock_logger))
            mock_access.assert_called_once_with(temp_dir, os.W_OK)

        message = self.mock_logger.critical.call_args[0][0]
        self.assertIn("is not writable", message)


if __name__ == '__main__':
    unittest.main()
