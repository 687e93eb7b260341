# SPDX-License-Identifier: LGPL-3.0-or-later
import subprocess
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from devdrive.core.utils import U


class TestSizeParsing(unittest.TestCase):
    """<integer><unit> size limits, binary multiples."""

    def test_units(self):
        self.assertEqual(U.size_to_bytes("512B"), 512)
        self.assertEqual(U.size_to_bytes("4KB"), 4096)
        self.assertEqual(U.size_to_bytes("10MB"), 10 * 1024**2)
        self.assertEqual(U.size_to_bytes("10GB"), 10 * 1024**3)
        self.assertEqual(U.size_to_bytes("2TB"), 2 * 1024**4)

    def test_unit_case_insensitive(self):
        self.assertEqual(U.size_to_bytes("512mb"), 512 * 1024**2)

    def test_surrounding_whitespace_ignored(self):
        self.assertEqual(U.size_to_bytes(" 1GB "), 1024**3)

    def test_rejects_malformed(self):
        for bad in ["", "10", "GB", "1.5GB", "10 GB", "10GiB", "-1GB", "10PB", "ten GB"]:
            with self.subTest(bad=bad):
                with self.assertRaises(ValueError):
                    U.size_to_bytes(bad)

    def test_rejects_zero(self):
        with self.assertRaises(ValueError):
            U.size_to_bytes("0GB")


class TestHumanBytes(unittest.TestCase):
    def test_formats(self):
        self.assertEqual(U.human_bytes(None), "unknown")
        self.assertEqual(U.human_bytes(512), "512 B")
        self.assertEqual(U.human_bytes(1024), "1.00 KiB")
        self.assertEqual(U.human_bytes(10 * 1024**3), "10.00 GiB")


class TestJsonDump(unittest.TestCase):
    def test_json_dump_sorted_and_tolerant(self):
        out = U.json_dump({"b": 1, "a": Path("x")})

        self.assertLess(out.index('"a"'), out.index('"b"'))
        self.assertIn('"x"', out)


class TestRunCmd(unittest.TestCase):
    def setUp(self):
        self.logger = Mock()

    @patch("devdrive.core.utils.subprocess.run")
    def test_captures_text_without_check(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(["x"], 0, "out", "")

        cp = U.run_cmd(self.logger, ["x", "y z"])

        self.assertEqual(cp.stdout, "out")
        _args, kwargs = mock_run.call_args
        self.assertFalse(kwargs["check"])
        self.assertTrue(kwargs["capture_output"])
        self.assertTrue(kwargs["text"])
        self.logger.debug.assert_called_once_with("Running: %s", "x 'y z'")

    @patch("devdrive.core.utils.subprocess.run")
    def test_nonzero_exit_is_returned(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(["x"], 3, "", "nope")

        cp = U.run_cmd(self.logger, ["x"])

        self.assertEqual(cp.returncode, 3)
        self.assertEqual(cp.stderr, "nope")
        self.logger.error.assert_not_called()

    @patch("devdrive.core.utils.subprocess.run")
    def test_missing_binary_reraised(self, mock_run):
        mock_run.side_effect = FileNotFoundError("x")

        with self.assertRaises(FileNotFoundError):
            U.run_cmd(self.logger, ["x"])

        self.logger.error.assert_called_once()


if __name__ == "__main__":
    unittest.main()
