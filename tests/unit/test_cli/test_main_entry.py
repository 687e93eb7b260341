# SPDX-License-Identifier: LGPL-3.0-or-later
import argparse
import io
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import Mock, patch

from rich.console import Console

from devdrive.__main__ import build_settings, main, run
from devdrive.config.settings import WorkspaceSettings
from devdrive.core.exceptions import Fatal
from devdrive.workspace.reporting import ReportingSink

from fakes.fake_platform import FakePlatform


def _args(**kw):
    base = dict(path=None, size_bytes=None, drive_letter=None, dry_run=False, link=None, powershell=None, verbose=0)
    base.update(kw)
    return argparse.Namespace(**base)


class TestRun(unittest.TestCase):
    def setUp(self):
        self._td = TemporaryDirectory()
        self.root = Path(self._td.name)
        self.logger = Mock()
        self.settings = WorkspaceSettings.from_environment({"USERNAME": "dev"}, home=self.root)
        self.sink = ReportingSink(Console(file=io.StringIO(), width=200, color_system=None))

    def tearDown(self):
        self._td.cleanup()

    def test_default_size_used_for_create(self):
        plat = FakePlatform()

        rc = run(self.logger, _args(path=str(self.root / "ws.vhdx")), self.settings, plat, self.sink)

        self.assertEqual(rc, 0)
        alloc = [c for c in plat.calls if c[0] == "allocate"][0]
        self.assertEqual(alloc[2], 50 * 1024**3)

    def test_rejected_exit_code(self):
        plat = FakePlatform()
        path = self.root / "ws.vhdx"
        plat.seed_image(path, attached_disk=3)

        rc = run(self.logger, _args(path=str(path)), self.settings, plat, self.sink)

        self.assertEqual(rc, 3)

    def test_failed_exit_code_is_error_code(self):
        plat = FakePlatform()
        plat.letters_in_use.add("W")

        rc = run(self.logger, _args(path=str(self.root / "ws.vhdx"), drive_letter="W"), self.settings, plat, self.sink)

        self.assertEqual(rc, 24)
        self.assertFalse((self.root / "ws.vhdx").exists())

    def test_build_settings_applies_cli_overrides(self):
        with patch.dict("os.environ", {"USERNAME": "dev"}, clear=False):
            s = build_settings(_args(powershell="pwsh.exe", link=str(self.root / "ws")))

        self.assertEqual(s.powershell, "pwsh.exe")
        self.assertEqual(s.link_path, self.root / "ws")


class TestMain(unittest.TestCase):
    @patch("devdrive.__main__.parse_args_with_config")
    def test_parse_fatal_exit_code(self, parse):
        parse.side_effect = Fatal(2, "Config file not found: x.yaml")

        with self.assertRaises(SystemExit) as cm:
            main([])

        self.assertEqual(cm.exception.code, 2)

    @patch("devdrive.__main__.parse_args_with_config")
    def test_interrupt_during_parse(self, parse):
        parse.side_effect = KeyboardInterrupt()

        with self.assertRaises(SystemExit) as cm:
            main([])

        self.assertEqual(cm.exception.code, 130)

    @patch("devdrive.__main__.run", return_value=0)
    @patch("devdrive.__main__.PowerShellPlatform")
    @patch("devdrive.__main__.parse_args_with_config")
    def test_missing_powershell_is_fatal(self, parse, ps_cls, run_mock):
        parse.return_value = (_args(), {}, Mock())
        ps_cls.return_value.ensure_available.side_effect = Fatal(2, "PowerShell not found")

        with self.assertRaises(SystemExit) as cm:
            main([])

        self.assertEqual(cm.exception.code, 2)
        run_mock.assert_not_called()

    @patch("devdrive.__main__.run")
    @patch("devdrive.__main__.PowerShellPlatform")
    @patch("devdrive.__main__.parse_args_with_config")
    def test_unexpected_exception_exit_1(self, parse, _ps_cls, run_mock):
        logger = Mock()
        parse.return_value = (_args(), {}, logger)
        run_mock.side_effect = RuntimeError("surprise")

        with self.assertRaises(SystemExit) as cm:
            main([])

        self.assertEqual(cm.exception.code, 1)
        logger.error.assert_called()

    @patch("devdrive.__main__.run", return_value=3)
    @patch("devdrive.__main__.PowerShellPlatform")
    @patch("devdrive.__main__.parse_args_with_config")
    def test_outcome_code_propagates(self, parse, _ps_cls, _run):
        parse.return_value = (_args(), {}, Mock())

        with self.assertRaises(SystemExit) as cm:
            main([])

        self.assertEqual(cm.exception.code, 3)


if __name__ == "__main__":
    unittest.main()
