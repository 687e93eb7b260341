# SPDX-License-Identifier: LGPL-3.0-or-later
import json
import subprocess
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from devdrive.core.exceptions import (
    AllocationError,
    AttachError,
    DriveLetterConflict,
    Fatal,
    FormatError,
    PartitionError,
    ProbeError,
)
from devdrive.platform.base import DiskHandle, PartitionHandle
from devdrive.platform.powershell import PowerShellPlatform, _letter, _parse_json_rows, ps_quote


def _cp(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(["powershell.exe"], returncode, stdout, stderr)


class TestHelpers(unittest.TestCase):
    def test_ps_quote_doubles_single_quotes(self):
        self.assertEqual(ps_quote("C:\\Users\\o'neil\\ws.vhdx"), "'C:\\Users\\o''neil\\ws.vhdx'")

    def test_letter_normalization(self):
        self.assertEqual(_letter("w"), "W")
        self.assertEqual(_letter("W:"), "W")
        self.assertIsNone(_letter(""))
        self.assertIsNone(_letter("\x00"))
        self.assertIsNone(_letter(None))

    def test_json_rows_single_or_list(self):
        self.assertEqual(_parse_json_rows(""), [])
        self.assertEqual(_parse_json_rows("null"), [])
        self.assertEqual(_parse_json_rows('{"a": 1}'), [{"a": 1}])
        self.assertEqual(_parse_json_rows('[{"a": 1}, {"a": 2}]'), [{"a": 1}, {"a": 2}])


@patch("devdrive.platform.powershell.U.which", return_value="C:/Windows/powershell.exe")
@patch("devdrive.platform.powershell.U.run_cmd")
class TestPowerShellPlatform(unittest.TestCase):
    def setUp(self):
        self.logger = Mock()
        self.ps = PowerShellPlatform(self.logger)
        self.path = Path("C:/Users/dev/.wsl/workspaces.vhdx")

    def _script(self, run_cmd):
        cmd = run_cmd.call_args[0][1]
        self.assertEqual(cmd[:6], ["C:/Windows/powershell.exe", "-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass", "-Command"])
        self.assertTrue(cmd[6].startswith("$ErrorActionPreference = 'Stop'"))
        return cmd[6]

    def test_missing_executable_is_fatal(self, run_cmd, which):
        which.return_value = None

        with self.assertRaises(Fatal) as cm:
            self.ps.ensure_available()

        self.assertEqual(cm.exception.code, 2)
        run_cmd.assert_not_called()

    def test_query_detached(self, run_cmd, _which):
        run_cmd.return_value = _cp(json.dumps({"Attached": False, "DiskNumber": None}))

        meta = self.ps.query_image_metadata(self.path)

        self.assertFalse(meta.attached)
        self.assertIsNone(meta.disk_number)
        self.assertIn("Get-VHD -Path", self._script(run_cmd))

    def test_query_attached(self, run_cmd, _which):
        run_cmd.return_value = _cp(json.dumps({"Attached": True, "DiskNumber": 3}))

        meta = self.ps.query_image_metadata(self.path)

        self.assertTrue(meta.attached)
        self.assertEqual(meta.disk_number, 3)

    def test_query_failure_is_probe_error(self, run_cmd, _which):
        run_cmd.return_value = _cp(returncode=1, stderr="The file or directory is corrupted and unreadable.")

        with self.assertRaises(ProbeError) as cm:
            self.ps.query_image_metadata(self.path)

        self.assertIn("corrupted", cm.exception.msg)
        self.assertEqual(cm.exception.context["returncode"], 1)

    def test_garbage_output_is_probe_error(self, run_cmd, _which):
        run_cmd.return_value = _cp("WARNING: not json")

        with self.assertRaises(ProbeError):
            self.ps.query_image_metadata(self.path)

    def test_cannot_start_shell(self, run_cmd, _which):
        run_cmd.side_effect = FileNotFoundError("powershell.exe")

        with self.assertRaises(AttachError):
            self.ps.attach_image(self.path)

    def test_allocate_dynamic(self, run_cmd, _which):
        run_cmd.return_value = _cp()

        h = self.ps.allocate_dynamic_image(self.path, 10 * 1024**3)

        script = self._script(run_cmd)
        self.assertIn("New-VHD -Path 'C:", script)
        self.assertIn("-SizeBytes 10737418240 -Dynamic", script)
        self.assertEqual(h.size_limit_bytes, 10 * 1024**3)

    def test_allocate_failure(self, run_cmd, _which):
        run_cmd.return_value = _cp(returncode=1, stderr="There is not enough space on the disk.")

        with self.assertRaises(AllocationError):
            self.ps.allocate_dynamic_image(self.path, 1024**3)

    def test_attach_returns_disk_number(self, run_cmd, _which):
        run_cmd.return_value = _cp(json.dumps({"DiskNumber": 4}))

        disk = self.ps.attach_image(self.path)

        self.assertEqual(disk.disk_number, 4)
        self.assertIn("Mount-VHD -Path", self._script(run_cmd))
        self.assertIn("-PassThru | Get-Disk", self._script(run_cmd))

    def test_attach_without_disk_number(self, run_cmd, _which):
        run_cmd.return_value = _cp(json.dumps({"DiskNumber": None}))

        with self.assertRaises(AttachError):
            self.ps.attach_image(self.path)

    def test_detach(self, run_cmd, _which):
        run_cmd.return_value = _cp()

        self.ps.detach_image(self.path)

        self.assertIn("Dismount-VHD -Path", self._script(run_cmd))

    def test_initialize_gpt(self, run_cmd, _which):
        run_cmd.return_value = _cp()

        self.ps.initialize_partition_table(DiskHandle(4))

        self.assertIn("Initialize-Disk -Number 4 -PartitionStyle GPT", self._script(run_cmd))

    def test_partition_explicit_letter(self, run_cmd, _which):
        run_cmd.return_value = _cp(json.dumps({"DiskNumber": 4, "PartitionNumber": 2, "DriveLetter": "W", "Size": 1000}))

        part = self.ps.create_partition(DiskHandle(4), drive_letter="W")

        script = self._script(run_cmd)
        self.assertIn("New-Partition -DiskNumber 4 -UseMaximumSize -DriveLetter W", script)
        self.assertNotIn("-AssignDriveLetter", script)
        self.assertEqual(part, PartitionHandle(4, 2, "W", 1000))

    def test_partition_auto_letter(self, run_cmd, _which):
        run_cmd.return_value = _cp(json.dumps({"DiskNumber": 4, "PartitionNumber": 2, "DriveLetter": "E", "Size": 1000}))

        part = self.ps.create_partition(DiskHandle(4))

        self.assertIn("-AssignDriveLetter", self._script(run_cmd))
        self.assertEqual(part.drive_letter, "E")

    def test_partition_letter_in_use(self, run_cmd, _which):
        run_cmd.return_value = _cp(returncode=1, stderr="The requested access path is already in use.")

        with self.assertRaises(DriveLetterConflict) as cm:
            self.ps.create_partition(DiskHandle(4), drive_letter="C")

        self.assertIsInstance(cm.exception, PartitionError)
        self.assertEqual(cm.exception.code, 24)

    def test_partition_other_failure(self, run_cmd, _which):
        run_cmd.return_value = _cp(returncode=1, stderr="Not enough available capacity")

        with self.assertRaises(PartitionError) as cm:
            self.ps.create_partition(DiskHandle(4), drive_letter="W")

        self.assertNotIsInstance(cm.exception, DriveLetterConflict)

    def test_format_dev_drive(self, run_cmd, _which):
        run_cmd.return_value = _cp(json.dumps({"DriveLetter": "W", "FileSystem": "ReFS", "FileSystemLabel": "workspaces", "Size": 999}))

        vol = self.ps.format_volume(PartitionHandle(4, 2, "W", 1000), filesystem="ReFS", label="workspaces")

        script = self._script(run_cmd)
        self.assertIn("Format-Volume -DevDrive -FileSystem ReFS -NewFileSystemLabel 'workspaces'", script)
        self.assertEqual((vol.drive_letter, vol.filesystem, vol.size_bytes, vol.label), ("W", "ReFS", 999, "workspaces"))

    def test_format_failure(self, run_cmd, _which):
        run_cmd.return_value = _cp(returncode=1, stderr="Dev Drive requires 50GB minimum")

        with self.assertRaises(FormatError):
            self.ps.format_volume(PartitionHandle(4, 2, "W"), filesystem="ReFS", label="workspaces")

    def test_enumerate_partitions_and_volumes(self, run_cmd, _which):
        run_cmd.side_effect = [
            _cp(json.dumps([
                {"DiskNumber": 4, "PartitionNumber": 1, "DriveLetter": "", "Size": 16},
                {"DiskNumber": 4, "PartitionNumber": 2, "DriveLetter": "W", "Size": 1000},
            ])),
            _cp(json.dumps({"DriveLetter": "W", "FileSystem": "ReFS", "FileSystemLabel": "workspaces", "Size": 999})),
        ]

        parts = self.ps.enumerate_partitions(4)
        vols = self.ps.enumerate_volumes(parts[1])

        self.assertEqual([p.drive_letter for p in parts], [None, "W"])
        self.assertEqual(vols[0].filesystem, "ReFS")

    def test_delete_is_local(self, run_cmd, _which):
        import tempfile

        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "ws.vhdx"
            p.write_bytes(b"x")

            self.ps.delete_image_file(p)
            self.ps.delete_image_file(p)

            self.assertFalse(p.exists())
        run_cmd.assert_not_called()


if __name__ == "__main__":
    unittest.main()
