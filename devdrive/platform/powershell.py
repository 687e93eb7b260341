# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/platform/powershell.py
"""
Production platform: Hyper-V and Storage cmdlets driven through PowerShell.

Each capability is one short script run with -NonInteractive. Scripts emit
JSON (ConvertTo-Json -Compress) that is parsed here; errors surface as a
non-zero exit code plus the cmdlet's message on stderr, which is mapped onto
the devdrive exception taxonomy.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from ..core.exceptions import (
    AllocationError,
    AttachError,
    DevDriveError,
    DriveLetterConflict,
    Fatal,
    FormatError,
    InitError,
    PartitionError,
    ProbeError,
)
from ..core.logger import Log
from ..core.utils import U
from .base import (
    DiskHandle,
    ImageHandle,
    ImageMetadata,
    PartitionHandle,
    VirtualDiskPlatform,
    VolumeInfo,
)

_LETTER_CONFLICT_RE = re.compile(
    r"access path is already in use|drive letter .*(already in use|not available)",
    re.IGNORECASE,
)


def ps_quote(value: Any) -> str:
    """Single-quoted PowerShell literal; embedded quotes are doubled."""
    return "'" + str(value).replace("'", "''") + "'"


def _letter(v: Any) -> Optional[str]:
    # Unlettered volumes come back as "", null or a NUL char.
    s = U.to_text(v).strip().strip("\x00").rstrip(":")
    if len(s) == 1 and s.isalpha():
        return s.upper()
    return None


def _int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _parse_json_rows(stdout: str) -> List[Dict[str, Any]]:
    text = (stdout or "").strip()
    if not text:
        return []
    data = json.loads(text)
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return [row for row in data if isinstance(row, dict)]


class PowerShellPlatform(VirtualDiskPlatform):
    """Windows implementation of the virtual-disk capabilities."""

    name = "powershell"

    def __init__(self, logger: logging.Logger, executable: str = "powershell.exe"):
        self.logger = logger
        self.executable = executable
        self._resolved: Optional[str] = None

    # -- plumbing --------------------------------------------------------------

    def _exe(self) -> str:
        if self._resolved is None:
            found = U.which(self.executable)
            if not found:
                raise Fatal(2, f"PowerShell not found: {self.executable!r} (set --powershell or DEVDRIVE_POWERSHELL)")
            self._resolved = found
        return self._resolved

    def ensure_available(self) -> str:
        """Resolve the executable up front so a missing shell fails before any step."""
        exe = self._exe()
        self.logger.debug("Using PowerShell at %s", exe)
        return exe

    def _run(self, script: str, *, step: str, error_cls: Type[DevDriveError], **ctx: Any) -> str:
        body = "$ErrorActionPreference = 'Stop'; $ProgressPreference = 'SilentlyContinue'; " + script
        cmd = [self._exe(), "-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass", "-Command", body]
        Log.trace(self.logger, "🪟 %s: %s", step, script)

        try:
            cp = U.run_cmd(self.logger, cmd)
        except OSError as e:
            raise error_cls(msg=f"{step}: cannot start PowerShell: {e}", cause=e, context=dict(ctx)) from e

        if cp.returncode != 0:
            detail = (cp.stderr or cp.stdout or "").strip() or f"exit code {cp.returncode}"
            raise error_cls(msg=f"{step} failed: {detail}", context=dict(ctx, returncode=cp.returncode))
        return cp.stdout or ""

    def _rows(self, stdout: str, *, step: str, error_cls: Type[DevDriveError]) -> List[Dict[str, Any]]:
        try:
            return _parse_json_rows(stdout)
        except ValueError as e:
            raise error_cls(msg=f"{step}: unparseable PowerShell output: {stdout.strip()[:200]!r}", cause=e) from e

    # -- read-only -------------------------------------------------------------

    def query_image_metadata(self, path: Path) -> ImageMetadata:
        script = (
            f"$v = Get-VHD -Path {ps_quote(path)}; "
            "[PSCustomObject]@{ Attached = [bool]$v.Attached; DiskNumber = $v.DiskNumber } | ConvertTo-Json -Compress"
        )
        out = self._run(script, step="Get-VHD", error_cls=ProbeError, path=str(path))
        rows = self._rows(out, step="Get-VHD", error_cls=ProbeError)
        if not rows:
            raise ProbeError(msg=f"Get-VHD returned nothing for {path}", context={"path": str(path)})
        row = rows[0]
        attached = bool(row.get("Attached"))
        disk = row.get("DiskNumber")
        return ImageMetadata(attached=attached, disk_number=_int(disk) if attached and disk is not None else None)

    def enumerate_partitions(self, disk_number: int) -> List[PartitionHandle]:
        script = (
            "ConvertTo-Json -Compress -InputObject @("
            f"Get-Partition -DiskNumber {int(disk_number)} | Sort-Object PartitionNumber | ForEach-Object {{ "
            "[PSCustomObject]@{ DiskNumber = $_.DiskNumber; PartitionNumber = $_.PartitionNumber; "
            "DriveLetter = [string]$_.DriveLetter; Size = $_.Size } })"
        )
        out = self._run(script, step="Get-Partition", error_cls=PartitionError, disk=disk_number)
        return [
            PartitionHandle(
                disk_number=_int(r.get("DiskNumber"), disk_number),
                partition_number=_int(r.get("PartitionNumber")),
                drive_letter=_letter(r.get("DriveLetter")),
                size_bytes=_int(r.get("Size")),
            )
            for r in self._rows(out, step="Get-Partition", error_cls=PartitionError)
        ]

    def enumerate_volumes(self, partition: PartitionHandle) -> List[VolumeInfo]:
        script = (
            "ConvertTo-Json -Compress -InputObject @("
            f"Get-Partition -DiskNumber {int(partition.disk_number)} -PartitionNumber {int(partition.partition_number)} "
            "| Get-Volume | ForEach-Object { "
            "[PSCustomObject]@{ DriveLetter = [string]$_.DriveLetter; FileSystem = $_.FileSystem; "
            "FileSystemLabel = $_.FileSystemLabel; Size = $_.Size } })"
        )
        out = self._run(
            script,
            step="Get-Volume",
            error_cls=PartitionError,
            disk=partition.disk_number,
            partition=partition.partition_number,
        )
        return [
            VolumeInfo(
                drive_letter=_letter(r.get("DriveLetter")),
                filesystem=U.to_text(r.get("FileSystem")),
                size_bytes=_int(r.get("Size")),
                label=U.to_text(r.get("FileSystemLabel")),
            )
            for r in self._rows(out, step="Get-Volume", error_cls=PartitionError)
        ]

    # -- mutating --------------------------------------------------------------

    def allocate_dynamic_image(self, path: Path, size_limit_bytes: int) -> ImageHandle:
        script = f"New-VHD -Path {ps_quote(path)} -SizeBytes {int(size_limit_bytes)} -Dynamic | Out-Null"
        self._run(script, step="New-VHD", error_cls=AllocationError, path=str(path), size=size_limit_bytes)
        return ImageHandle(path=Path(path), size_limit_bytes=int(size_limit_bytes))

    def attach_image(self, path: Path) -> DiskHandle:
        script = (
            f"$d = Mount-VHD -Path {ps_quote(path)} -PassThru | Get-Disk; "
            "[PSCustomObject]@{ DiskNumber = $d.Number } | ConvertTo-Json -Compress"
        )
        out = self._run(script, step="Mount-VHD", error_cls=AttachError, path=str(path))
        rows = self._rows(out, step="Mount-VHD", error_cls=AttachError)
        if not rows or rows[0].get("DiskNumber") is None:
            raise AttachError(msg=f"Mount-VHD reported no disk number for {path}", context={"path": str(path)})
        return DiskHandle(disk_number=_int(rows[0]["DiskNumber"]), path=Path(path))

    def detach_image(self, path: Path) -> None:
        self._run(f"Dismount-VHD -Path {ps_quote(path)}", step="Dismount-VHD", error_cls=AttachError, path=str(path))

    def delete_image_file(self, path: Path) -> None:
        Path(path).unlink(missing_ok=True)

    def initialize_partition_table(self, disk: DiskHandle, style: str = "GPT") -> None:
        script = f"Initialize-Disk -Number {int(disk.disk_number)} -PartitionStyle {style} -Confirm:$false"
        self._run(script, step="Initialize-Disk", error_cls=InitError, disk=disk.disk_number, style=style)

    def create_partition(self, disk: DiskHandle, drive_letter: Optional[str] = None) -> PartitionHandle:
        letter_arg = f"-DriveLetter {drive_letter}" if drive_letter else "-AssignDriveLetter"
        script = (
            f"$p = New-Partition -DiskNumber {int(disk.disk_number)} -UseMaximumSize {letter_arg}; "
            "[PSCustomObject]@{ DiskNumber = $p.DiskNumber; PartitionNumber = $p.PartitionNumber; "
            "DriveLetter = [string]$p.DriveLetter; Size = $p.Size } | ConvertTo-Json -Compress"
        )
        try:
            out = self._run(
                script,
                step="New-Partition",
                error_cls=PartitionError,
                disk=disk.disk_number,
                drive_letter=drive_letter or "auto",
            )
        except PartitionError as e:
            if drive_letter and _LETTER_CONFLICT_RE.search(e.msg):
                raise DriveLetterConflict(
                    msg=f"Drive letter {drive_letter}: is not available",
                    cause=e,
                    context=dict(e.context or {}),
                ) from e
            raise

        rows = self._rows(out, step="New-Partition", error_cls=PartitionError)
        if not rows:
            raise PartitionError(msg="New-Partition returned nothing", context={"disk": disk.disk_number})
        r = rows[0]
        return PartitionHandle(
            disk_number=_int(r.get("DiskNumber"), disk.disk_number),
            partition_number=_int(r.get("PartitionNumber")),
            drive_letter=_letter(r.get("DriveLetter")),
            size_bytes=_int(r.get("Size")),
        )

    def format_volume(
        self,
        partition: PartitionHandle,
        *,
        filesystem: str,
        label: str,
        dev_workload_optimized: bool = True,
    ) -> VolumeInfo:
        dev_flag = "-DevDrive " if dev_workload_optimized else ""
        script = (
            f"$v = Get-Partition -DiskNumber {int(partition.disk_number)} -PartitionNumber {int(partition.partition_number)} "
            f"| Format-Volume {dev_flag}-FileSystem {filesystem} -NewFileSystemLabel {ps_quote(label)} -Confirm:$false -Force; "
            "[PSCustomObject]@{ DriveLetter = [string]$v.DriveLetter; FileSystem = $v.FileSystem; "
            "FileSystemLabel = $v.FileSystemLabel; Size = $v.Size } | ConvertTo-Json -Compress"
        )
        out = self._run(
            script,
            step="Format-Volume",
            error_cls=FormatError,
            disk=partition.disk_number,
            partition=partition.partition_number,
            filesystem=filesystem,
        )
        rows = self._rows(out, step="Format-Volume", error_cls=FormatError)
        if not rows:
            raise FormatError(msg="Format-Volume returned nothing", context={"disk": partition.disk_number})
        r = rows[0]
        return VolumeInfo(
            drive_letter=_letter(r.get("DriveLetter")) or partition.drive_letter,
            filesystem=U.to_text(r.get("FileSystem")) or filesystem,
            size_bytes=_int(r.get("Size")),
            label=U.to_text(r.get("FileSystemLabel")) or label,
        )
