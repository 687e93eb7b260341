# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/workspace/attachment.py
from __future__ import annotations

import logging
from typing import List

from ..core.exceptions import AttachError, DevDriveError
from ..core.logger import Log
from ..core.logging_utils import log_step
from ..platform.base import PartitionHandle, VirtualDiskPlatform, VolumeInfo
from .models import DiskImageDescriptor, Mounted, VolumeResult, lettered


class AttachmentPipeline:
    """
    Mount-only path for an image that was provisioned on an earlier run.

    Only the attach itself can fail the run. Partition and volume enumeration
    happen after the disk is already online, so their errors just drop the
    affected entry from the report.
    """

    def __init__(self, logger: logging.Logger, platform: VirtualDiskPlatform):
        self.logger = logger
        self.platform = platform

    def run(self, descriptor: DiskImageDescriptor) -> Mounted:
        path = descriptor.resolved_path
        ctx = {"path": str(path), "step": "attach"}

        try:
            with log_step(self.logger, "Attach image"):
                disk = self.platform.attach_image(path)
        except AttachError as e:
            raise e.with_context(**ctx)
        except DevDriveError as e:
            raise AttachError(msg=f"Attach image failed: {e.msg}", cause=e, context=ctx) from e
        except Exception as e:
            raise AttachError(msg=f"Attach image failed: {e}", cause=e, context=ctx) from e

        volumes = lettered(self._collect(disk.disk_number))
        if not volumes:
            Log.warn(self.logger, f"Disk {disk.disk_number} is attached but has no lettered volume")
        else:
            Log.ok(
                self.logger,
                f"Mounted {path}",
                disk=disk.disk_number,
                drives=",".join(v.drive_letter or "" for v in volumes),
            )
        return Mounted(volumes=tuple(volumes), resolved_path=path, disk_number=disk.disk_number)

    def _collect(self, disk_number: int) -> List[VolumeResult]:
        try:
            parts = self.platform.enumerate_partitions(disk_number)
        except Exception as e:
            Log.warn(self.logger, f"Cannot list partitions on disk {disk_number}: {e}")
            return []

        out: List[VolumeResult] = []
        for part in parts:
            for vol in self._volumes(part):
                out.append(
                    VolumeResult(
                        drive_letter=vol.drive_letter or part.drive_letter,
                        filesystem_name=vol.filesystem,
                        size_bytes=vol.size_bytes or part.size_bytes,
                        label=vol.label,
                    )
                )
        return out

    def _volumes(self, part: PartitionHandle) -> List[VolumeInfo]:
        try:
            return list(self.platform.enumerate_volumes(part))
        except Exception as e:
            Log.warn(
                self.logger,
                f"Cannot list volumes on disk {part.disk_number} partition {part.partition_number}: {e}",
            )
            return []
