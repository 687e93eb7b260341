# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/platform/base.py
"""
Virtual-disk capability interface.

The workspace core only talks to the host through VirtualDiskPlatform:
- PowerShellPlatform: Hyper-V / Storage cmdlets on a Windows host
- FakePlatform (tests/fakes): in-memory attachment table for unit tests
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class ImageHandle:
    path: Path
    size_limit_bytes: int


@dataclass(frozen=True)
class ImageMetadata:
    attached: bool
    disk_number: Optional[int] = None


@dataclass(frozen=True)
class DiskHandle:
    disk_number: int
    path: Optional[Path] = None


@dataclass(frozen=True)
class PartitionHandle:
    disk_number: int
    partition_number: int
    drive_letter: Optional[str] = None
    size_bytes: int = 0


@dataclass(frozen=True)
class VolumeInfo:
    drive_letter: Optional[str]
    filesystem: str
    size_bytes: int
    label: str = ""


class VirtualDiskPlatform(ABC):
    """
    Every call blocks until the host finishes. Implementations raise the
    devdrive.core.exceptions class named in each docstring; anything else
    is wrapped by the caller.
    """

    name: str = "abstract"

    # -- read-only -----------------------------------------------------------

    @abstractmethod
    def query_image_metadata(self, path: Path) -> ImageMetadata:
        """Attachment state of an existing image. Raises ProbeError."""

    @abstractmethod
    def enumerate_partitions(self, disk_number: int) -> List[PartitionHandle]:
        """Partitions on an attached disk, in partition-number order."""

    @abstractmethod
    def enumerate_volumes(self, partition: PartitionHandle) -> List[VolumeInfo]:
        """Volumes on a partition; may be empty."""

    # -- mutating ------------------------------------------------------------

    @abstractmethod
    def allocate_dynamic_image(self, path: Path, size_limit_bytes: int) -> ImageHandle:
        """Create a dynamically expanding image. Raises AllocationError."""

    @abstractmethod
    def attach_image(self, path: Path) -> DiskHandle:
        """Attach an image as a block device. Raises AttachError."""

    @abstractmethod
    def detach_image(self, path: Path) -> None:
        """Detach an image. Failures are the caller's to ignore."""

    @abstractmethod
    def delete_image_file(self, path: Path) -> None:
        """Remove the image file. Raises OSError on failure."""

    @abstractmethod
    def initialize_partition_table(self, disk: DiskHandle, style: str = "GPT") -> None:
        """Write an empty partition table. Raises InitError."""

    @abstractmethod
    def create_partition(self, disk: DiskHandle, drive_letter: Optional[str] = None) -> PartitionHandle:
        """
        Create one partition using the maximum size.

        drive_letter=None asks the host to assign one. Raises DriveLetterConflict
        when an explicit letter is taken and PartitionError otherwise.
        """

    @abstractmethod
    def format_volume(
        self,
        partition: PartitionHandle,
        *,
        filesystem: str,
        label: str,
        dev_workload_optimized: bool = True,
    ) -> VolumeInfo:
        """Format the partition and return the resulting volume. Raises FormatError."""
