# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/workspace/models.py
"""
Value types shared by the workspace pipelines.

PipelineOutcome is the single value a run produces; reporting and the exit
code are computed from it and nothing else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from ..core.exceptions import CleanupWarning, DevDriveError


class ImageState(str, Enum):
    ABSENT = "absent"
    PRESENT_DETACHED = "present-detached"
    PRESENT_ATTACHED = "present-attached"


@dataclass(frozen=True)
class DiskImageDescriptor:
    resolved_path: Path
    size_limit_bytes: Optional[int] = None
    exists: bool = False
    attached: bool = False
    disk_number: Optional[int] = None

    @property
    def state(self) -> ImageState:
        if not self.exists:
            return ImageState.ABSENT
        return ImageState.PRESENT_ATTACHED if self.attached else ImageState.PRESENT_DETACHED


@dataclass(frozen=True)
class AttachmentRequest:
    descriptor: DiskImageDescriptor
    desired_drive_letter: Optional[str] = None


@dataclass(frozen=True)
class VolumeResult:
    drive_letter: Optional[str]
    filesystem_name: str
    size_bytes: int
    label: str = ""

    @property
    def root(self) -> Optional[str]:
        return f"{self.drive_letter}:\\" if self.drive_letter else None


@dataclass(frozen=True)
class CleanupReport:
    detach_attempted: bool = False
    detached: bool = False
    delete_attempted: bool = False
    deleted: bool = False
    warnings: Tuple[CleanupWarning, ...] = ()

    @property
    def complete(self) -> bool:
        return self.deleted and not self.warnings


class PipelineOutcome:
    """Base of the outcome variants; `kind` is the tag."""

    kind: str = "outcome"
    resolved_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.kind in ("created", "mounted", "planned")


@dataclass(frozen=True)
class Created(PipelineOutcome):
    volume: VolumeResult
    resolved_path: Optional[Path] = None
    kind: str = field(default="created", init=False)


@dataclass(frozen=True)
class Mounted(PipelineOutcome):
    volumes: Tuple[VolumeResult, ...]
    resolved_path: Optional[Path] = None
    disk_number: Optional[int] = None
    kind: str = field(default="mounted", init=False)


@dataclass(frozen=True)
class Rejected(PipelineOutcome):
    reason: str
    resolved_path: Optional[Path] = None
    disk_number: Optional[int] = None
    kind: str = field(default="rejected", init=False)


@dataclass(frozen=True)
class Failed(PipelineOutcome):
    error: DevDriveError
    cleanup_performed: bool = False
    cleanup: Optional[CleanupReport] = None
    resolved_path: Optional[Path] = None
    kind: str = field(default="failed", init=False)


@dataclass(frozen=True)
class Planned(PipelineOutcome):
    """Dry-run result: what would have happened."""
    action: str
    steps: Tuple[str, ...] = ()
    resolved_path: Optional[Path] = None
    creates_parent: bool = False
    kind: str = field(default="planned", init=False)


def lettered(volumes: List[VolumeResult]) -> List[VolumeResult]:
    return [v for v in volumes if v.drive_letter]
