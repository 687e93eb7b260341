# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/workspace/provisioning.py
"""
Create-from-scratch pipeline.

    UNALLOCATED -> ALLOCATED -> ATTACHED -> INITIALIZED
                -> PARTITIONED -> FORMATTED -> COMPLETE

Each transition is one method taking the current ProvisioningState and
returning the next one; the handle produced by a step (image, disk,
partition, volume) rides along in the state for the steps after it. A
failing step stops the pipeline. Nothing is retried: the host calls are not
safe to repeat halfway through.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Type

from ..core.exceptions import (
    AllocationError,
    AttachError,
    DevDriveError,
    FormatError,
    InitError,
    PartitionError,
)
from ..core.logger import Log
from ..core.logging_utils import log_step
from ..platform.base import (
    DiskHandle,
    ImageHandle,
    PartitionHandle,
    VirtualDiskPlatform,
    VolumeInfo,
)
from .models import AttachmentRequest, Created, VolumeResult


class ProvisionStage(str, Enum):
    UNALLOCATED = "unallocated"
    ALLOCATED = "allocated"
    ATTACHED = "attached"
    INITIALIZED = "initialized"
    PARTITIONED = "partitioned"
    FORMATTED = "formatted"
    COMPLETE = "complete"


STAGE_ORDER: Tuple[ProvisionStage, ...] = tuple(ProvisionStage)


@dataclass(frozen=True)
class ProvisioningState:
    stage: ProvisionStage
    request: AttachmentRequest
    image: Optional[ImageHandle] = None
    disk: Optional[DiskHandle] = None
    partition: Optional[PartitionHandle] = None
    volume: Optional[VolumeInfo] = None

    @property
    def path(self) -> Path:
        return self.request.descriptor.resolved_path


@dataclass(frozen=True)
class _Step:
    name: str
    description: str
    error_cls: Type[DevDriveError]
    target: ProvisionStage


_STEPS: Dict[ProvisionStage, _Step] = {
    ProvisionStage.UNALLOCATED: _Step("allocate", "Allocate dynamic image", AllocationError, ProvisionStage.ALLOCATED),
    ProvisionStage.ALLOCATED: _Step("attach", "Attach image", AttachError, ProvisionStage.ATTACHED),
    ProvisionStage.ATTACHED: _Step("initialize", "Initialize GPT partition table", InitError, ProvisionStage.INITIALIZED),
    ProvisionStage.INITIALIZED: _Step("partition", "Create partition", PartitionError, ProvisionStage.PARTITIONED),
    ProvisionStage.PARTITIONED: _Step("format", "Format volume", FormatError, ProvisionStage.FORMATTED),
}


class ProvisioningPipeline:
    def __init__(
        self,
        logger: logging.Logger,
        platform: VirtualDiskPlatform,
        *,
        filesystem: str,
        label: str,
    ):
        self.logger = logger
        self.platform = platform
        self.filesystem = filesystem
        self.label = label
        self.last_state: Optional[ProvisioningState] = None

        self._transitions: Dict[ProvisionStage, Callable[[ProvisioningState], ProvisioningState]] = {
            ProvisionStage.UNALLOCATED: self.allocate,
            ProvisionStage.ALLOCATED: self.attach,
            ProvisionStage.ATTACHED: self.initialize,
            ProvisionStage.INITIALIZED: self.partition,
            ProvisionStage.PARTITIONED: self.format,
        }

    # -- transitions -----------------------------------------------------------

    def allocate(self, st: ProvisioningState) -> ProvisioningState:
        size = st.request.descriptor.size_limit_bytes
        if not size or size <= 0:
            raise AllocationError(msg="No size limit given for a new image")
        image = self.platform.allocate_dynamic_image(st.path, size)
        return replace(st, stage=ProvisionStage.ALLOCATED, image=image)

    def attach(self, st: ProvisioningState) -> ProvisioningState:
        disk = self.platform.attach_image(st.path)
        Log.trace(self.logger, "💽 attached as disk %s", disk.disk_number)
        return replace(st, stage=ProvisionStage.ATTACHED, disk=disk)

    def initialize(self, st: ProvisioningState) -> ProvisioningState:
        assert st.disk is not None
        self.platform.initialize_partition_table(st.disk, style="GPT")
        return replace(st, stage=ProvisionStage.INITIALIZED)

    def partition(self, st: ProvisioningState) -> ProvisioningState:
        assert st.disk is not None
        part = self.platform.create_partition(st.disk, drive_letter=st.request.desired_drive_letter)
        return replace(st, stage=ProvisionStage.PARTITIONED, partition=part)

    def format(self, st: ProvisioningState) -> ProvisioningState:
        assert st.partition is not None
        vol = self.platform.format_volume(
            st.partition,
            filesystem=self.filesystem,
            label=self.label,
            dev_workload_optimized=True,
        )
        return replace(st, stage=ProvisionStage.FORMATTED, volume=vol)

    # -- driver ----------------------------------------------------------------

    def advance(self, st: ProvisioningState) -> ProvisioningState:
        """
        Run exactly one transition. Errors leave with the failing step, the
        last completed stage and the image path in their context.
        """
        step = _STEPS[st.stage]
        fn = self._transitions[st.stage]
        ctx = {"path": str(st.path), "step": step.name, "last_stage": st.stage.value}

        try:
            with log_step(self.logger, step.description):
                nxt = fn(st)
        except DevDriveError as e:
            raise e.with_context(**ctx)
        except Exception as e:
            raise step.error_cls(msg=f"{step.description} failed: {e}", cause=e, context=ctx) from e

        if nxt.stage is not step.target:
            raise step.error_cls(
                msg=f"{step.description}: expected stage {step.target.value}, got {nxt.stage.value}",
                context=ctx,
            )
        return nxt

    def run(self, request: AttachmentRequest) -> Created:
        st = ProvisioningState(stage=ProvisionStage.UNALLOCATED, request=request)
        self.last_state = st

        while st.stage is not ProvisionStage.FORMATTED:
            st = self.advance(st)
            self.last_state = st

        assert st.volume is not None
        vol = st.volume
        letter = vol.drive_letter or (st.partition.drive_letter if st.partition else None)
        result = VolumeResult(
            drive_letter=letter,
            filesystem_name=vol.filesystem or self.filesystem,
            size_bytes=vol.size_bytes,
            label=vol.label or self.label,
        )
        self.last_state = replace(st, stage=ProvisionStage.COMPLETE)
        Log.ok(self.logger, f"Provisioned {st.path}", drive=letter, filesystem=result.filesystem_name)
        return Created(volume=result, resolved_path=st.path)
