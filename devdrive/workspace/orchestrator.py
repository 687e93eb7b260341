# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/workspace/orchestrator.py
"""
One invocation, start to finish:

    PathResolver -> ImageProbe -> (ProvisioningPipeline | AttachmentPipeline | reject)

FailureCompensator wraps ProvisioningPipeline only. Every path ends in a
single PipelineOutcome; project errors are turned into Failed here and never
escape run().
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from ..config.settings import WorkspaceSettings
from ..core.exceptions import DevDriveError
from ..core.logger import ContextLoggerAdapter, Log
from ..platform.base import VirtualDiskPlatform
from .attachment import AttachmentPipeline
from .compensator import FailureCompensator
from .linker import WorkspaceLinker
from .models import (
    AttachmentRequest,
    DiskImageDescriptor,
    Failed,
    ImageState,
    PipelineOutcome,
    Planned,
    Rejected,
)
from .paths import PathResolver
from .probe import ImageProbe
from .provisioning import ProvisioningPipeline

CREATE_STEPS: Tuple[str, ...] = ("allocate", "attach", "initialize", "partition", "format")
ATTACH_STEPS: Tuple[str, ...] = ("attach", "enumerate")


class WorkspaceOrchestrator:
    """
    Collaborators below the resolver are built per run around a logger bound
    to the resolved path, so every step record carries ``ctx["path"]``.
    """

    def __init__(
        self,
        logger: logging.Logger,
        platform: VirtualDiskPlatform,
        settings: WorkspaceSettings,
    ):
        self.logger = logger
        self.platform = platform
        self.settings = settings
        self.resolver = PathResolver(logger, home=settings.home)

    def run(
        self,
        raw_path: Union[str, Path, None] = None,
        *,
        size_limit_bytes: Optional[int] = None,
        drive_letter: Optional[str] = None,
        dry_run: bool = False,
    ) -> PipelineOutcome:
        raw = raw_path if raw_path not in (None, "") else self.settings.default_image_path
        log: Union[logging.Logger, ContextLoggerAdapter] = self.logger

        try:
            resolved = self.resolver.resolve(raw, create_parent=not dry_run)
            log = Log.bind(self.logger, path=str(resolved.path))
            descriptor = ImageProbe(log, self.platform).probe(resolved.path, size_limit_bytes)
        except DevDriveError as e:
            Log.fail(log, e.user_message(include_context=True))
            p = (e.context or {}).get("path")
            return Failed(error=e, resolved_path=Path(p) if p else None)

        log.info("🔎 image state: %s", descriptor.state.value)

        state = descriptor.state
        if state is ImageState.PRESENT_ATTACHED:
            return self._reject(log, descriptor)

        if dry_run:
            return self._plan(log, descriptor, creates_parent=resolved.parent_missing)

        if state is ImageState.ABSENT:
            outcome = self._create(log, descriptor, drive_letter)
        else:
            outcome = self._attach(log, descriptor)

        if outcome.ok and self.settings.link_path is not None:
            WorkspaceLinker(log).link(self.settings.link_path, outcome)
        return outcome

    # -- dispatch targets ----------------------------------------------------

    def _reject(self, log: ContextLoggerAdapter, descriptor: DiskImageDescriptor) -> Rejected:
        if descriptor.disk_number is None:
            reason = f"{descriptor.resolved_path} is already attached"
        else:
            reason = f"{descriptor.resolved_path} is already attached at disk {descriptor.disk_number}"
        Log.warn(log, reason)
        return Rejected(
            reason=reason,
            resolved_path=descriptor.resolved_path,
            disk_number=descriptor.disk_number,
        )

    def _plan(self, log: ContextLoggerAdapter, descriptor: DiskImageDescriptor, *, creates_parent: bool) -> Planned:
        if descriptor.state is ImageState.ABSENT:
            action, steps = "create", CREATE_STEPS
        else:
            action, steps = "attach", ATTACH_STEPS
            creates_parent = False
        Log.step(log, f"Dry run: would {action} {descriptor.resolved_path}", steps=",".join(steps))
        return Planned(
            action=action,
            steps=steps,
            resolved_path=descriptor.resolved_path,
            creates_parent=creates_parent,
        )

    def _create(
        self,
        log: ContextLoggerAdapter,
        descriptor: DiskImageDescriptor,
        drive_letter: Optional[str],
    ) -> PipelineOutcome:
        request = AttachmentRequest(descriptor=descriptor, desired_drive_letter=drive_letter or None)
        pipeline = ProvisioningPipeline(
            log,
            self.platform,
            filesystem=self.settings.filesystem,
            label=self.settings.volume_label,
        )
        compensator = FailureCompensator(log, self.platform)
        try:
            return compensator.run(pipeline, request)
        except DevDriveError as e:
            return Failed(
                error=e,
                cleanup_performed=True,
                cleanup=compensator.last_report,
                resolved_path=descriptor.resolved_path,
            )

    def _attach(self, log: ContextLoggerAdapter, descriptor: DiskImageDescriptor) -> PipelineOutcome:
        try:
            return AttachmentPipeline(log, self.platform).run(descriptor)
        except DevDriveError as e:
            Log.fail(log, e.user_message(include_context=True))
            return Failed(error=e, resolved_path=descriptor.resolved_path)
