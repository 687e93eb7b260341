# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from .attachment import AttachmentPipeline
from .compensator import FailureCompensator
from .models import (
    AttachmentRequest,
    CleanupReport,
    Created,
    DiskImageDescriptor,
    Failed,
    ImageState,
    Mounted,
    PipelineOutcome,
    Planned,
    Rejected,
    VolumeResult,
)
from .orchestrator import WorkspaceOrchestrator
from .paths import PathResolver
from .probe import ImageProbe
from .provisioning import ProvisioningPipeline, ProvisionStage
from .reporting import ReportingSink, exit_code_for

__all__ = [
    "AttachmentPipeline",
    "AttachmentRequest",
    "CleanupReport",
    "Created",
    "DiskImageDescriptor",
    "Failed",
    "FailureCompensator",
    "ImageProbe",
    "ImageState",
    "Mounted",
    "PathResolver",
    "PipelineOutcome",
    "Planned",
    "ProvisionStage",
    "ProvisioningPipeline",
    "Rejected",
    "ReportingSink",
    "VolumeResult",
    "WorkspaceOrchestrator",
    "exit_code_for",
]
