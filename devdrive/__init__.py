# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""
devdrive - provision or re-attach a Dev Drive workspace image.

Usage:
    from devdrive import WorkspaceOrchestrator, WorkspaceSettings, PowerShellPlatform

    settings = WorkspaceSettings.from_environment()
    platform = PowerShellPlatform(logger, settings.powershell)
    outcome = WorkspaceOrchestrator(logger, platform, settings).run(size_limit_bytes=50 << 30)
"""

__version__ = "0.1.0"

from .config import WorkspaceSettings
from .core import DevDriveError, Fatal, Log
from .platform import PowerShellPlatform, VirtualDiskPlatform
from .workspace import PipelineOutcome, ReportingSink, WorkspaceOrchestrator, exit_code_for

__all__ = [
    "__version__",
    "DevDriveError",
    "Fatal",
    "Log",
    "PipelineOutcome",
    "PowerShellPlatform",
    "ReportingSink",
    "VirtualDiskPlatform",
    "WorkspaceOrchestrator",
    "WorkspaceSettings",
    "exit_code_for",
]
