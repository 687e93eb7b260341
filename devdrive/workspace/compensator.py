# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/workspace/compensator.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from ..core.exceptions import CleanupWarning, DevDriveError
from ..core.logger import Log
from ..platform.base import VirtualDiskPlatform
from .models import AttachmentRequest, CleanupReport, Created
from .provisioning import STAGE_ORDER, ProvisioningPipeline, ProvisionStage


def _reached(stage: Optional[ProvisionStage], target: ProvisionStage) -> bool:
    if stage is None:
        return False
    return STAGE_ORDER.index(stage) >= STAGE_ORDER.index(target)


class FailureCompensator:
    """
    Wraps the provisioning pipeline only. When a step fails, the half-built
    image is detached and deleted, then the original error is re-raised
    untouched. Compensation itself never raises; problems end up as
    CleanupWarning entries in `last_report`.
    """

    def __init__(self, logger: logging.Logger, platform: VirtualDiskPlatform):
        self.logger = logger
        self.platform = platform
        self.last_report: Optional[CleanupReport] = None

    def run(self, pipeline: ProvisioningPipeline, request: AttachmentRequest) -> Created:
        self.last_report = None
        try:
            return pipeline.run(request)
        except DevDriveError as e:
            st = pipeline.last_state
            Log.fail(
                self.logger,
                f"Provisioning failed: {e.msg}",
                last_stage=st.stage.value if st else "unknown",
            )
            self.last_report = self.compensate(
                request.descriptor.resolved_path,
                last_stage=st.stage if st else None,
            )
            raise

    def compensate(self, path: Path, *, last_stage: Optional[ProvisionStage] = None) -> CleanupReport:
        warnings: List[CleanupWarning] = []

        Log.step(self.logger, f"Cleaning up partial image {path}")

        detached = False
        try:
            self.platform.detach_image(path)
            detached = True
        except Exception as e:
            # Expected when the failure happened before attach.
            self.logger.debug("Detach of %s ignored: %s", path, e)
            if _reached(last_stage, ProvisionStage.ATTACHED):
                warnings.append(CleanupWarning("detach", str(path), str(e)))

        deleted = False
        try:
            self.platform.delete_image_file(path)
            deleted = not path.exists()
            if not deleted:
                warnings.append(CleanupWarning("delete", str(path), "file still present after delete"))
        except Exception as e:
            warnings.append(CleanupWarning("delete", str(path), str(e)))

        for w in warnings:
            Log.warn(self.logger, f"Cleanup incomplete: {w}")
        if deleted and not warnings:
            Log.ok(self.logger, f"Removed partial image {path}")

        return CleanupReport(
            detach_attempted=True,
            detached=detached,
            delete_attempted=True,
            deleted=deleted,
            warnings=tuple(warnings),
        )
