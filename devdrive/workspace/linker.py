# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/workspace/linker.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..core.file_ops import symlink_dir
from ..core.logger import Log
from .models import Created, Mounted, PipelineOutcome


def volume_root(outcome: PipelineOutcome) -> Optional[str]:
    """Root ("X:\\") of the first lettered volume in a success outcome."""
    if isinstance(outcome, Created):
        return outcome.volume.root
    if isinstance(outcome, Mounted):
        for v in outcome.volumes:
            if v.root:
                return v.root
    return None


class WorkspaceLinker:
    """
    Points a well-known directory (e.g. ~/workspaces) at the mounted volume.
    Best effort: the outcome of the run never depends on it.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def link(self, link_path: Path, outcome: PipelineOutcome) -> bool:
        root = volume_root(outcome)
        if root is None:
            Log.warn(self.logger, f"Not linking {link_path}: no lettered volume to point at")
            return False

        try:
            created = symlink_dir(link_path, Path(root))
        except OSError as e:
            Log.warn(self.logger, f"Cannot link {link_path} -> {root}: {e}")
            return False

        if not created:
            self.logger.info("🔗 %s already exists; leaving it alone", link_path)
            return False
        Log.ok(self.logger, f"Linked {link_path} -> {root}")
        return True
