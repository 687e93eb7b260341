# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/workspace/probe.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..core.exceptions import DevDriveError, ProbeError
from ..core.logger import Log
from ..platform.base import VirtualDiskPlatform
from .models import DiskImageDescriptor


class ImageProbe:
    """
    Read-only classification of an image path into absent / detached /
    attached. File existence is checked locally first; the platform is only
    asked about images that exist.
    """

    def __init__(self, logger: logging.Logger, platform: VirtualDiskPlatform):
        self.logger = logger
        self.platform = platform

    def probe(self, path: Path, size_limit_bytes: Optional[int] = None) -> DiskImageDescriptor:
        if not path.is_file():
            Log.trace(self.logger, "🔎 %s: absent", path)
            return DiskImageDescriptor(resolved_path=path, size_limit_bytes=size_limit_bytes)

        try:
            meta = self.platform.query_image_metadata(path)
        except ProbeError as e:
            raise e.with_context(path=str(path))
        except DevDriveError as e:
            raise ProbeError(msg=f"Cannot read image metadata: {e.msg}", cause=e, context={"path": str(path)}) from e
        except Exception as e:
            raise ProbeError(msg=f"Cannot read image metadata: {e}", cause=e, context={"path": str(path)}) from e

        Log.trace(self.logger, "🔎 %s: attached=%s disk=%s", path, meta.attached, meta.disk_number)
        return DiskImageDescriptor(
            resolved_path=path,
            size_limit_bytes=size_limit_bytes,
            exists=True,
            attached=meta.attached,
            disk_number=meta.disk_number,
        )
