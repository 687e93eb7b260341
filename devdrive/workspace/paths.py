# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/workspace/paths.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..core.exceptions import PathError
from ..core.file_ops import ensure_parent_dir
from ..core.logger import Log

# PowerShell hands out provider-qualified paths such as
# "Microsoft.PowerShell.Core\FileSystem::C:\Users\me\ws.vhdx".
_PROVIDER_SEP = "::"


@dataclass(frozen=True)
class ResolvedPath:
    path: Path
    parent_created: bool = False
    parent_missing: bool = False


class PathResolver:
    """
    Turns user input into an absolute image path and makes sure its
    directory exists. Runs before any disk mutation; failure is fatal.
    """

    def __init__(self, logger: logging.Logger, home: Optional[Path] = None):
        self.logger = logger
        self.home = home

    @staticmethod
    def strip_provider(raw: str) -> str:
        s = raw.strip().strip('"').strip("'")
        if _PROVIDER_SEP in s:
            s = s.split(_PROVIDER_SEP, 1)[1]
        return s

    def normalize(self, raw: Union[str, Path]) -> Path:
        s = self.strip_provider(str(raw))
        if not s:
            raise PathError(msg="Image path is empty")
        if self.home is not None and (s == "~" or s.startswith(("~/", "~\\"))):
            s = str(self.home) + s[1:]
        return Path(os.path.normpath(os.path.abspath(s)))

    def resolve(self, raw: Union[str, Path], *, create_parent: bool = True) -> ResolvedPath:
        path = self.normalize(raw)

        if path.exists() and path.is_dir():
            raise PathError(msg=f"Image path is a directory: {path}", context={"path": str(path)})

        if not create_parent:
            missing = not path.parent.is_dir()
            Log.trace(self.logger, "📍 resolved %s (parent missing=%s, not creating)", path, missing)
            return ResolvedPath(path=path, parent_missing=missing)

        try:
            created = ensure_parent_dir(path)
        except OSError as e:
            raise PathError(
                msg=f"Cannot create directory {path.parent}: {e}",
                cause=e,
                context={"path": str(path)},
            ) from e

        if created:
            Log.step(self.logger, f"Created directory {path.parent}")
        Log.trace(self.logger, "📍 resolved %s", path)
        return ResolvedPath(path=path, parent_created=created)
