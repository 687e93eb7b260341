# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/core/file_ops.py
"""
File helpers shared by the path resolver and the workspace linker.
"""

from __future__ import annotations

import os
from pathlib import Path


def ensure_parent_dir(path: Path) -> bool:
    """
    Ensure parent directory of a path exists, creating it if necessary.

    Returns:
        True if the directory had to be created, False if it already existed.

    Raises:
        OSError if the directory cannot be created (permissions, a file in the way, ...)
    """
    parent = Path(path).parent
    if parent.is_dir():
        return False
    parent.mkdir(parents=True, exist_ok=True)
    return True


def symlink_dir(link: Path, target: Path) -> bool:
    """
    Create a directory symlink at `link` pointing to `target`.

    Returns False (and leaves things alone) when `link` already exists.
    """
    link = Path(link)
    if link.exists() or link.is_symlink():
        return False
    ensure_parent_dir(link)
    os.symlink(str(target), str(link), target_is_directory=True)
    return True
