# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/cli/args/validators.py
from __future__ import annotations

import argparse
import re
from typing import Any, Dict, Optional

from ...core.utils import U
from .helpers import _merged_get, _merged_str, _require

_DRIVE_LETTER_RE = re.compile(r"[A-Z]")


def _validate_size(raw: Any) -> Optional[int]:
    """
    <integer><unit>, unit in B/KB/MB/GB/TB. Returns bytes, or None when unset.
    """
    if not _require(raw):
        return None
    try:
        return U.size_to_bytes(str(raw))
    except ValueError as e:
        raise SystemExit(f"--size: {e}")


def _validate_drive_letter(raw: Any) -> Optional[str]:
    """
    Empty means "let Windows pick". Otherwise exactly one uppercase letter.

    Whether the letter is free is not checked here; a taken letter fails later
    at partition time.
    """
    if raw is None:
        return None
    s = str(raw)
    if s == "":
        return None
    if not _DRIVE_LETTER_RE.fullmatch(s):
        raise SystemExit(f"--drive-letter must be empty or a single uppercase letter A-Z, got {raw!r}")
    return s


def _validate_path(raw: Any) -> None:
    if raw is None:
        return
    if not isinstance(raw, str) or not raw.strip():
        raise SystemExit(f"--path must be a non-empty string, got {raw!r}")


def validate_args(args: argparse.Namespace, conf: Dict[str, Any]) -> None:
    """
    Check and normalise the image knobs in place:
      - args.size_bytes: parsed --size (None when unset)
      - args.drive_letter: None or one letter
    No side effects besides the namespace.
    """
    _validate_path(_merged_get(args, conf, "path"))

    args.size_bytes = _validate_size(_merged_str(args, conf, "size"))
    args.drive_letter = _validate_drive_letter(_merged_get(args, conf, "drive_letter"))
