# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/cli/args/helpers.py
from __future__ import annotations

import argparse
from typing import Any, Dict, Optional


def _require(v: Any) -> bool:
    """True if v is meaningfully present (treats empty/whitespace-only strings as missing)."""
    if v is None:
        return False
    if isinstance(v, str):
        return v.strip() != ""
    return True


def _merged_get(args: argparse.Namespace, conf: Dict[str, Any], key: str) -> Any:
    """
    Prefer CLI override if present (non-empty), else config.
    Supports both snake_case keys in conf and argparse dest keys.
    """
    v = getattr(args, key, None)
    if _require(v):
        return v
    return conf.get(key)


def _merged_str(args: argparse.Namespace, conf: Dict[str, Any], key: str) -> Optional[str]:
    v = _merged_get(args, conf, key)
    if not _require(v):
        return None
    return str(v).strip()
