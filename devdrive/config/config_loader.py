# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/config/config_loader.py
from __future__ import annotations

import argparse
import glob
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

from ..core.exceptions import Fatal
from ..core.logger import Log


def _normalize_key(k: Any) -> str:
    return str(k).strip().replace("-", "_")


def _normalize(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {_normalize_key(k): _normalize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_normalize(v) for v in obj]
    return obj


def _deep_merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in over.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


class Config:
    """
    YAML/JSON config files feeding argparse defaults.

    Later files override earlier ones; nested mappings are merged key by key.
    Keys are normalized so `drive-letter:` and `drive_letter:` mean the same thing.
    """

    @staticmethod
    def expand_configs(logger: logging.Logger, cfgs: Sequence[str]) -> List[Path]:
        out: List[Path] = []
        for raw in cfgs:
            pattern = os.path.expandvars(os.path.expanduser(str(raw)))
            matches = sorted(glob.glob(pattern)) if glob.has_magic(pattern) else [pattern]
            if not matches:
                raise Fatal(2, f"Config glob matched nothing: {raw}")
            for m in matches:
                p = Path(m).resolve()
                if not p.is_file():
                    raise Fatal(2, f"Config file not found: {p}")
                out.append(p)
        Log.trace(logger, "📄 config files: %s", [str(p) for p in out])
        return out

    @staticmethod
    def load_one(logger: logging.Logger, path: Path) -> Dict[str, Any]:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise Fatal(2, f"Cannot read config {path}: {e}", cause=e)

        try:
            if Path(path).suffix.lower() == ".json":
                data = json.loads(text) if text.strip() else {}
            else:
                data = yaml.safe_load(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise Fatal(2, f"Invalid config {path}: {e}", cause=e)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise Fatal(2, f"Config {path} must contain a mapping at top level, got {type(data).__name__}")

        logger.debug("Loaded config %s (%d keys)", path, len(data))
        return _normalize(data)

    @staticmethod
    def load_many(logger: logging.Logger, paths: Sequence[Path]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for p in paths:
            merged = _deep_merge(merged, Config.load_one(logger, p))
        return merged

    @staticmethod
    def apply_as_defaults(logger: logging.Logger, parser: argparse.ArgumentParser, conf: Dict[str, Any]) -> None:
        """
        Push config values into the parser as defaults so explicit CLI flags still win.
        Keys that match no argparse destination are ignored.
        """
        dests = {a.dest for a in parser._actions if a.dest and a.dest != argparse.SUPPRESS}
        known = {k: v for k, v in conf.items() if k in dests}
        for k in sorted(set(conf) - set(known)):
            logger.debug("Ignoring unknown config key: %s", k)
        if known:
            parser.set_defaults(**known)
