# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/cli/args/__init__.py
"""
Argument parser modules for the devdrive CLI.
"""
from __future__ import annotations

from .builder import HelpFormatter, _build_epilog
from .groups import _add_global_config_logging, _add_image_options, _add_operation_flags
from .helpers import _merged_get, _merged_str, _require
from .parser import _build_preparser, _load_merged_config, build_parser, parse_args_with_config
from .validators import _validate_drive_letter, _validate_size, validate_args

__all__ = [
    "HelpFormatter",
    "build_parser",
    "parse_args_with_config",
    "validate_args",
    "_add_global_config_logging",
    "_add_image_options",
    "_add_operation_flags",
    "_build_epilog",
    "_build_preparser",
    "_load_merged_config",
    "_merged_get",
    "_merged_str",
    "_require",
    "_validate_drive_letter",
    "_validate_size",
]
