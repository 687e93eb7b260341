# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/cli/args/groups.py
from __future__ import annotations

import argparse


def _add_global_config_logging(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Global config/logging (two-phase parse relies on these)
    # ------------------------------------------------------------------
    from ... import __version__

    p.add_argument(
        "--config",
        action="append",
        default=[],
        help="YAML/JSON config file (repeatable; later overrides earlier).",
    )
    p.add_argument("--dump-config", action="store_true", help="Print merged normalized config and exit.")
    p.add_argument("--dump-args", action="store_true", help="Print final parsed args and exit.")
    p.add_argument("--version", action="version", version=__version__)
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -v, -vv, -vvv (trace)")
    p.add_argument("-q", "--quiet", action="count", default=0, help="Less output: -q warnings, -qq errors only")
    p.add_argument("--log-file", dest="log_file", default=None, help="Write logs to file.")
    p.add_argument("--json-logs", dest="json_logs", action="store_true", help="Emit logs as NDJSON on stderr.")


def _add_image_options(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Image / volume
    # ------------------------------------------------------------------
    p.add_argument(
        "--path",
        dest="path",
        default=None,
        help="Image file (.vhdx). Default: $DEVDRIVE_IMAGE_PATH or ~/.wsl/workspaces.vhdx",
    )
    p.add_argument(
        "--size",
        dest="size",
        default=None,
        help="Size limit for a new image, e.g. 50GB (units B/KB/MB/GB/TB). Ignored when the image exists.",
    )
    p.add_argument(
        "--drive-letter",
        dest="drive_letter",
        default=None,
        help="Drive letter for a new volume (A-Z). Empty: let Windows assign one.",
    )


def _add_operation_flags(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Operation
    # ------------------------------------------------------------------
    p.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Probe the image and print the plan; create/attach nothing.",
    )
    p.add_argument(
        "--link",
        dest="link",
        default=None,
        help="After success, symlink this directory to the volume root (left alone if it exists).",
    )
    p.add_argument(
        "--powershell",
        dest="powershell",
        default=None,
        help="PowerShell executable. Default: $DEVDRIVE_POWERSHELL or powershell.exe",
    )
