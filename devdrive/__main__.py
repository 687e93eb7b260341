# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/__main__.py
from __future__ import annotations

import argparse
import sys
import traceback
from typing import Any, Optional, Sequence

from .cli.args import parse_args_with_config
from .config.settings import WorkspaceSettings
from .core.exceptions import Fatal, format_exception_for_cli
from .core.logger import Log
from .core.utils import U
from .platform.base import VirtualDiskPlatform
from .platform.powershell import PowerShellPlatform
from .workspace.orchestrator import WorkspaceOrchestrator
from .workspace.reporting import ReportingSink


def _print_stderr(msg: str) -> None:
    print(msg, file=sys.stderr)


def _safe_log(logger: Any, level: str, msg: str) -> None:
    """
    Best-effort logging without assuming logger exists or has a given method.
    """
    if logger is None:
        _print_stderr(msg)
        return

    fn = getattr(logger, level, None)
    if callable(fn):
        fn(msg)
    else:
        _print_stderr(msg)


def build_settings(args: argparse.Namespace) -> WorkspaceSettings:
    """Environment is read here and nowhere below."""
    base = WorkspaceSettings.from_environment()
    return base.with_overrides(
        powershell=getattr(args, "powershell", None),
        link_path=getattr(args, "link", None),
    )


def run(
    logger: Any,
    args: argparse.Namespace,
    settings: WorkspaceSettings,
    platform: VirtualDiskPlatform,
    sink: Optional[ReportingSink] = None,
) -> int:
    size = getattr(args, "size_bytes", None)
    if size is None:
        size = U.size_to_bytes(settings.default_size)

    outcome = WorkspaceOrchestrator(logger, platform, settings).run(
        getattr(args, "path", None),
        size_limit_bytes=size,
        drive_letter=getattr(args, "drive_letter", None),
        dry_run=bool(getattr(args, "dry_run", False)),
    )
    return (sink or ReportingSink()).report(outcome)


def main(argv: Optional[Sequence[str]] = None) -> None:
    logger: Optional[Any] = None

    # Phase 1: parse (Fatal can happen here)
    try:
        args, _conf, logger = parse_args_with_config(argv)
    except Fatal as e:
        # No logger exists yet when parsing fails.
        _print_stderr(f"💥 ERROR    {e}")
        raise SystemExit(getattr(e, "code", 1))
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        raise SystemExit(130)

    # Phase 2: run
    try:
        settings = build_settings(args)
        platform = PowerShellPlatform(logger, settings.powershell)
        platform.ensure_available()
        rc = run(logger, args, settings, platform)
    except Fatal as e:
        Log.fail(logger, format_exception_for_cli(e, verbose=getattr(args, "verbose", 0)))
        rc = getattr(e, "code", 1)
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        rc = 130
    except Exception as e:
        _safe_log(logger, "error", f"💥 UNHANDLED {type(e).__name__}: {e}")
        _safe_log(logger, "debug", traceback.format_exc())
        rc = 1

    raise SystemExit(rc)


if __name__ == "__main__":
    main()
