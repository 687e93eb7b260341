# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/core/utils.py
from __future__ import annotations

import json
import logging
import re
import shlex
import subprocess
from typing import Any, List, Optional

# Binary multiples, matching PowerShell numeric suffixes (1GB == 1073741824).
_SIZE_UNITS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}
_SIZE_RE = re.compile(r"^([0-9]+)(B|KB|MB|GB|TB)$", re.IGNORECASE)


class U:
    @staticmethod
    def which(prog: str) -> Optional[str]:
        from shutil import which as _which
        return _which(prog)

    @staticmethod
    def json_dump(obj: Any) -> str:
        try:
            return json.dumps(obj, indent=2, sort_keys=True, default=str)
        except Exception:
            return repr(obj)

    @staticmethod
    def human_bytes(n: Optional[int]) -> str:
        if n is None:
            return "unknown"
        x = float(n)
        for unit in ["B", "KiB", "MiB", "GiB", "TiB", "PiB"]:
            if x < 1024 or unit == "PiB":
                return f"{x:.2f} {unit}" if unit != "B" else f"{int(x)} {unit}"
            x /= 1024
        return f"{n} B"

    @staticmethod
    def size_to_bytes(s: str) -> int:
        """
        Parse a size limit written as <integer><unit>, unit one of B/KB/MB/GB/TB.

          "10GB" -> 10737418240
          "512mb" -> 536870912

        Anything else (fractions, missing unit, IEC suffixes) raises ValueError.
        """
        m = _SIZE_RE.match((s or "").strip())
        if not m:
            raise ValueError(f"invalid size {s!r}: expected <integer><unit> with unit in B, KB, MB, GB, TB")
        value = int(m.group(1))
        if value <= 0:
            raise ValueError(f"invalid size {s!r}: must be greater than zero")
        return value * _SIZE_UNITS[m.group(2).upper()]

    @staticmethod
    def _pretty_cmd(cmd: List[str]) -> str:
        return " ".join(shlex.quote(x) for x in cmd)

    @staticmethod
    def run_cmd(logger: logging.Logger, cmd: List[str]) -> subprocess.CompletedProcess:
        """
        Run a command and capture its text output.

        A non-zero exit status is returned, not raised; callers inspect
        returncode. Failure to start the process is logged and re-raised.
        """
        pretty = U._pretty_cmd(cmd)
        logger.debug("Running: %s", pretty)

        try:
            return subprocess.run(cmd, check=False, capture_output=True, text=True)
        except OSError as e:
            logger.error("Command error: %s (%s)", pretty, e)
            raise

    @staticmethod
    def to_text(x: Any) -> str:
        if x is None:
            return ""
        if isinstance(x, bytes):
            return x.decode("utf-8", "replace")
        return str(x)
