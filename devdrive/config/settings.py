# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/config/settings.py
"""
Environment-derived defaults, resolved once at the CLI boundary.

Nothing below devdrive.cli reads os.environ or the home directory; the core
receives a WorkspaceSettings instance instead.
"""
from __future__ import annotations

import getpass
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

DEFAULT_SIZE = "50GB"
DEFAULT_FILESYSTEM = "ReFS"
DEFAULT_LABEL = "workspaces"
DEFAULT_POWERSHELL = "powershell.exe"

ENV_IMAGE_PATH = "DEVDRIVE_IMAGE_PATH"
ENV_POWERSHELL = "DEVDRIVE_POWERSHELL"


@dataclass(frozen=True)
class WorkspaceSettings:
    home: Path
    user: str
    default_image_path: Path
    default_size: str = DEFAULT_SIZE
    filesystem: str = DEFAULT_FILESYSTEM
    volume_label: str = DEFAULT_LABEL
    powershell: str = DEFAULT_POWERSHELL
    link_path: Optional[Path] = None

    @classmethod
    def from_environment(
        cls,
        env: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
    ) -> "WorkspaceSettings":
        env = os.environ if env is None else env
        home = Path(home) if home is not None else Path.home()

        user = env.get("USERNAME") or env.get("USER") or ""
        if not user:
            try:
                user = getpass.getuser()
            except Exception:
                user = "unknown"

        image = env.get(ENV_IMAGE_PATH) or str(home / ".wsl" / "workspaces.vhdx")

        return cls(
            home=home,
            user=user,
            default_image_path=Path(image),
            powershell=env.get(ENV_POWERSHELL) or DEFAULT_POWERSHELL,
        )

    def with_overrides(self, **kw: Any) -> "WorkspaceSettings":
        """Apply non-empty CLI/config overrides, ignoring None."""
        clean = {k: v for k, v in kw.items() if v is not None and v != ""}
        if "link_path" in clean:
            clean["link_path"] = Path(clean["link_path"]).expanduser()
        return replace(self, **clean)
