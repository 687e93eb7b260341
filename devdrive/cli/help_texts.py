# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/cli/help_texts.py
from __future__ import annotations

# NOTE:
# Pure help text used by argparse epilog rendering. No imports beyond
# __future__ so --help stays cheap.

YAML_EXAMPLE = r"""# devdrive configuration (YAML)
#
# Run:
#   devdrive --config devdrive.yaml
#
# Merge multiple configs (later overrides earlier):
#   devdrive --config base.yaml --config laptop.yaml
#
# Keys use the long flag names with '-' or '_' (both accepted).
# CLI flags always win over config values.

path: ~/.wsl/workspaces.vhdx   # default: $DEVDRIVE_IMAGE_PATH or ~/.wsl/workspaces.vhdx
size: 50GB                     # only used when the image is created; B/KB/MB/GB/TB
drive_letter: W                # empty/omitted: let Windows pick one
link: ~/workspaces             # symlink to the mounted volume root after success
powershell: powershell.exe     # or pwsh.exe; also $DEVDRIVE_POWERSHELL
dry_run: false
"""

FEATURE_SUMMARY = r"""  - Creates a dynamically expanding VHDX, GPT-initialises it, partitions it
    and formats it as a Dev Drive (ReFS, dev-workload optimised).
  - Re-attaches an existing detached image and reports its drive letter(s).
  - Refuses to touch an image that is already attached (exit code 3).
  - Removes the half-built image if creation fails partway through.
  - --dry-run shows the plan without creating or attaching anything.
"""

EXIT_CODES = r"""   0  created, mounted, or dry-run plan
   1  unexpected error
   2  usage / configuration error
   3  image already attached
  10  path error           11  probe error
  20  allocation error     21  attach error
  22  init error           23  partition error
  24  drive letter in use  25  format error
 130  interrupted
"""
