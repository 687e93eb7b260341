# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# devdrive/platform/__init__.py
"""
Host capability layer for virtual-disk operations.
"""

from .base import (
    DiskHandle,
    ImageHandle,
    ImageMetadata,
    PartitionHandle,
    VirtualDiskPlatform,
    VolumeInfo,
)
from .powershell import PowerShellPlatform

__all__ = [
    "DiskHandle",
    "ImageHandle",
    "ImageMetadata",
    "PartitionHandle",
    "VirtualDiskPlatform",
    "VolumeInfo",
    "PowerShellPlatform",
]
