# devdrive/core/__init__.py
from .exceptions import DevDriveError, Fatal
from .logger import Log

__all__ = ["DevDriveError", "Fatal", "Log"]
