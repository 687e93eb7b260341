# devdrive/config/__init__.py
from .config_loader import Config
from .settings import WorkspaceSettings

__all__ = ["Config", "WorkspaceSettings"]
