"""Folder host implementations."""

from devsync.workspace.host.base import FolderHost
from devsync.workspace.host.local import CodeWorkspaceHost

__all__ = ["CodeWorkspaceHost", "FolderHost"]
