"""Data models for the workspace engine."""

from devsync.workspace.models.devfile import (
    CheckoutFrom,
    Devfile,
    DevfileMetadata,
    DevfileProject,
    GitSource,
    WorkspaceOptions,
    ZipSource,
)
from devsync.workspace.models.enums import (
    FolderOperation,
    ImportState,
    MessageLevel,
    ProjectSourceType,
    WatchEventKind,
)
from devsync.workspace.models.folders import FolderChangeEvent, WorkspaceFolder
from devsync.workspace.models.git import UpstreamBranch

__all__ = [
    # Devfile
    "CheckoutFrom",
    "Devfile",
    "DevfileMetadata",
    "DevfileProject",
    # Folders
    "FolderChangeEvent",
    # Enums
    "FolderOperation",
    "GitSource",
    "ImportState",
    "MessageLevel",
    "ProjectSourceType",
    # Git
    "UpstreamBranch",
    "WatchEventKind",
    "WorkspaceFolder",
    "WorkspaceOptions",
    "ZipSource",
]
