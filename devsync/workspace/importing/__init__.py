"""Project import: per-project commands and the bootstrap orchestrator."""

from devsync.workspace.importing.commands import (
    ArchiveImportCommand,
    GitCloneCommand,
    ImportCommand,
    ImportContext,
    ImportSkipped,
    SparseCheckoutCommand,
    UnsupportedProjectSource,
    build_import_command,
)
from devsync.workspace.importing.coordinator import ImportResult, WorkspaceProjectsManager

__all__ = [
    "ArchiveImportCommand",
    "GitCloneCommand",
    "ImportCommand",
    "ImportContext",
    "ImportResult",
    "ImportSkipped",
    "SparseCheckoutCommand",
    "UnsupportedProjectSource",
    "WorkspaceProjectsManager",
    "build_import_command",
]
