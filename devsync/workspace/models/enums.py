"""Shared enumerations used across the workspace engine."""

from __future__ import annotations

from enum import StrEnum

# -- Projects ----------------------------------------------------------------


class ProjectSourceType(StrEnum):
    """Source kinds a devfile project may declare."""

    GIT = "git"
    GITHUB = "github"
    ZIP = "zip"


class ImportState(StrEnum):
    """States of a single project import."""

    TRUST_PENDING = "trust_pending"
    CLONING = "cloning"
    SSH_RECOVERY = "ssh_recovery"
    SPARSE_CHECKOUT = "sparse_checkout"
    ARCHIVE_IMPORT = "archive_import"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


# -- Folders -----------------------------------------------------------------


class FolderOperation(StrEnum):
    ADD = "add"
    REMOVE = "remove"


# -- Watching ----------------------------------------------------------------


class WatchEventKind(StrEnum):
    CREATED = "created"
    CHANGED = "changed"
    DELETED = "deleted"


# -- User interaction --------------------------------------------------------


class MessageLevel(StrEnum):
    """Severity of a message shown through the prompter."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
