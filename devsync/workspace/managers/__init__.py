"""State managers for the workspace engine.

``DevfileUpdater`` serializes devfile changes; ``WorkspaceFolderQueue``
serializes changes to the host's open folders.  Managers raise domain
exceptions (``DescriptorIOError``, ``FolderOperationTimeout``) and never
exit the process -- reporting is the caller's responsibility.
"""

from devsync.workspace.managers.devfile import DescriptorIOError, DevfileUpdater
from devsync.workspace.managers.folders import (
    FolderOperationRefused,
    FolderOperationTimeout,
    WorkspaceFolderQueue,
)

__all__ = [
    "DescriptorIOError",
    "DevfileUpdater",
    "FolderOperationRefused",
    "FolderOperationTimeout",
    "WorkspaceFolderQueue",
]
