"""Host folder-list interface.

The host editor owns the list of open folders.  devsync only reads it,
asks for splices through ``update_folders`` and learns about the outcome
through ``on_did_change_folders`` notifications, which may arrive later
than the call that caused them.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from devsync.workspace.events import Disposable
from devsync.workspace.models.folders import FolderChangeEvent, WorkspaceFolder


@runtime_checkable
class FolderHost(Protocol):
    def folders(self) -> list[WorkspaceFolder]:
        """Return a snapshot of the currently open folders, in order."""
        ...

    def update_folders(self, start: int, delete_count: int, *folders_to_add: WorkspaceFolder) -> bool:
        """Request a splice of the folder list.

        Returns ``False`` when the host refuses the request outright.  A
        ``True`` result only means the request was accepted; the change is
        confirmed by a later ``on_did_change_folders`` notification.
        """
        ...

    def on_did_change_folders(self, listener: Callable[[FolderChangeEvent], None]) -> Disposable:
        """Register ``listener`` for folder-change notifications."""
        ...
