"""``.code-workspace`` backed folder host.

Stands in for the editor when devsync runs headless: the open folders are
kept in a VS Code style workspace file::

    {
      "folders": [{"path": "/projects/che"}, {"path": "/projects/theia"}],
      "settings": {...}
    }

Keys other than ``folders`` are preserved.  Change notifications are
delivered on the next event-loop iteration after the file was written, the
same way an editor acknowledges a folder change asynchronously.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

from loguru import logger

from devsync.workspace.events import Signal, Subscription
from devsync.workspace.models.folders import FolderChangeEvent, WorkspaceFolder
from devsync.workspace.store.local import atomic_write


class CodeWorkspaceHost:
    """FolderHost implementation persisting folders to a workspace file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._document: dict[str, Any] = {}
        self._folders: list[WorkspaceFolder] = []
        self._changed: Signal[FolderChangeEvent] = Signal("folders-changed")
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    # -- FolderHost ------------------------------------------------------------

    def folders(self) -> list[WorkspaceFolder]:
        return list(self._folders)

    def update_folders(self, start: int, delete_count: int, *folders_to_add: WorkspaceFolder) -> bool:
        if start < 0 or start > len(self._folders) or delete_count < 0:
            logger.warning(
                "Workspace file: refusing splice start={} delete={} (size={})",
                start,
                delete_count,
                len(self._folders),
            )
            return False

        current = {folder.path for folder in self._folders}
        to_add = [folder for folder in folders_to_add if folder.path not in current]
        removed = self._folders[start : start + delete_count]
        self._folders[start : start + delete_count] = to_add

        self._save()
        self._notify(FolderChangeEvent(added=to_add, removed=removed))
        return True

    def on_did_change_folders(self, listener: Callable[[FolderChangeEvent], None]) -> Subscription:
        return self._changed.connect(listener)

    # -- Persistence -----------------------------------------------------------

    def _load(self) -> None:
        if not self._path.exists():
            return
        document = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        self._document = document
        self._folders = [WorkspaceFolder.model_validate(item) for item in document.get("folders", [])]
        logger.debug("Workspace file: loaded {} folders from {}", len(self._folders), self._path)

    def _save(self) -> None:
        document = dict(self._document)
        document["folders"] = [folder.model_dump(exclude_none=True) for folder in self._folders]
        self._document = document
        atomic_write(self._path, json.dumps(document, indent=2) + "\n")

    def _notify(self, event: FolderChangeEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._changed.fire(event)
        else:
            loop.call_soon(self._changed.fire, event)
