"""Reconciliation watcher.

Keeps the devfile (and, in multi-root mode, the host's open folders) in
line with what is checked out under the projects root:

- a recursive watch over ``.git/HEAD`` and ``.git/config`` files detects
  clones, branch switches, remote edits and deleted repositories;
- in multi-root mode, a non-recursive watch over the projects root detects
  project directories that appear or disappear.

Every event is handled on its own: failures are logged and the watch
loops keep running.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any

from anyio import Path as AsyncPath
from loguru import logger
from watchfiles import Change, awatch

from devsync.workspace.git import get_git_root_folder, get_upstream_branch
from devsync.workspace.models.enums import WatchEventKind

if TYPE_CHECKING:
    from devsync.workspace.managers.devfile import DevfileUpdater
    from devsync.workspace.managers.folders import WorkspaceFolderQueue

WatchFunction = Callable[..., AsyncIterator[set[tuple[Change, str]]]]

GIT_METADATA_FILES = frozenset({"HEAD", "config"})

_KINDS = {
    Change.added: WatchEventKind.CREATED,
    Change.modified: WatchEventKind.CHANGED,
    Change.deleted: WatchEventKind.DELETED,
}


def is_git_metadata_file(change: Change, path: str) -> bool:
    """Watch filter accepting ``<project>/.git/HEAD`` and ``<project>/.git/config``."""
    candidate = PurePosixPath(path)
    return candidate.name in GIT_METADATA_FILES and candidate.parent.name == ".git"


def is_project_entry(change: Change, path: str) -> bool:
    """Watch filter for direct children of the projects root; dot entries are ignored."""
    return not PurePosixPath(path).name.startswith(".")


class ProjectsWatcher:
    """Turns filesystem events under the projects root into devfile updates."""

    def __init__(
        self,
        projects_root: str,
        updater: DevfileUpdater,
        folder_queue: WorkspaceFolderQueue,
        *,
        watch: WatchFunction = awatch,
    ) -> None:
        self.projects_root = projects_root
        self.multi_root = False
        self._updater = updater
        self._folders = folder_queue
        self._watch = watch
        self._stop_event: asyncio.Event | None = None
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    # -- Lifecycle -------------------------------------------------------------

    async def start(self, *, multi_root: bool = True) -> None:
        if self.running:
            return
        self.multi_root = multi_root
        self._stop_event = asyncio.Event()
        self._tasks = [
            asyncio.create_task(
                self._watch_loop("git", self.on_git_metadata_event, watch_filter=is_git_metadata_file, recursive=True),
                name="watch-git-metadata",
            )
        ]
        if multi_root:
            self._tasks.append(
                asyncio.create_task(
                    self._watch_loop("root", self.on_projects_root_event, watch_filter=is_project_entry, recursive=False),
                    name="watch-projects-root",
                )
            )
        logger.info("Watcher: watching {} (multi-root={})", self.projects_root, multi_root)

    async def stop(self, timeout: float = 5.0) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        tasks, self._tasks = self._tasks, []
        if not tasks:
            return

        _, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Watcher: stopped")

    async def _watch_loop(self, name: str, handler: Callable[..., Any], **kwargs: Any) -> None:
        try:
            async for changes in self._watch(self.projects_root, stop_event=self._stop_event, **kwargs):
                for change, path in sorted(changes, key=lambda item: (item[1], item[0])):
                    kind = _KINDS.get(change)
                    if kind is None:
                        continue
                    try:
                        await handler(kind, path)
                    except Exception:
                        logger.exception("Watcher {}: failed to handle {} {}", name, kind, path)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Watcher {}: watch loop stopped", name)

    # -- Event handlers --------------------------------------------------------

    async def on_git_metadata_event(self, kind: WatchEventKind, path: str) -> None:
        """``.git/HEAD`` or ``.git/config`` of a project was created, changed or deleted.

        A delete is only trusted while the file is still gone: a repository
        removed and cloned again reports both changes in the same batch.
        """
        project_path = get_git_root_folder(path)
        if not project_path:
            return
        if kind == WatchEventKind.DELETED and not await AsyncPath(path).exists():
            await self._updater.delete_project(project_path)
        else:
            await self.on_project_changed(project_path)

    async def on_projects_root_event(self, kind: WatchEventKind, path: str) -> None:
        """An entry directly under the projects root appeared or vanished.

        Modifications of an existing entry are ignored.
        """
        if kind == WatchEventKind.CHANGED:
            return
        entry = AsyncPath(path)
        if await entry.is_dir():
            await self.on_project_added(path)
        elif not await entry.exists():
            await self.on_project_removed(path)

    async def on_project_changed(self, project_path: str) -> None:
        """Write the project's current upstream into the devfile."""
        upstream = await get_upstream_branch(project_path)
        if upstream is None or not upstream.remote_url:
            logger.warning("Could not detect git project branch for {}", project_path)
            return
        await self._updater.update_project(project_path, upstream.remote_url, upstream.branch)

    async def on_project_added(self, project_path: str) -> None:
        try:
            await self._folders.add_folder(project_path)
        except Exception as exc:
            logger.warning("Watcher: could not open folder {}: {}", project_path, exc)

    async def on_project_removed(self, project_path: str) -> None:
        if self.multi_root:
            try:
                await self._folders.remove_folder(project_path)
            except Exception as exc:
                logger.warning("Watcher: could not close folder {}: {}", project_path, exc)
        await self._updater.delete_project(project_path)
