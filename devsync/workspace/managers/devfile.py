"""Serialized devfile updater.

The devfile is the only shared mutable resource of the engine: the import
coordinator and the filesystem watcher both rewrite it, often at the same
time.  ``DevfileUpdater`` turns every change into a link of a single chain:

1. capture the previous link,
2. wait for it to finish (its outcome belongs to its own caller),
3. ``get`` -> mutate in memory -> ``update``,
4. release the next link.

So at most one read-modify-write is in flight and changes are applied in
submission order.  A failing link raises ``DescriptorIOError`` to its own
caller only; the chain keeps going.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from loguru import logger

from devsync.workspace.managers.projects import (
    delete_git_project,
    to_relative_path,
    update_or_create_git_project,
)

if TYPE_CHECKING:
    from devsync.workspace.store.base import DevfileStore


class DescriptorIOError(RuntimeError):
    """Reading or writing the devfile failed."""


class DevfileUpdater:
    """Owns every read-modify-write cycle against the devfile."""

    def __init__(self, store: DevfileStore, projects_root: str) -> None:
        self._store = store
        self._projects_root = projects_root
        self._tail: asyncio.Future[None] | None = None

    @property
    def projects_root(self) -> str:
        return self._projects_root

    # -- Public API ------------------------------------------------------------

    async def update_project(self, project_path: str, remote_url: str | None, branch: str) -> None:
        """Create or update the git project living in ``project_path``.

        No-op when ``project_path`` or ``remote_url`` is empty.
        """
        if not project_path or not remote_url:
            return

        async def _mutate() -> None:
            devfile = await self._store.get()
            relative_path = to_relative_path(project_path, self._projects_root)
            update_or_create_git_project(devfile, relative_path, remote_url, branch)
            await self._store.update(devfile)
            logger.debug("Devfile: project {} -> {} ({})", relative_path, remote_url, branch)

        await self._submit(_mutate, f"failure to add/update project {project_path}")

    async def delete_project(self, project_path: str) -> None:
        """Remove the project living in ``project_path``.  No-op for an empty path.

        The devfile is written only when a project was actually removed.
        """
        if not project_path:
            return

        async def _mutate() -> None:
            relative_path = to_relative_path(project_path, self._projects_root)
            devfile = await self._store.get()
            if delete_git_project(devfile, relative_path):
                await self._store.update(devfile)
                logger.debug("Devfile: project {} removed", relative_path)

        await self._submit(_mutate, f"failure to delete project {project_path}")

    async def drain(self) -> None:
        """Wait until every operation submitted so far has finished."""
        tail = self._tail
        if tail is not None:
            await asyncio.shield(tail)

    # -- Chain -----------------------------------------------------------------

    async def _submit(self, mutate: Callable[[], Awaitable[None]], failure: str) -> None:
        previous = self._tail
        turn: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._tail = turn

        try:
            if previous is not None:
                await asyncio.shield(previous)
            try:
                await mutate()
            except Exception as exc:
                logger.warning("Devfile: {}: {}", failure, exc)
                raise DescriptorIOError(f"Devfile: {failure}") from exc
        finally:
            self._release(previous, turn)

    def _release(self, previous: asyncio.Future[None] | None, turn: asyncio.Future[None]) -> None:
        # A caller cancelled while waiting must not let its successor overtake
        # the predecessor that is still running.
        if previous is None or previous.done():
            turn.set_result(None)
        else:
            previous.add_done_callback(lambda _: turn.set_result(None))
        if self._tail is turn and turn.done():
            self._tail = None
