"""Startup import orchestration.

``WorkspaceProjectsManager.run`` is the bootstrap pass of the engine:

1. read the devfile and its workspace options,
2. register already checked-out projects as folders (multi-root only),
3. import every declared project missing on disk, concurrently,
4. start the reconciliation watcher.

A failing import never affects its siblings: each one is awaited on its
own and reported through its ``ImportResult``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from anyio import Path as AsyncPath
from loguru import logger

from devsync.workspace.events import Signal
from devsync.workspace.importing.commands import (
    ImportCommand,
    ImportContext,
    ImportSkipped,
    UnsupportedProjectSource,
    build_import_command,
)
from devsync.workspace.models.devfile import Devfile, WorkspaceOptions
from devsync.workspace.models.enums import ImportState, MessageLevel

if TYPE_CHECKING:
    from devsync.workspace.managers.devfile import DevfileUpdater
    from devsync.workspace.managers.folders import WorkspaceFolderQueue
    from devsync.workspace.store.base import DevfileStore
    from devsync.workspace.watcher import ProjectsWatcher


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class ImportResult:
    """Outcome of importing one project."""

    name: str
    path: str
    state: ImportState
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def skipped(self) -> bool:
        return self.state == ImportState.SKIPPED


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class WorkspaceProjectsManager:
    """Imports the devfile projects and hands over to the watcher."""

    def __init__(
        self,
        projects_root: str,
        store: DevfileStore,
        updater: DevfileUpdater,
        folder_queue: WorkspaceFolderQueue,
        context: ImportContext,
        watcher: ProjectsWatcher | None = None,
    ) -> None:
        self.projects_root = projects_root
        self._store = store
        self._updater = updater
        self._folders = folder_queue
        self._context = context
        self._watcher = watcher
        self.on_did_clone_sources: Signal[list[ImportResult]] = Signal("did-clone-sources")

    @property
    def updater(self) -> DevfileUpdater:
        return self._updater

    # -- Bootstrap -------------------------------------------------------------

    async def run(self, *, watch: bool = True) -> list[ImportResult]:
        """Run the bootstrap pass.  Returns the result of every attempted import."""
        devfile = await self._store.get()
        options = WorkspaceOptions.from_devfile(devfile)
        logger.info(
            "Workspace: {} projects declared (multi-root={})",
            len(devfile.projects),
            options.multi_root,
        )

        if options.multi_root:
            await self.register_existing_projects(devfile)

        commands = await self.build_import_commands(devfile)
        results = await self.execute_import_commands(commands, multi_root=options.multi_root)

        if watch and self._watcher is not None:
            await self._watcher.start(multi_root=options.multi_root)
        return results

    async def register_existing_projects(self, devfile: Devfile) -> None:
        """Open every declared project that is already on disk as a folder."""
        for project in devfile.projects:
            project_path = self._project_path(project.identity)
            if not await AsyncPath(project_path).exists():
                continue
            try:
                await self._folders.add_folder(str(project_path))
            except Exception as exc:
                logger.warning("Workspace: could not open folder {}: {}", project_path, exc)

    async def build_import_commands(self, devfile: Devfile) -> list[ImportCommand]:
        """Build a command for every declared project missing on disk."""
        commands: list[ImportCommand] = []
        for project in devfile.projects:
            if await AsyncPath(self._project_path(project.identity)).exists():
                continue
            try:
                commands.append(build_import_command(project, self.projects_root, self._context))
            except UnsupportedProjectSource as exc:
                logger.warning("Workspace: {}", exc)
                await self._context.prompter.show(MessageLevel.WARNING, f"{exc} It will not be imported.")
        return commands

    async def execute_import_commands(
        self,
        commands: list[ImportCommand],
        *,
        multi_root: bool = True,
    ) -> list[ImportResult]:
        """Run ``commands`` concurrently and wait for every one of them."""
        if not commands:
            return []

        prompter = self._context.prompter
        await prompter.show(MessageLevel.INFO, "Starting importing projects.")

        results = await asyncio.gather(*(self._import(command, multi_root) for command in commands))

        await prompter.show(MessageLevel.INFO, "Finished importing projects.")
        failed = [result for result in results if not result.ok and not result.skipped]
        logger.info(
            "Workspace: imported {}/{} projects ({} failed)",
            sum(result.ok for result in results),
            len(results),
            len(failed),
        )
        self.on_did_clone_sources.fire(list(results))
        return list(results)

    async def _import(self, command: ImportCommand, multi_root: bool) -> ImportResult:
        try:
            project_path = await command.execute()
            if multi_root:
                await self._folders.add_folder(project_path)
        except ImportSkipped as exc:
            logger.info("Workspace: import of {} skipped: {}", command.name, exc)
            return ImportResult(command.name, command.project_path, ImportState.SKIPPED, exc)
        except Exception as exc:
            logger.exception("Workspace: import of {} failed", command.name)
            await self._report_failure(command, exc)
            return ImportResult(command.name, command.project_path, ImportState.FAILED, exc)
        return ImportResult(command.name, project_path, command.state)

    async def _report_failure(self, command: ImportCommand, error: Exception) -> None:
        try:
            await self._context.prompter.show(
                MessageLevel.ERROR,
                f"Couldn't import {command.location}: {error}",
            )
        except Exception:
            logger.exception("Workspace: could not report failure of {}", command.name)

    def _project_path(self, identity: str) -> Path:
        return Path(self.projects_root) / identity
