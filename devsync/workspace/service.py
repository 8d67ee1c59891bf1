"""Service wiring: builds the engine from settings and runs it.

``build_service`` creates every component once; ``lifespan`` wraps a run
with orderly shutdown; ``serve`` is the long-running entry point used by
``devsync run``.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from watchfiles import awatch

from devsync.workspace.host.local import CodeWorkspaceHost
from devsync.workspace.importing.commands import ImportContext
from devsync.workspace.importing.coordinator import ImportResult, WorkspaceProjectsManager
from devsync.workspace.managers.devfile import DevfileUpdater
from devsync.workspace.managers.folders import WorkspaceFolderQueue
from devsync.workspace.prompts import ConsolePrompter, NonInteractivePrompter, Prompter
from devsync.workspace.settings import DevsyncSettings
from devsync.workspace.ssh import SshKeyService, UnavailableSshKeyService
from devsync.workspace.store.local import LocalDevfileStore
from devsync.workspace.watcher import ProjectsWatcher, WatchFunction


@dataclass
class DevsyncService:
    """Every long-lived component of a running engine."""

    settings: DevsyncSettings
    store: LocalDevfileStore
    host: CodeWorkspaceHost
    folder_queue: WorkspaceFolderQueue
    updater: DevfileUpdater
    context: ImportContext
    watcher: ProjectsWatcher
    manager: WorkspaceProjectsManager


def build_service(
    settings: DevsyncSettings,
    *,
    prompter: Prompter | None = None,
    ssh_service: SshKeyService | None = None,
    watch: WatchFunction = awatch,
) -> DevsyncService:
    if prompter is None:
        prompter = ConsolePrompter() if settings.interactive else NonInteractivePrompter()

    projects_root = settings.projects_root
    store = LocalDevfileStore(Path(settings.devfile_path))
    host = CodeWorkspaceHost(settings.resolve_workspace_file())
    folder_queue = WorkspaceFolderQueue(host, timeout=settings.folder_timeout)
    updater = DevfileUpdater(store, projects_root)
    context = ImportContext(
        prompter=prompter,
        ssh_service=ssh_service or UnavailableSshKeyService(prompter),
        ca_bundle=settings.ca_bundle,
        trust_all=settings.trust_all,
    )
    watcher = ProjectsWatcher(projects_root, updater, folder_queue, watch=watch)
    manager = WorkspaceProjectsManager(projects_root, store, updater, folder_queue, context, watcher)

    logger.info("Projects root: {} (devfile={}, workspace={})", projects_root, store.path, host.path)
    return DevsyncService(
        settings=settings,
        store=store,
        host=host,
        folder_queue=folder_queue,
        updater=updater,
        context=context,
        watcher=watcher,
        manager=manager,
    )


@asynccontextmanager
async def lifespan(service: DevsyncService) -> AsyncIterator[DevsyncService]:
    try:
        yield service
    finally:
        # 1. No new events.
        await service.watcher.stop()
        # 2. Let in-flight devfile writes land.
        await service.updater.drain()
        # 3. Abandon folder changes nobody will acknowledge any more.
        await service.folder_queue.close()
        logger.info("devsync stopped")


async def serve(service: DevsyncService) -> list[ImportResult]:
    """Import the projects, then watch until SIGINT / SIGTERM."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    async with lifespan(service):
        results = await service.manager.run()
        logger.info("devsync running, press Ctrl+C to stop")
        await stop.wait()
        logger.info("devsync shutting down")
    return results


async def import_once(service: DevsyncService) -> list[ImportResult]:
    """Run the bootstrap import without starting the watcher."""
    async with lifespan(service):
        return await service.manager.run(watch=False)
