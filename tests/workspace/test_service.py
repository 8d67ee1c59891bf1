"""Tests for service wiring and lifecycle."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from devsync.workspace.prompts import NonInteractivePrompter
from devsync.workspace.service import build_service, import_once, lifespan
from devsync.workspace.settings import DevsyncSettings


async def _idle_watch(path, *, stop_event, **kwargs):
    await stop_event.wait()
    return
    yield


@pytest.fixture
def settings(tmp_path: Path) -> DevsyncSettings:
    projects = tmp_path / "projects"
    (projects / "che").mkdir(parents=True)
    devfile = tmp_path / "devfile.yaml"
    devfile.write_text(
        "schemaVersion: 2.2.0\n"
        "projects:\n"
        "  - name: che\n"
        "    git:\n"
        "      remotes:\n"
        "        origin: https://github.com/eclipse/che.git\n"
    )
    return DevsyncSettings(
        projects_root=str(projects),
        devfile_path=str(devfile),
        folder_timeout=0.5,
        interactive=False,
    )


def test_non_interactive_settings_pick_non_interactive_prompter(settings: DevsyncSettings) -> None:
    service = build_service(settings)

    assert isinstance(service.context.prompter, NonInteractivePrompter)
    assert service.host.path == settings.resolve_workspace_file()


async def test_import_once_opens_existing_projects(settings: DevsyncSettings) -> None:
    service = build_service(settings, watch=_idle_watch)

    results = await import_once(service)

    assert results == []
    assert [folder.path for folder in service.host.folders()] == [f"{settings.projects_root}/che"]
    assert settings.resolve_workspace_file().exists()
    assert not service.watcher.running


async def test_lifespan_stops_watcher(settings: DevsyncSettings) -> None:
    service = build_service(settings, watch=_idle_watch)

    async with lifespan(service):
        await service.manager.run()
        await asyncio.sleep(0)
        assert service.watcher.running

    assert not service.watcher.running
    assert service.folder_queue.pending_count == 0
