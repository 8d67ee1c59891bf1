"""Tests for the ``.code-workspace`` backed folder host."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from devsync.workspace.host.local import CodeWorkspaceHost
from devsync.workspace.models.folders import FolderChangeEvent, WorkspaceFolder


@pytest.fixture
def workspace_file(tmp_path: Path) -> Path:
    return tmp_path / ".devsync" / "workspace.code-workspace"


async def test_add_folder_persists_and_notifies(workspace_file: Path) -> None:
    host = CodeWorkspaceHost(workspace_file)
    events: list[FolderChangeEvent] = []
    host.on_did_change_folders(events.append)

    assert host.update_folders(0, 0, WorkspaceFolder(path="/projects/che"))
    # Notification arrives on the next loop iteration.
    assert events == []
    await asyncio.sleep(0)

    assert [folder.path for folder in events[0].added] == ["/projects/che"]
    assert json.loads(workspace_file.read_text())["folders"] == [{"path": "/projects/che"}]


async def test_folders_survive_a_restart(workspace_file: Path) -> None:
    CodeWorkspaceHost(workspace_file).update_folders(0, 0, WorkspaceFolder(path="/projects/che"))

    reloaded = CodeWorkspaceHost(workspace_file)
    assert [folder.path for folder in reloaded.folders()] == ["/projects/che"]


async def test_other_keys_are_preserved(workspace_file: Path) -> None:
    workspace_file.parent.mkdir(parents=True)
    workspace_file.write_text(json.dumps({"folders": [{"path": "/projects/che"}], "settings": {"editor.tabSize": 2}}))
    host = CodeWorkspaceHost(workspace_file)

    host.update_folders(0, 1)

    document = json.loads(workspace_file.read_text())
    assert document == {"folders": [], "settings": {"editor.tabSize": 2}}


async def test_removed_folders_are_reported(workspace_file: Path) -> None:
    host = CodeWorkspaceHost(workspace_file)
    host.update_folders(0, 0, WorkspaceFolder(path="/projects/a"), WorkspaceFolder(path="/projects/b"))
    await asyncio.sleep(0)
    events: list[FolderChangeEvent] = []
    host.on_did_change_folders(events.append)

    host.update_folders(1, 1)
    await asyncio.sleep(0)

    (event,) = events
    assert [folder.path for folder in event.removed] == ["/projects/b"]
    assert event.added == []
    assert [folder.path for folder in host.folders()] == ["/projects/a"]


@pytest.mark.parametrize(("start", "delete_count"), [(-1, 0), (5, 0), (0, -1)])
async def test_invalid_splice_is_refused(workspace_file: Path, start: int, delete_count: int) -> None:
    host = CodeWorkspaceHost(workspace_file)

    assert host.update_folders(start, delete_count, WorkspaceFolder(path="/projects/che")) is False
    assert host.folders() == []
    assert not workspace_file.exists()


async def test_duplicate_paths_are_not_added_twice(workspace_file: Path) -> None:
    host = CodeWorkspaceHost(workspace_file)
    host.update_folders(0, 0, WorkspaceFolder(path="/projects/che"))
    host.update_folders(1, 0, WorkspaceFolder(path="/projects/che"))

    assert [folder.path for folder in host.folders()] == ["/projects/che"]
