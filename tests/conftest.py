"""Shared test fixtures.

Nothing here needs the network or an editor: the devfile store, the folder
host and the prompter are in-memory fakes.  Tests that shell out to a real
``git`` binary are marked with ``@pytest.mark.integration`` and skipped
when git is not installed.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Callable, Iterator
from typing import Any

import pytest

from devsync.workspace.events import Signal, Subscription
from devsync.workspace.models.devfile import Devfile
from devsync.workspace.models.enums import MessageLevel
from devsync.workspace.models.folders import FolderChangeEvent, WorkspaceFolder
from devsync.workspace.settings import _get_settings_cached


@pytest.fixture
def git_binary() -> str:
    """Path of the git executable; skips the test when git is missing."""
    path = shutil.which("git")
    if path is None:
        pytest.skip("git binary not available")
    return path


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    _get_settings_cached.cache_clear()
    yield
    _get_settings_cached.cache_clear()


# ---------------------------------------------------------------------------
# Devfile store
# ---------------------------------------------------------------------------


class FakeDevfileStore:
    """In-memory DevfileStore.

    ``delay`` suspends inside ``get`` so that unserialized read-modify-write
    cycles would interleave and lose updates.  ``log`` records the order of
    calls as ``("get" | "update", n_projects)``.
    """

    def __init__(self, data: dict[str, Any] | None = None, *, delay: float = 0.0) -> None:
        self.data: dict[str, Any] = data if data is not None else {"schemaVersion": "2.2.0", "projects": []}
        self.delay = delay
        self.fail_get: Exception | None = None
        self.fail_update: Exception | None = None
        self.log: list[tuple[str, int]] = []
        self.updates = 0

    async def get(self) -> Devfile:
        if self.fail_get is not None:
            raise self.fail_get
        devfile = Devfile.model_validate(self.data)
        self.log.append(("get", len(devfile.projects)))
        if self.delay:
            await asyncio.sleep(self.delay)
        return devfile

    async def update(self, devfile: Devfile) -> None:
        if self.fail_update is not None:
            raise self.fail_update
        await asyncio.sleep(0)
        self.data = devfile.dump()
        self.updates += 1
        self.log.append(("update", len(devfile.projects)))

    @property
    def projects(self) -> list[dict[str, Any]]:
        return self.data.get("projects", [])


@pytest.fixture
def devfile_store() -> FakeDevfileStore:
    return FakeDevfileStore()


@pytest.fixture
def make_devfile_store() -> Callable[..., FakeDevfileStore]:
    return FakeDevfileStore


# ---------------------------------------------------------------------------
# Folder host
# ---------------------------------------------------------------------------


class FakeFolderHost:
    """In-memory FolderHost.

    ``ack`` controls what happens after a splice:

    - ``"soon"``: notify on the next loop iteration (editor behaviour),
    - ``"never"``: apply the change but never notify,
    - ``"refuse"``: reject the splice.
    """

    def __init__(self, paths: list[str] | None = None, *, ack: str = "soon") -> None:
        self._folders = [WorkspaceFolder(path=path) for path in paths or []]
        self.ack = ack
        self.calls: list[tuple[int, int, list[str]]] = []
        self.changed: Signal[FolderChangeEvent] = Signal("fake-folders")

    @property
    def paths(self) -> list[str]:
        return [folder.path for folder in self._folders]

    def folders(self) -> list[WorkspaceFolder]:
        return list(self._folders)

    def update_folders(self, start: int, delete_count: int, *folders_to_add: WorkspaceFolder) -> bool:
        self.calls.append((start, delete_count, [folder.path for folder in folders_to_add]))
        if self.ack == "refuse":
            return False
        removed = self._folders[start : start + delete_count]
        self._folders[start : start + delete_count] = list(folders_to_add)
        if self.ack == "soon":
            event = FolderChangeEvent(added=list(folders_to_add), removed=removed)
            asyncio.get_running_loop().call_soon(self.changed.fire, event)
        return True

    def on_did_change_folders(self, listener: Callable[[FolderChangeEvent], None]) -> Subscription:
        return self.changed.connect(listener)


@pytest.fixture
def folder_host() -> FakeFolderHost:
    return FakeFolderHost()


@pytest.fixture
def make_folder_host() -> Callable[..., FakeFolderHost]:
    return FakeFolderHost


# ---------------------------------------------------------------------------
# Prompter
# ---------------------------------------------------------------------------


class RecordingPrompter:
    """Prompter answering questions from a script.

    Messages without actions are only recorded.  Each question (a message
    with actions) consumes the next entry of ``answers``; an exhausted
    script dismisses.
    """

    def __init__(self, answers: list[str | None] | None = None) -> None:
        self.answers = list(answers or [])
        self.messages: list[tuple[MessageLevel, str, tuple[str, ...]]] = []

    async def show(self, level: MessageLevel, message: str, *actions: str) -> str | None:
        self.messages.append((level, message, actions))
        if not actions:
            return None
        return self.answers.pop(0) if self.answers else None

    @property
    def questions(self) -> list[tuple[MessageLevel, str, tuple[str, ...]]]:
        return [entry for entry in self.messages if entry[2]]

    def texts(self, level: MessageLevel | None = None) -> list[str]:
        return [message for lvl, message, _ in self.messages if level is None or lvl == level]


@pytest.fixture
def prompter() -> RecordingPrompter:
    return RecordingPrompter()


@pytest.fixture
def make_prompter() -> Callable[..., RecordingPrompter]:
    return RecordingPrompter
