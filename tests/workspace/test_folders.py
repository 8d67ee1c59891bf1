"""Tests for the WorkspaceFolderQueue."""

from __future__ import annotations

import asyncio

import pytest

from devsync.workspace.managers.folders import (
    FolderOperationRefused,
    FolderOperationTimeout,
    WorkspaceFolderQueue,
    normalize_folder_path,
)
from devsync.workspace.models.folders import FolderChangeEvent, WorkspaceFolder

TIMEOUT = 0.05


@pytest.fixture
def queue(folder_host) -> WorkspaceFolderQueue:
    return WorkspaceFolderQueue(folder_host, timeout=TIMEOUT)


def test_normalize_folder_path() -> None:
    assert normalize_folder_path("/projects/che/") == "/projects/che"
    assert normalize_folder_path("/projects/che//") == "/projects/che"
    assert normalize_folder_path("/projects/che") == "/projects/che"
    assert normalize_folder_path("/") == "/"


async def test_add_folder_waits_for_acknowledgment(queue, folder_host) -> None:
    await queue.add_folder("/projects/che/")

    assert folder_host.paths == ["/projects/che"]
    assert folder_host.calls == [(0, 0, ["/projects/che"])]
    # The subscription is gone once the request settled.
    assert folder_host.changed.listener_count == 0


async def test_add_existing_folder_needs_no_dispatch(make_folder_host) -> None:
    host = make_folder_host(["/projects/che"])
    queue = WorkspaceFolderQueue(host, timeout=TIMEOUT)

    await queue.add_folder("/projects/che/")

    assert host.calls == []


async def test_remove_folder(make_folder_host) -> None:
    host = make_folder_host(["/projects/che", "/projects/theia"])
    queue = WorkspaceFolderQueue(host, timeout=TIMEOUT)

    await queue.remove_folder("/projects/che")

    assert host.paths == ["/projects/theia"]
    assert host.calls == [(0, 1, [])]


async def test_remove_absent_folder_needs_no_dispatch(queue, folder_host) -> None:
    await queue.remove_folder("/projects/che")
    assert folder_host.calls == []


async def test_duplicate_requests_are_dispatched_once(queue, folder_host) -> None:
    await asyncio.gather(
        queue.add_folder("/projects/che"),
        queue.add_folder("/projects/che/"),
        queue.add_folder("/projects/che"),
    )

    assert folder_host.calls == [(0, 0, ["/projects/che"])]


async def test_requests_are_dispatched_one_at_a_time_in_order(queue, folder_host) -> None:
    dispatched: list[str] = []
    in_flight = 0
    max_in_flight = 0
    original = folder_host.update_folders

    def tracking_update(start: int, delete_count: int, *folders: WorkspaceFolder) -> bool:
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        dispatched.extend(folder.path for folder in folders)
        return original(start, delete_count, *folders)

    def on_change(event: FolderChangeEvent) -> None:
        nonlocal in_flight
        in_flight -= 1

    folder_host.update_folders = tracking_update
    folder_host.changed.connect(on_change)

    await asyncio.gather(*(queue.add_folder(f"/projects/p{i}") for i in range(4)))

    assert dispatched == [f"/projects/p{i}" for i in range(4)]
    assert max_in_flight == 1
    assert folder_host.paths == dispatched


async def test_timeout_rejects_and_queue_moves_on(queue, folder_host) -> None:
    folder_host.ack = "never"

    results = await asyncio.gather(
        queue.add_folder("/projects/a"),
        queue.add_folder("/projects/b"),
        return_exceptions=True,
    )

    assert isinstance(results[0], FolderOperationTimeout)
    assert isinstance(results[0], TimeoutError)
    assert "/projects/a" in str(results[0])
    # The second request was still dispatched after the first one timed out.
    assert [paths for _, _, paths in folder_host.calls] == [["/projects/a"], ["/projects/b"]]
    assert folder_host.changed.listener_count == 0


async def test_folder_already_present_on_any_event_resolves(queue, folder_host) -> None:
    folder_host.ack = "never"
    task = asyncio.ensure_future(queue.add_folder("/projects/che"))
    await asyncio.sleep(0.01)

    # An unrelated notification arrives while the folder is already open.
    folder_host.changed.fire(FolderChangeEvent(added=[WorkspaceFolder(path="/projects/other")]))

    await asyncio.wait_for(task, TIMEOUT)


async def test_refused_request_fails_fast(queue, folder_host) -> None:
    folder_host.ack = "refuse"

    with pytest.raises(FolderOperationRefused):
        await queue.add_folder("/projects/che")

    folder_host.ack = "soon"
    await queue.add_folder("/projects/theia")
    assert folder_host.paths == ["/projects/theia"]


async def test_cancelled_caller_does_not_cancel_shared_request(queue, folder_host) -> None:
    impatient = asyncio.ensure_future(queue.add_folder("/projects/che"))
    patient = asyncio.ensure_future(queue.add_folder("/projects/che"))
    await asyncio.sleep(0)

    impatient.cancel()
    await patient

    assert folder_host.paths == ["/projects/che"]


async def test_close_cancels_pending_requests(queue, folder_host) -> None:
    folder_host.ack = "never"
    first = asyncio.ensure_future(queue.add_folder("/projects/a"))
    second = asyncio.ensure_future(queue.add_folder("/projects/b"))
    await asyncio.sleep(0)

    await queue.close()

    for task in (first, second):
        with pytest.raises(asyncio.CancelledError):
            await task
    assert queue.pending_count == 0
