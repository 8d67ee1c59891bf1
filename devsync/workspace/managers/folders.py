"""Queued, acknowledgment-based updates of the host's open folders.

The host applies a folder change asynchronously and confirms it through an
``on_did_change_folders`` notification.  ``WorkspaceFolderQueue`` keeps at
most one change outstanding:

- requests are dispatched one at a time, in arrival order;
- a request equal to the dispatched or to a pending one is not queued
  again, its caller waits for the existing request instead;
- a dispatched request completes on a matching notification, or fails
  with ``FolderOperationTimeout`` after ``timeout`` seconds.

Whatever the outcome, the next pending request is dispatched afterwards.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from devsync.workspace.models.enums import FolderOperation
from devsync.workspace.models.folders import FolderChangeEvent, WorkspaceFolder

if TYPE_CHECKING:
    from devsync.workspace.host.base import FolderHost

DEFAULT_FOLDER_TIMEOUT = 3.0


class FolderOperationTimeout(TimeoutError):
    """The host did not acknowledge a folder change in time."""


class FolderOperationRefused(RuntimeError):
    """The host rejected a folder change outright."""


def normalize_folder_path(path: str) -> str:
    """Strip trailing separators, keeping a bare root intact."""
    stripped = path.rstrip("/")
    return stripped or ("/" if path.startswith("/") else stripped)


@dataclass(eq=False)
class FolderRequest:
    op: FolderOperation
    path: str
    future: asyncio.Future[None] = field(repr=False)

    def matches(self, op: FolderOperation, path: str) -> bool:
        return self.op == op and self.path == path


class WorkspaceFolderQueue:
    """Serializes ``add_folder`` / ``remove_folder`` calls against a ``FolderHost``."""

    def __init__(self, host: FolderHost, timeout: float = DEFAULT_FOLDER_TIMEOUT) -> None:
        self._host = host
        self._timeout = timeout
        self._pending: deque[FolderRequest] = deque()
        self._current: FolderRequest | None = None
        self._pump: asyncio.Task[None] | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def current(self) -> FolderRequest | None:
        return self._current

    # -- Public API ------------------------------------------------------------

    async def add_folder(self, path: str) -> None:
        """Open ``path`` in the host.  Returns once the host confirmed it."""
        await self._enqueue(FolderOperation.ADD, path)

    async def remove_folder(self, path: str) -> None:
        """Close ``path`` in the host.  Returns once the host confirmed it."""
        await self._enqueue(FolderOperation.REMOVE, path)

    async def close(self) -> None:
        """Stop dispatching.  Requests still waiting are cancelled."""
        pump, self._pump = self._pump, None
        if pump is not None and not pump.done():
            pump.cancel()
            await asyncio.gather(pump, return_exceptions=True)
        while self._pending:
            request = self._pending.popleft()
            if not request.future.done():
                request.future.cancel()

    # -- Queue -----------------------------------------------------------------

    async def _enqueue(self, op: FolderOperation, path: str) -> None:
        path = normalize_folder_path(path)
        request = self._find(op, path)
        if request is None:
            future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            future.add_done_callback(_mark_retrieved)
            request = FolderRequest(op=op, path=path, future=future)
            self._pending.append(request)
            self._ensure_pump()
        else:
            logger.debug("Folders: {} {} already queued", op, path)

        # Shield: one impatient caller must not cancel a request others share.
        await asyncio.shield(request.future)

    def _find(self, op: FolderOperation, path: str) -> FolderRequest | None:
        if self._current is not None and self._current.matches(op, path):
            return self._current
        for request in self._pending:
            if request.matches(op, path):
                return request
        return None

    def _ensure_pump(self) -> None:
        if self._pump is None or self._pump.done():
            self._pump = asyncio.create_task(self._run(), name="folder-queue")

    async def _run(self) -> None:
        while self._pending:
            request = self._pending.popleft()
            self._current = request
            try:
                await self._dispatch(request)
            except asyncio.CancelledError:
                request.future.cancel()
                raise
            except Exception as exc:
                logger.warning("Folders: {} {} failed: {}", request.op, request.path, exc)
                if not request.future.done():
                    request.future.set_exception(exc)
            else:
                if not request.future.done():
                    request.future.set_result(None)
            finally:
                self._current = None

    # -- Dispatch --------------------------------------------------------------

    async def _dispatch(self, request: FolderRequest) -> None:
        if self._is_applied(request):
            logger.debug("Folders: {} {} needs no change", request.op, request.path)
            return

        acknowledged: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def on_change(event: FolderChangeEvent) -> None:
            if not acknowledged.done() and self._is_acknowledged(request, event):
                acknowledged.set_result(None)

        subscription = self._host.on_did_change_folders(on_change)
        try:
            if not self._apply(request):
                raise FolderOperationRefused(f"Host refused to {request.op} workspace folder {request.path}")
            try:
                await asyncio.wait_for(acknowledged, self._timeout)
            except TimeoutError:
                raise FolderOperationTimeout(
                    f"{request.op.capitalize()} workspace folder {request.path} "
                    f"was cancelled by timeout {int(self._timeout * 1000)} ms"
                ) from None
            logger.info("Folders: {} {}", request.op, request.path)
        finally:
            subscription.dispose()

    def _apply(self, request: FolderRequest) -> bool:
        folders = self._host.folders()
        if request.op == FolderOperation.ADD:
            return self._host.update_folders(len(folders), 0, WorkspaceFolder(path=request.path))

        index = _index_of(folders, request.path)
        if index is None:
            return True
        return self._host.update_folders(index, 1)

    def _is_applied(self, request: FolderRequest) -> bool:
        present = _index_of(self._host.folders(), request.path) is not None
        return present if request.op == FolderOperation.ADD else not present

    def _is_acknowledged(self, request: FolderRequest, event: FolderChangeEvent) -> bool:
        changed = event.added if request.op == FolderOperation.ADD else event.removed
        if _index_of(changed, request.path) is not None:
            return True
        return self._is_applied(request)


def _index_of(folders: list[WorkspaceFolder], path: str) -> int | None:
    for index, folder in enumerate(folders):
        if normalize_folder_path(folder.path) == path:
            return index
    return None


def _mark_retrieved(future: asyncio.Future[None]) -> None:
    # Callers that gave up before the outcome arrived would otherwise leave
    # an unretrieved exception behind.
    if not future.cancelled():
        future.exception()
