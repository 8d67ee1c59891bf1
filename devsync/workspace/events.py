"""In-process signals.

A ``Signal`` fans a value out to synchronous listeners.  Listeners are
registered with ``connect`` and removed by disposing the returned
``Subscription``.  ``wait`` lets a coroutine await the next emission.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Generic, Protocol, TypeVar

from loguru import logger

T = TypeVar("T")


class Disposable(Protocol):
    def dispose(self) -> None: ...


class Subscription:
    """Handle returned by ``Signal.connect``.  Disposing twice is a no-op."""

    def __init__(self, on_dispose: Callable[[], None]) -> None:
        self._on_dispose: Callable[[], None] | None = on_dispose

    @property
    def disposed(self) -> bool:
        return self._on_dispose is None

    def dispose(self) -> None:
        if self._on_dispose is not None:
            callback, self._on_dispose = self._on_dispose, None
            callback()


class Signal(Generic[T]):
    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Callable[[T], None]] = []
        self._waiters: list[asyncio.Future[T]] = []
        self.fire_count = 0

    def connect(self, listener: Callable[[T], None]) -> Subscription:
        self._listeners.append(listener)
        return Subscription(lambda: self._disconnect(listener))

    def _disconnect(self, listener: Callable[[T], None]) -> None:
        # Identity match; the same callable may be connected more than once.
        for index, registered in enumerate(self._listeners):
            if registered is listener:
                del self._listeners[index]
                return

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def fire(self, value: T) -> None:
        """Deliver ``value`` to every listener.  A failing listener is logged and skipped."""
        self.fire_count += 1
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("Signal {}: listener failed", self.name)

        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(value)

    async def wait(self) -> T:
        """Wait for the next ``fire``."""
        waiter: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        return await waiter
