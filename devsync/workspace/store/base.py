"""Devfile store interface.

The store is the only place the devfile is read from and written to.  It
offers whole-document ``get`` / ``update`` and no partial writes; callers
that modify the devfile must go through ``DevfileUpdater`` so that two
read-modify-write cycles never interleave.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from devsync.workspace.models.devfile import Devfile


@runtime_checkable
class DevfileStore(Protocol):
    """Async protocol for reading and writing the workspace devfile."""

    async def get(self) -> Devfile:
        """Read the current devfile."""
        ...

    async def update(self, devfile: Devfile) -> None:
        """Replace the devfile with ``devfile``."""
        ...
