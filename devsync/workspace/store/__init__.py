"""Devfile store implementations."""

from devsync.workspace.store.base import DevfileStore
from devsync.workspace.store.local import LocalDevfileStore

__all__ = ["DevfileStore", "LocalDevfileStore"]
