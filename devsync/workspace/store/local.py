"""Local filesystem devfile store.

Keeps the devfile as a YAML document at a fixed path::

    {workspace}/devfile.yaml

Uses ``anyio.to_thread.run_sync`` for non-blocking file I/O.

Writes are atomic: data is written to a temporary file in the same directory,
then renamed to the target path.  This prevents corrupt reads if the process
crashes mid-write.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from functools import partial
from pathlib import Path

import yaml
from anyio import to_thread

from devsync.workspace.models.devfile import Devfile


class LocalDevfileStore:
    """Local filesystem implementation of the DevfileStore protocol."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    # -- Read ------------------------------------------------------------------

    async def get(self) -> Devfile:
        """Read the devfile.  Raises ``FileNotFoundError`` if missing."""
        raw = await to_thread.run_sync(partial(_read_file, self._path))
        data = yaml.safe_load(raw) or {}
        return Devfile.model_validate(data)

    # -- Write -----------------------------------------------------------------

    async def update(self, devfile: Devfile) -> None:
        data = yaml.safe_dump(devfile.dump(), sort_keys=False, allow_unicode=True)
        await to_thread.run_sync(partial(atomic_write, self._path, data))


# -- Sync helpers (run in thread pool) -----------------------------------------


def atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename.

    Ensures readers never see a partially-written file.  The temp file is
    created in the same directory so ``os.replace`` is atomic on POSIX.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up temp file on any failure.
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def _read_file(path: Path) -> str:
    """Read file contents.  Raises ``FileNotFoundError`` if missing."""
    return path.read_text(encoding="utf-8")
