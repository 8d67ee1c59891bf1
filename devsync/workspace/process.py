"""Subprocess execution for external tools (git, ssh).

Every command runs with an explicit argument vector and working directory.
Exit code 0 is success; anything else raises ``CommandError`` carrying the
captured stderr.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from pathlib import Path

from loguru import logger


class CommandError(RuntimeError):
    """A subprocess exited with a non-zero status."""

    def __init__(self, command: str, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.command = command
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f'Child process "{command}" exited with code {returncode}'
        super().__init__(detail)


async def execute(
    command: str,
    args: Sequence[str] = (),
    *,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    error_cls: type[CommandError] = CommandError,
) -> str:
    """Run ``command`` with ``args`` and return its stripped stdout.

    Raises ``error_cls`` (a ``CommandError`` subclass) on non-zero exit.
    """
    logger.debug("exec: {} {} (cwd={})", command, " ".join(args), cwd or ".")
    proc = await asyncio.create_subprocess_exec(
        command,
        *args,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    out = stdout.decode("utf-8", errors="replace")
    err = stderr.decode("utf-8", errors="replace")

    returncode = proc.returncode or 0
    if returncode != 0:
        logger.debug('Child process "{}" exited with code {}: {}', command, returncode, err.strip())
        raise error_cls(command, args, returncode, err)
    return out.strip()
