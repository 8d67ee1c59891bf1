"""SSH access checks and the SSH key service interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from loguru import logger

from devsync.workspace.git import ssh_target
from devsync.workspace.models.enums import MessageLevel
from devsync.workspace.process import CommandError, execute
from devsync.workspace.prompts import Prompter

SSH_CONNECTION_FAILED = 255
"""``ssh`` exit status for connection or authentication failures."""


class SshLoginError(CommandError):
    """``ssh -T`` could not log in to the remote host."""


@runtime_checkable
class SshKeyService(Protocol):
    async def add_key_to_provider(self, uri: str) -> None:
        """Upload the workspace public key to the git provider of ``uri``."""
        ...

    async def configure_ssh(self, github: bool) -> None:
        """Let the user generate or select an SSH key."""
        ...


class UnavailableSshKeyService:
    """Used when no SSH key service is configured."""

    def __init__(self, prompter: Prompter) -> None:
        self._prompter = prompter

    async def add_key_to_provider(self, uri: str) -> None:
        await self._prompter.show(MessageLevel.ERROR, "Unable to find SSH key service")

    async def configure_ssh(self, github: bool) -> None:
        await self._prompter.show(MessageLevel.ERROR, "Unable to find SSH key service")


async def verify_ssh_login(uri: str) -> None:
    """Check that the workspace key is accepted by the host of ``uri``.

    Providers such as GitHub answer ``ssh -T`` with a greeting and a
    non-zero exit status even on success; only ``255`` means the login
    itself failed.  Raises ``SshLoginError`` in that case.
    """
    target = ssh_target(uri)
    if target is None:
        return

    args = ["-T", "-o", "BatchMode=yes", "-o", "StrictHostKeyChecking=accept-new", target]
    try:
        await execute("ssh", args, error_cls=SshLoginError)
    except SshLoginError as exc:
        if exc.returncode == SSH_CONNECTION_FAILED:
            raise
        logger.debug("SSH login to {} succeeded (exit {})", target, exc.returncode)
