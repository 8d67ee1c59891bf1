"""Project import commands.

One command per devfile project that is missing on disk.  Every command
walks the same state machine::

    trust_pending -> cloning | sparse_checkout | archive_import -> done
                         \\-> ssh_recovery -/   (SSH remotes only)

and ends in ``skipped`` when the user declines, ``failed`` on any other
error.  ``execute`` returns the absolute project directory on success.

Commands are built once per bootstrap pass by ``build_import_command``.
"""

from __future__ import annotations

import shutil
import ssl
import tempfile
import zipfile
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

import anyio
import httpx
from anyio import Path as AsyncPath
from anyio import to_thread
from loguru import logger

from devsync.workspace.git import (
    GitCommandError,
    add_remote,
    checkout,
    exec_git,
    is_secure_git_uri,
    is_secure_github_uri,
    sparse_checkout,
)
from devsync.workspace.managers.projects import DEFAULT_REMOTE
from devsync.workspace.models.enums import ImportState, MessageLevel, ProjectSourceType
from devsync.workspace.process import CommandError
from devsync.workspace.ssh import verify_ssh_login

if TYPE_CHECKING:
    from devsync.workspace.models.devfile import DevfileProject, GitSource
    from devsync.workspace.prompts import Prompter
    from devsync.workspace.ssh import SshKeyService

# -- Dialog actions ------------------------------------------------------------

TRUST = "Yes, I trust"
DISTRUST = "No, I don't trust"
SKIP = "Skip"
RETRY = "Retry"
TRY_AGAIN = "Try Again"
ADD_KEY_TO_GITHUB = "Add Key To GitHub"
ADD_KEY_TO_PROVIDER = "Add Key To Provider"
CONFIGURE_SSH = "Configure SSH"

DEFAULT_SPARSE_REFERENCE = "HEAD"


class ImportSkipped(RuntimeError):
    """The user chose not to import a project."""


class UnsupportedProjectSource(ValueError):
    """A devfile project declares no source devsync can import."""


@dataclass
class ImportContext:
    """Collaborators and per-run state shared by the commands of one pass."""

    prompter: Prompter
    ssh_service: SshKeyService
    ca_bundle: str | None = None
    trust_all: bool = False
    trusted_uris: set[str] = field(default_factory=set)
    transport: httpx.AsyncBaseTransport | None = None
    """Transport for archive downloads; ``None`` means the network."""
    verify_ssh: Callable[[str], Awaitable[None]] = verify_ssh_login


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class ImportCommand:
    """Imports a single project into ``projects_root``."""

    source_type: ProjectSourceType

    def __init__(self, project: DevfileProject, projects_root: str, context: ImportContext) -> None:
        self.project = project
        self.projects_root = projects_root
        self.project_path = str(Path(projects_root) / project.identity)
        self.state = ImportState.TRUST_PENDING
        self._context = context

    @property
    def name(self) -> str:
        return self.project.name

    @property
    def location(self) -> str:
        """URI the project is imported from."""
        raise NotImplementedError

    async def execute(self) -> str:
        try:
            await self._confirm_trust()
            await self._import()
        except ImportSkipped:
            self.state = ImportState.SKIPPED
            raise
        except Exception:
            self.state = ImportState.FAILED
            raise
        self.state = ImportState.DONE
        return self.project_path

    async def _import(self) -> None:
        raise NotImplementedError

    # -- Trust -----------------------------------------------------------------

    async def _confirm_trust(self) -> None:
        context = self._context
        uri = self.location
        if context.trust_all or uri in context.trusted_uris:
            return

        prompter = context.prompter
        while True:
            answer = await prompter.show(
                MessageLevel.WARNING,
                f"Do you trust the authors of {uri}?",
                TRUST,
                DISTRUST,
            )
            if answer == TRUST:
                context.trusted_uris.add(uri)
                return

            answer = await prompter.show(
                MessageLevel.WARNING,
                f"Project {self.name} will not be imported from an untrusted source.",
                SKIP,
                RETRY,
            )
            if answer != RETRY:
                logger.info("Import of {} skipped: {} is not trusted", self.name, uri)
                raise ImportSkipped(f"{uri} is not trusted")

    async def _notify(self, level: MessageLevel, message: str) -> None:
        await self._context.prompter.show(level, message)


# ---------------------------------------------------------------------------
# Git
# ---------------------------------------------------------------------------


class GitCloneCommand(ImportCommand):
    """Full ``git clone`` of the project's default remote."""

    def __init__(self, project: DevfileProject, projects_root: str, context: ImportContext) -> None:
        super().__init__(project, projects_root, context)
        source = project.git_source
        if source is None or not source.remotes:
            raise UnsupportedProjectSource(f'Project "{project.name}" declares no git remote.')
        self.source: GitSource = source
        self.source_type = ProjectSourceType.GIT if project.git is not None else ProjectSourceType.GITHUB
        self.remote = source.default_remote or DEFAULT_REMOTE
        if self.remote not in source.remotes:
            raise UnsupportedProjectSource(f'Project "{project.name}" has no remote named "{self.remote}".')

    @property
    def location(self) -> str:
        return self.source.remotes[self.remote]

    async def _import(self) -> None:
        await self._ensure_ssh_access()
        await self._clone()

    async def _clone(self) -> None:
        self.state = ImportState.CLONING
        uri = self.location
        logger.info("Cloning {} into {}", uri, self.project_path)
        await exec_git(self.projects_root, "clone", "-o", self.remote, uri, self.project_path)

        for name, url in self.source.remotes.items():
            if name != self.remote:
                await add_remote(self.project_path, name, url)

        revision = self.source.revision
        if not revision:
            await self._notify(MessageLevel.INFO, f"Project {uri} cloned to {self.project_path}.")
            return

        try:
            await checkout(self.project_path, revision)
        except GitCommandError as exc:
            logger.warning("Couldn't check out {} of {}: {}", revision, self.project_path, exc)
            await self._notify(
                MessageLevel.ERROR,
                f"Project {uri} cloned to {self.project_path} but checkout of {revision} failed with {exc}.",
            )
            return
        await self._notify(
            MessageLevel.INFO,
            f"Project {uri} cloned to {self.project_path} and checked out {revision}.",
        )

    # -- SSH recovery ----------------------------------------------------------

    async def _ensure_ssh_access(self) -> None:
        uri = self.location
        if not is_secure_git_uri(uri):
            return

        context = self._context
        github = is_secure_github_uri(uri)
        add_key = ADD_KEY_TO_GITHUB if github else ADD_KEY_TO_PROVIDER
        while True:
            try:
                await context.verify_ssh(uri)
            except CommandError as exc:
                last_error = exc
            else:
                return

            self.state = ImportState.SSH_RECOVERY
            logger.warning("SSH login for {} failed: {}", uri, last_error)
            answer = await context.prompter.show(
                MessageLevel.ERROR,
                f"Failed to connect to {uri} over SSH: {last_error}",
                RETRY,
                add_key,
                CONFIGURE_SSH,
            )
            if answer == add_key:
                await context.ssh_service.add_key_to_provider(uri)
            elif answer == CONFIGURE_SSH:
                await context.ssh_service.configure_ssh(github)
            elif answer is None:
                answer = await context.prompter.show(
                    MessageLevel.WARNING,
                    f"Project {self.name} needs SSH access to {uri}.",
                    SKIP,
                    TRY_AGAIN,
                )
                if answer != TRY_AGAIN:
                    raise ImportSkipped(f"No SSH access to {uri}") from last_error


class SparseCheckoutCommand(GitCloneCommand):
    """Fetches only the ``sparseCheckoutDirs`` of the repository."""

    async def _clone(self) -> None:
        self.state = ImportState.SPARSE_CHECKOUT
        uri = self.location
        sparse_dirs = self.project.sparse_checkout_dirs or []
        reference = self.source.revision or DEFAULT_SPARSE_REFERENCE

        logger.info("Sparse checkout of {} ({}) into {}", uri, ", ".join(sparse_dirs), self.project_path)
        await AsyncPath(self.project_path).mkdir(parents=True, exist_ok=True)
        await sparse_checkout(self.project_path, uri, sparse_dirs, reference, remote=self.remote)
        await self._notify(
            MessageLevel.INFO,
            f"Sources by template {', '.join(sparse_dirs)} of {uri} were cloned to {self.project_path}.",
        )


# ---------------------------------------------------------------------------
# Archive
# ---------------------------------------------------------------------------


class ArchiveImportCommand(ImportCommand):
    """Downloads a zip archive and extracts it into the project directory."""

    source_type = ProjectSourceType.ZIP

    def __init__(self, project: DevfileProject, projects_root: str, context: ImportContext) -> None:
        super().__init__(project, projects_root, context)
        if project.zip is None or not project.zip.location:
            raise UnsupportedProjectSource(f'Project "{project.name}" declares no archive location.')
        self._location = project.zip.location

    @property
    def location(self) -> str:
        return self._location

    async def _import(self) -> None:
        self.state = ImportState.ARCHIVE_IMPORT
        logger.info("Importing {} into {}", self.location, self.project_path)

        tmp_dir = Path(await to_thread.run_sync(partial(tempfile.mkdtemp, prefix="devsync-")))
        archive = tmp_dir / f"{self.project.name}.zip"
        try:
            await self._download(archive)
            await to_thread.run_sync(partial(_extract, archive, Path(self.project_path)))
        finally:
            await to_thread.run_sync(partial(shutil.rmtree, tmp_dir, ignore_errors=True))

        await self._notify(MessageLevel.INFO, f"Project {self.location} imported to {self.project_path}.")

    async def _download(self, target: Path) -> None:
        ca_bundle = self._context.ca_bundle
        verify: ssl.SSLContext | bool = ssl.create_default_context(cafile=ca_bundle) if ca_bundle else True
        async with (
            httpx.AsyncClient(verify=verify, transport=self._context.transport, follow_redirects=True) as client,
            client.stream("GET", self.location) as response,
        ):
            response.raise_for_status()
            async with await anyio.open_file(target, "wb") as f:
                async for chunk in response.aiter_bytes():
                    await f.write(chunk)


def _extract(archive: Path, destination: Path) -> None:
    destination.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive) as zf:
        zf.extractall(destination)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_import_command(project: DevfileProject, projects_root: str, context: ImportContext) -> ImportCommand:
    """Pick the command for ``project``.  Raises ``UnsupportedProjectSource``."""
    match project.source_type:
        case ProjectSourceType.GIT | ProjectSourceType.GITHUB:
            if project.sparse_checkout_dirs:
                return SparseCheckoutCommand(project, projects_root, context)
            return GitCloneCommand(project, projects_root, context)
        case ProjectSourceType.ZIP:
            return ArchiveImportCommand(project, projects_root, context)
        case _:
            raise UnsupportedProjectSource(f'Project "{project.name}" has no supported source.')
