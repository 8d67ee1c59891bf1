"""Git helper: thin async wrappers around the git CLI.

Reconciliation callers treat a failing git command as "no data"; the import
commands treat it as a hard failure.  Both behaviours are built on
``exec_git``, which always raises ``GitCommandError`` on non-zero exit.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path

from anyio import Path as AsyncPath

from devsync.workspace.models.git import UpstreamBranch
from devsync.workspace.process import CommandError, execute

logger = logging.getLogger(__name__)

GIT_FOLDER_MARKER = ".git/"
"""Marker separating a project root from its git metadata files."""

_BRANCH_OR_REMOTE = r"[^\s/]+"
_UPSTREAM_RE = re.compile(rf"({_BRANCH_OR_REMOTE})/({_BRANCH_OR_REMOTE})")

# git@github.com:owner/repo.git, user@host.example:path
_SECURE_URI_RE = re.compile(r"^(?P<user>[\w.+-]+)@(?P<host>[\w.-]+):")

GITHUB_HOST = "github.com"


class GitCommandError(CommandError):
    """A git subprocess exited with a non-zero status."""


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


async def exec_git(directory: str | Path, *args: str) -> str:
    """Run ``git <args>`` in ``directory`` and return its stripped stdout."""
    return await execute("git", args, cwd=directory, error_cls=GitCommandError)


async def init_repository(directory: str | Path) -> None:
    await exec_git(directory, "init")


async def set_config(directory: str | Path, key: str, value: str) -> None:
    await exec_git(directory, "config", key, value)


async def add_remote(directory: str | Path, name: str, url: str, *, fetch: bool = False) -> None:
    args = ["remote", "add"]
    if fetch:
        args.append("-f")
    await exec_git(directory, *args, name, url)


async def checkout(directory: str | Path, revision: str) -> None:
    await exec_git(directory, "checkout", revision)


async def get_remote_url(remote: str, directory: str | Path) -> str | None:
    """Return ``remote.<remote>.url`` or ``None`` when it is not configured."""
    try:
        url = await exec_git(directory, "config", "--get", f"remote.{remote}.url")
    except GitCommandError as exc:
        logger.debug("No URL for remote %s in %s: %s", remote, directory, exc)
        return None
    return url or None


async def sparse_checkout(
    project_path: str | Path,
    repository_uri: str,
    sparse_dirs: Sequence[str],
    commit_reference: str,
    *,
    remote: str = "origin",
) -> None:
    """Fetch only ``sparse_dirs`` of ``repository_uri`` into ``project_path``.

    ``project_path`` must exist.  ``commit_reference`` is a branch, tag or
    commit id of the remote repository (``HEAD`` for the default branch).
    """
    await init_repository(project_path)
    await set_config(project_path, "core.sparsecheckout", "true")

    info_dir = AsyncPath(project_path) / ".git" / "info"
    await info_dir.mkdir(parents=True, exist_ok=True)
    await (info_dir / "sparse-checkout").write_text("\n".join(sparse_dirs) + "\n", encoding="utf-8")

    await add_remote(project_path, remote, repository_uri, fetch=True)
    await exec_git(project_path, "pull", remote, commit_reference)


# ---------------------------------------------------------------------------
# Upstream detection
# ---------------------------------------------------------------------------


async def get_upstream_branch(directory: str | Path) -> UpstreamBranch | None:
    """Detect the upstream tracking branch of the project in ``directory``.

    Returns ``None`` when git fails (not a repository, no upstream, ...) or
    the output cannot be parsed.  A parsed branch whose remote has no URL is
    still returned, with ``remote_url=None``.
    """
    try:
        ref = await exec_git(directory, "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{upstream}")
    except GitCommandError as exc:
        logger.debug("No upstream branch for %s: %s", directory, exc)
        return None

    if not ref:
        return None

    upstream = parse_upstream_branch(ref)
    if upstream is not None:
        upstream.remote_url = await get_remote_url(upstream.remote, directory)
    return upstream


def parse_upstream_branch(output: str) -> UpstreamBranch | None:
    """Parse ``<remote>/<branch>`` out of git output."""
    match = _UPSTREAM_RE.search(output)
    if match is None:
        return None
    return UpstreamBranch(remote=match.group(1), branch=match.group(2))


# ---------------------------------------------------------------------------
# Paths and URIs
# ---------------------------------------------------------------------------


def get_git_root_folder(path: str) -> str:
    """Return everything before the last ``.git/`` of a metadata file path.

    ``/projects/app/.git/HEAD`` -> ``/projects/app/``.  Paths without the
    marker yield an empty string.
    """
    index = path.rfind(GIT_FOLDER_MARKER)
    if index < 0:
        return ""
    return path[:index]


def is_secure_git_uri(uri: str) -> bool:
    """``True`` for SSH style remotes such as ``git@github.com:owner/repo.git``."""
    return _SECURE_URI_RE.match(uri) is not None


def is_secure_github_uri(uri: str) -> bool:
    match = _SECURE_URI_RE.match(uri)
    return match is not None and match.group("host") == GITHUB_HOST


def ssh_target(uri: str) -> str | None:
    """Return ``user@host`` of an SSH style remote, ``None`` otherwise."""
    match = _SECURE_URI_RE.match(uri)
    if match is None:
        return None
    return f"{match.group('user')}@{match.group('host')}"
