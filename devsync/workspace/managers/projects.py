"""Devfile project mutations.

Pure functions operating on an in-memory ``Devfile``.  They never perform
I/O; ``DevfileUpdater`` wraps them in a serialized read-modify-write cycle.

Project paths are relative to the projects root with no leading slash.  A
project located directly in the projects root has a path equal to its name.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from devsync.workspace.models.devfile import CheckoutFrom, Devfile, DevfileProject, GitSource

DEFAULT_PROJECT_NAME = "new-project"
DEFAULT_REMOTE = "origin"


def to_relative_path(path: str, projects_root: str) -> str:
    """Turn an absolute project directory into a projects-root relative path.

    ``/projects/che/`` with root ``/projects`` -> ``che``.  Paths outside the
    root only lose their leading and trailing slashes.
    """
    candidate = PurePosixPath(path)
    root = PurePosixPath(projects_root)
    if candidate.is_relative_to(root):
        candidate = candidate.relative_to(root)
    return str(candidate).strip("/") if str(candidate) != "." else ""


def find_project(devfile: Devfile, relative_path: str) -> DevfileProject | None:
    for project in devfile.projects:
        if project.identity == relative_path:
            return project
    return None


def update_or_create_git_project(
    devfile: Devfile,
    relative_path: str,
    remote_url: str,
    branch: str,
) -> DevfileProject:
    """Point the project at ``relative_path`` to ``remote_url`` / ``branch``.

    Creates the project when no entry has that identity.  For an existing
    entry the default remote URL and the checkout revision are replaced; an
    explicit ``checkoutFrom.remote`` is kept.
    """
    project = find_project(devfile, relative_path)
    if project is None:
        name = relative_path.rsplit("/", 1)[-1] or DEFAULT_PROJECT_NAME
        project = DevfileProject(
            name=name,
            clone_path=None if relative_path == name else relative_path,
            git=_new_git_source(remote_url, branch),
        )
        devfile.projects.append(project)
        return project

    source = project.git_source
    if source is None:
        project.git = _new_git_source(remote_url, branch)
        return project

    remote = source.default_remote or DEFAULT_REMOTE
    source.remotes[remote] = remote_url
    if source.checkout_from is None:
        source.checkout_from = CheckoutFrom(revision=branch)
    else:
        source.checkout_from.revision = branch
    return project


def delete_git_project(devfile: Devfile, relative_path: str) -> bool:
    """Remove the first project whose identity is ``relative_path``.

    Returns ``True`` when a project was removed.
    """
    for index, project in enumerate(devfile.projects):
        if project.identity == relative_path:
            del devfile.projects[index]
            return True
    return False


def _new_git_source(remote_url: str, branch: str) -> GitSource:
    return GitSource(
        remotes={DEFAULT_REMOTE: remote_url},
        checkout_from=CheckoutFrom(revision=branch),
    )
