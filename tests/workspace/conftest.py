"""Fixtures for tests that drive a real git binary."""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest


def _run_git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return result.stdout.strip()


@pytest.fixture
def run_git(git_env: None) -> Callable[..., str]:
    """Run a git command synchronously, for arranging repositories."""
    return _run_git


@pytest.fixture
def git_env(git_binary: str, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate git from the user's configuration and give it an identity."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for prefix in ("GIT_AUTHOR", "GIT_COMMITTER"):
        monkeypatch.setenv(f"{prefix}_NAME", "devsync")
        monkeypatch.setenv(f"{prefix}_EMAIL", "devsync@example.com")


@pytest.fixture
def upstream_repo(run_git: Callable[..., str], tmp_path: Path) -> Path:
    """A repository on branch ``main`` with ``docs/`` and ``src/`` directories."""
    repo = tmp_path / "upstream"
    repo.mkdir()
    run_git(repo, "init", "-q")
    run_git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    (repo / "docs").mkdir()
    (repo / "docs" / "index.md").write_text("# docs\n")
    (repo / "src").mkdir()
    (repo / "src" / "app.py").write_text("print('hi')\n")
    run_git(repo, "add", ".")
    run_git(repo, "commit", "-q", "-m", "initial")
    run_git(repo, "branch", "feature")
    return repo
