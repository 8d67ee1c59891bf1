"""Tests for environment based settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from devsync.workspace.settings import DEFAULT_PROJECTS_ROOT, DevsyncSettings, get_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("DEVSYNC_PROJECTS_ROOT", "CHE_PROJECTS_ROOT", "DEVSYNC_LOG_LEVEL", "DEVSYNC_WORKSPACE_FILE"):
        monkeypatch.delenv(name, raising=False)
    # Keep a stray .env in the working directory out of the picture.
    monkeypatch.chdir(tmp_path)


def test_defaults() -> None:
    settings = DevsyncSettings()

    assert settings.projects_root == DEFAULT_PROJECTS_ROOT
    assert settings.log_level == "INFO"
    assert settings.folder_timeout == 3.0
    assert settings.interactive is True
    assert settings.trust_all is False


def test_prefixed_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEVSYNC_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("DEVSYNC_FOLDER_TIMEOUT", "0.5")
    monkeypatch.setenv("DEVSYNC_TRUST_ALL", "true")

    settings = DevsyncSettings()

    assert settings.log_level == "DEBUG"
    assert settings.folder_timeout == 0.5
    assert settings.trust_all is True


def test_che_projects_root_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHE_PROJECTS_ROOT", "/che/projects")
    assert DevsyncSettings().projects_root == "/che/projects"

    monkeypatch.setenv("DEVSYNC_PROJECTS_ROOT", "/devsync/projects")
    assert DevsyncSettings().projects_root == "/devsync/projects"


def test_workspace_file_defaults_under_projects_root() -> None:
    settings = DevsyncSettings(projects_root="/work")
    assert settings.resolve_workspace_file() == Path("/work/.devsync/workspace.code-workspace")

    settings = DevsyncSettings(projects_root="/work", workspace_file="/etc/devsync.code-workspace")
    assert settings.resolve_workspace_file() == Path("/etc/devsync.code-workspace")


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    monkeypatch.setenv("DEVSYNC_LOG_LEVEL", "ERROR")

    assert get_settings() is first
    assert get_settings().log_level == "INFO"
