"""Service configuration loaded from DEVSYNC_* environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROJECTS_ROOT = "/projects"


class DevsyncSettings(BaseSettings):
    """devsync settings.

    All fields are read from environment variables with the ``DEVSYNC_`` prefix.
    For example, ``DEVSYNC_LOG_LEVEL=DEBUG`` maps to ``log_level``.

    The projects root additionally honours ``CHE_PROJECTS_ROOT``, the variable
    set by the workspace runtime, and falls back to ``/projects``.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEVSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_file: str | None = None
    """Optional file sink (rotated) mirroring everything written to stderr."""

    # -- Workspace layout ------------------------------------------------------
    projects_root: str = Field(
        default=DEFAULT_PROJECTS_ROOT,
        validation_alias=AliasChoices("DEVSYNC_PROJECTS_ROOT", "CHE_PROJECTS_ROOT"),
    )
    """Directory that holds every project of the workspace."""

    devfile_path: str = "devfile.yaml"
    """Devfile read and written by the local devfile store."""

    workspace_file: str | None = None
    """``.code-workspace`` file holding the open folders.

    Defaults to ``{projects_root}/.devsync/workspace.code-workspace``.
    """

    # -- Folder queue ----------------------------------------------------------
    folder_timeout: float = 3.0
    """Seconds to wait for the host to acknowledge a folder change."""

    # -- Imports ---------------------------------------------------------------
    ca_bundle: str | None = None
    """PEM bundle used to verify HTTPS downloads of zip projects."""

    trust_all: bool = False
    """Skip the trust confirmation for every remote."""

    interactive: bool = True
    """Ask questions on the console.  When off, prompts resolve to defaults."""

    # -- Helpers ---------------------------------------------------------------

    def resolve_workspace_file(self) -> Path:
        """Return the configured workspace file or the default location."""
        if self.workspace_file:
            return Path(self.workspace_file)
        return Path(self.projects_root) / ".devsync" / "workspace.code-workspace"


def get_settings() -> DevsyncSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


def _get_settings_cached() -> DevsyncSettings:
    """Inner function wrapped by lru_cache (allows type-safe cache_clear)."""
    return DevsyncSettings()


# Apply lru_cache at runtime so the function is only called once.
from functools import lru_cache  # noqa: E402

_get_settings_cached = lru_cache(maxsize=1)(_get_settings_cached)
