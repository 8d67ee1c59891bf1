"""Devfile data model.

Only the parts of the devfile the engine reads or writes are modelled
explicitly.  Everything else (components, commands, events, ...) is kept
as extra fields so a read-modify-write cycle never drops content it does
not understand.

Keys are camelCase on disk; the models expose snake_case attributes and
serialise back through aliases with ``Devfile.dump()``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from devsync.workspace.models.enums import ProjectSourceType

MULTI_ROOT_ATTRIBUTE = "multiRoot"
"""Devfile attribute that toggles multi-root folder management."""

_DISABLED_VALUES = frozenset({"off", "false"})


class _DevfileNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# -- Project sources ---------------------------------------------------------


class CheckoutFrom(_DevfileNode):
    remote: str | None = None
    revision: str | None = None


class GitSource(_DevfileNode):
    """Remotes and checkout target of a git (or github) project."""

    remotes: dict[str, str] = Field(default_factory=dict)
    checkout_from: CheckoutFrom | None = Field(default=None, alias="checkoutFrom")

    @property
    def default_remote(self) -> str | None:
        """Remote selected by ``checkoutFrom.remote``, else the first declared one."""
        if self.checkout_from and self.checkout_from.remote:
            return self.checkout_from.remote
        return next(iter(self.remotes), None)

    @property
    def revision(self) -> str | None:
        return self.checkout_from.revision if self.checkout_from else None


class ZipSource(_DevfileNode):
    location: str


# -- Project -----------------------------------------------------------------


class DevfileProject(_DevfileNode):
    """One project entry of the devfile."""

    name: str
    clone_path: str | None = Field(default=None, alias="clonePath")
    attributes: dict[str, Any] | None = None
    git: GitSource | None = None
    github: GitSource | None = None
    zip: ZipSource | None = None
    sparse_checkout_dirs: list[str] | None = Field(default=None, alias="sparseCheckoutDirs")

    @property
    def identity(self) -> str:
        """Key used to match the project against a directory under the projects root."""
        return self.clone_path or self.name

    @property
    def git_source(self) -> GitSource | None:
        return self.git or self.github

    @property
    def source_type(self) -> ProjectSourceType | None:
        if self.git is not None:
            return ProjectSourceType.GIT
        if self.github is not None:
            return ProjectSourceType.GITHUB
        if self.zip is not None:
            return ProjectSourceType.ZIP
        return None


# -- Devfile -----------------------------------------------------------------


class DevfileMetadata(_DevfileNode):
    name: str | None = None
    attributes: dict[str, Any] | None = None


class Devfile(_DevfileNode):
    schema_version: str | None = Field(default=None, alias="schemaVersion")
    metadata: DevfileMetadata = Field(default_factory=DevfileMetadata)
    attributes: dict[str, Any] | None = None
    projects: list[DevfileProject] = Field(default_factory=list)

    def dump(self) -> dict[str, Any]:
        """Serialise with the on-disk (camelCase) keys, omitting unset values."""
        return self.model_dump(by_alias=True, exclude_none=True)


# -- Typed attributes --------------------------------------------------------


class WorkspaceOptions(BaseModel):
    """Typed view over the loosely typed devfile attributes.

    ``multi_root`` is enabled unless the ``multiRoot`` attribute is
    explicitly ``off`` (or ``false``).  ``metadata.attributes`` wins over
    the top-level ``attributes`` block.
    """

    multi_root: bool = True

    @classmethod
    def from_devfile(cls, devfile: Devfile) -> WorkspaceOptions:
        value = None
        for attributes in (devfile.metadata.attributes, devfile.attributes):
            if attributes and MULTI_ROOT_ATTRIBUTE in attributes:
                value = attributes[MULTI_ROOT_ATTRIBUTE]
                break

        if value is None:
            return cls()
        return cls(multi_root=str(value).strip().lower() not in _DISABLED_VALUES)
