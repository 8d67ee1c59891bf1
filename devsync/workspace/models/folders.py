"""Host folder-list data models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class WorkspaceFolder(BaseModel):
    """A folder opened in the host editor."""

    path: str
    name: str | None = None


class FolderChangeEvent(BaseModel):
    """Notification delivered by the host after its folder list changed."""

    added: list[WorkspaceFolder] = Field(default_factory=list)
    removed: list[WorkspaceFolder] = Field(default_factory=list)
