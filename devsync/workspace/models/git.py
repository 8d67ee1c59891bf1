"""Git state derived from a project directory."""

from __future__ import annotations

from pydantic import BaseModel


class UpstreamBranch(BaseModel):
    """Upstream tracking info of a checked-out project.

    ``remote_url`` is ``None`` when the remote has no URL configured yet;
    such a project cannot be written to the devfile.
    """

    remote: str
    branch: str
    remote_url: str | None = None
