"""Read-only view of the host CI build consumed by the recorder."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class BuildResult(str, Enum):
    """Final outcome of a build as reported by the host CI system."""

    SUCCESS = "success"
    UNSTABLE = "unstable"
    FAILURE = "failure"
    ABORTED = "aborted"


class ScmKind(str, Enum):
    """Source-control system the build's workspace was checked out with."""

    GIT = "git"
    OTHER = "other"
    NONE = "none"


class BuildContext(BaseModel):
    """Snapshot of a build handed to the lifecycle hooks.

    Every field may be absent; consumers degrade gracefully instead of
    raising.

    Attributes
    ----------
    result:
        ``None`` while the result is still unknown.
    url:
        Build URL relative to the CI root, e.g. ``"job/app/12/"``.
    root_url:
        Absolute base URL of the CI server, when configured.
    scm_kind:
        Only ``ScmKind.GIT`` workspaces are synchronized.
    remotes:
        Remote name to URI list, e.g. ``{"origin": ["git@host:repo.git"]}``.
    workspace:
        Working copy the VCS client operates on.
    """

    model_config = ConfigDict(frozen=True)

    result: BuildResult | None = None
    url: str = ""
    root_url: str | None = None
    scm_kind: ScmKind = ScmKind.NONE
    remotes: dict[str, list[str]] = {}
    workspace: Path | None = None

    @property
    def is_git(self) -> bool:
        return self.scm_kind == ScmKind.GIT

    def remote_uri(self, name: str) -> str | None:
        """Return the first URI configured for remote *name*, or None."""
        uris = self.remotes.get(name) or []
        return uris[0] if uris else None
