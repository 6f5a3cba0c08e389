"""Version-control client protocol consumed by the sync engine.

The engine only needs the handful of primitives below.  The concrete
implementation shipped with cinotes drives the ``git`` binary
(``cinotes.vcs.git_cli``); tests substitute an in-memory fake.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable


class VcsError(RuntimeError):
    """Raised when a version-control operation fails.

    The client does not distinguish "ref not found on the remote" from
    any other fetch failure; callers only see the message.
    """


@runtime_checkable
class VcsClient(Protocol):
    """Primitives of a working copy bound to one repository.

    Every method blocks until the underlying operation completes and
    raises ``VcsError`` on failure.
    """

    def fetch(self, remote_uri: str, refspecs: Sequence[str]) -> None:
        """Fetch *refspecs* from *remote_uri*."""
        ...

    def ref_exists(self, ref: str) -> bool:
        """Return True if *ref* exists locally."""
        ...

    def create_ref(self, ref: str) -> None:
        """Create *ref* locally as an empty notes ref."""
        ...

    def delete_ref(self, ref: str) -> None:
        """Delete the local *ref*."""
        ...

    def push(self, remote_uri: str, ref: str) -> None:
        """Push local *ref* to the same name on *remote_uri*."""
        ...

    def append_note(self, text: str, ref: str) -> None:
        """Append *text* to the note of the current commit under *ref*."""
        ...


__all__ = ["VcsClient", "VcsError"]
