"""cinotes data models: Pydantic v2, frozen (immutable)."""

from cinotes.models.build import BuildContext, BuildResult, ScmKind
from cinotes.models.sync import (
    TERMINAL_STATES,
    VALID_SYNC_TRANSITIONS,
    SyncResult,
    SyncState,
)

__all__ = [
    # build
    "BuildContext",
    "BuildResult",
    "ScmKind",
    # sync
    "SyncResult",
    "SyncState",
    "TERMINAL_STATES",
    "VALID_SYNC_TRANSITIONS",
]
