"""Synchronization state machine models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class SyncState(str, Enum):
    """States of one notes-ref synchronization call."""

    START = "start"
    FETCHED = "fetched"
    REF_MISSING = "ref_missing"
    REF_CREATED = "ref_created"
    REF_PUSHED = "ref_pushed"
    REF_PRESENT = "ref_present"
    APPENDED = "appended"
    PUBLISHED = "published"
    DONE = "done"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"
    SKIPPED = "skipped"


TERMINAL_STATES: frozenset[SyncState] = frozenset(
    {SyncState.DONE, SyncState.FAILED, SyncState.SKIPPED}
)

# Valid state transitions: enforced structurally by SyncMachine.
# FAILED is reachable from every non-terminal state and is added below.
VALID_SYNC_TRANSITIONS: dict[SyncState, set[SyncState]] = {
    SyncState.START: {SyncState.FETCHED, SyncState.SKIPPED},
    SyncState.FETCHED: {SyncState.REF_MISSING, SyncState.REF_PRESENT},
    SyncState.REF_MISSING: {SyncState.REF_CREATED},
    SyncState.REF_CREATED: {SyncState.REF_PUSHED, SyncState.ROLLED_BACK},
    SyncState.REF_PUSHED: {SyncState.APPENDED},
    SyncState.REF_PRESENT: {SyncState.APPENDED},
    SyncState.APPENDED: {SyncState.PUBLISHED},
    SyncState.PUBLISHED: {SyncState.DONE},
    SyncState.ROLLED_BACK: set(),
    SyncState.DONE: set(),  # terminal
    SyncState.FAILED: set(),  # terminal
    SyncState.SKIPPED: set(),  # terminal
}
for _state, _targets in VALID_SYNC_TRANSITIONS.items():
    if _state not in TERMINAL_STATES:
        _targets.add(SyncState.FAILED)


class SyncResult(BaseModel):
    """Outcome of one synchronization call.

    ``ok`` is True only when the record reached the remote. A skipped
    call is not an error but did not publish anything either.
    """

    model_config = ConfigDict(frozen=True)

    state: SyncState
    states: list[SyncState] = []
    remote_uri: str | None = None
    ref_created: bool = False
    error: str | None = None
    failed_at: SyncState | None = None

    @property
    def ok(self) -> bool:
        return self.state == SyncState.DONE

    @property
    def skipped(self) -> bool:
        return self.state == SyncState.SKIPPED
