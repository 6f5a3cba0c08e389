"""Deterministic state machine for one synchronization call.

Enforces:
- Valid state transitions only (VALID_SYNC_TRANSITIONS table)
- No transition out of a terminal state
- Every transition recorded, so a result reports the exact path taken
"""

from __future__ import annotations

import logging

from cinotes.models.sync import TERMINAL_STATES, VALID_SYNC_TRANSITIONS, SyncState

logger = logging.getLogger(__name__)


class InvalidSyncTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class SyncMachine:
    """Tracks the protocol's progress through ``SyncState``.

    One instance per synchronization call; it is not reused.
    """

    def __init__(self) -> None:
        self._state = SyncState.START
        self._history: list[SyncState] = [SyncState.START]

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def history(self) -> list[SyncState]:
        """Return every state visited, in order, starting with START."""
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def advance(self, target: SyncState) -> SyncState:
        """Move to *target*, validating against the transition table."""
        allowed = VALID_SYNC_TRANSITIONS.get(self._state, set())
        if target not in allowed:
            raise InvalidSyncTransitionError(
                f"Cannot transition from {self._state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        logger.debug("sync: %s -> %s", self._state.value, target.value)
        self._state = target
        self._history.append(target)
        return target

    def fail(self) -> SyncState:
        """Enter FAILED from the current state (if not already terminal)."""
        if self._state != SyncState.FAILED:
            self.advance(SyncState.FAILED)
        return self._state
