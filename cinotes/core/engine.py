"""Notes-ref synchronization protocol.

One call appends one ``BuildRecord`` to the shared notes ref on the
configured remote.  The remote is the source of truth; the local ref is a
disposable cache that is re-fetched on every call.

Protocol::

    fetch  +<ref>:<ref>          failure is benign (ref may not exist yet)
    if <ref> missing locally:
        create <ref>
        push <ref>               on failure: delete local <ref>, then fail
    append record to HEAD's note
    push <ref>

There is no distributed lock.  Concurrent publishers are arbitrated by the
remote's ordinary ref-update rules: a push that is not a fast-forward of
the remote ref is rejected, and that call fails.  Failed calls are not
retried; build notes are best-effort.

``synchronize`` returns a ``SyncResult`` describing the path taken.
``publish`` is the boundary used by build hooks: it never raises.
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Callable
from typing import TypeVar

from cinotes.config import NotesConfig
from cinotes.core.message import BuildRecord
from cinotes.core.sync_machine import SyncMachine
from cinotes.models.build import BuildContext
from cinotes.models.sync import SyncResult, SyncState
from cinotes.sinks import LoggingLogSink, LogSink
from cinotes.vcs import VcsClient, VcsError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SyncError(RuntimeError):
    """A synchronization step failed.

    Attributes
    ----------
    state:
        The state the protocol was in when the step failed.
    cause:
        The underlying ``VcsError``, if any.
    """

    def __init__(
        self, message: str, *, state: SyncState, cause: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.state = state
        self.cause = cause


class NotesSyncEngine:
    """Appends build records to the shared notes ref.

    Parameters
    ----------
    client:
        VCS client bound to the build's working copy.
    config:
        Remote name and notes ref to target.  Defaults to ``NotesConfig()``.
    """

    def __init__(self, client: VcsClient, config: NotesConfig | None = None) -> None:
        self._client = client
        self._config = config or NotesConfig()

    @property
    def notes_ref(self) -> str:
        return self._config.notes_ref

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def publish(
        self,
        record: BuildRecord,
        context: BuildContext,
        log: LogSink | None = None,
    ) -> SyncResult:
        """Run the protocol, converting every failure into log lines.

        This is the only entry point build hooks should use; it never
        raises into the host build.
        """
        sink = log if log is not None else LoggingLogSink()
        try:
            return self.synchronize(record, context, sink)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure publishing git notes")
            sink.error(f"Caught git-notes exception. {exc}")
            for line in traceback.format_exc().splitlines():
                sink.println(line)
            return SyncResult(state=SyncState.FAILED, error=str(exc))

    def precheck(self, context: BuildContext, log: LogSink) -> SyncResult | None:
        """Return a SKIPPED result when *context* has nothing to publish to.

        A build without git SCM, or without the configured remote, is a
        no-op.  Returns None when the protocol can run.
        """
        if not context.is_git:
            log.println("No Git SCM detected; not recording git notes.")
        elif context.remote_uri(self._config.remote_name) is None:
            log.println(
                f"Failed to find Git repository {self._config.remote_name!r}; "
                "not recording git notes."
            )
        else:
            return None
        machine = SyncMachine()
        machine.advance(SyncState.SKIPPED)
        return SyncResult(state=machine.state, states=machine.history)

    def synchronize(
        self,
        record: BuildRecord,
        context: BuildContext,
        log: LogSink,
    ) -> SyncResult:
        """Run the protocol once and report how far it got.

        VCS failures end the call with a FAILED result.  Only errors that
        do not come from the VCS client propagate.
        """
        skipped = self.precheck(context, log)
        if skipped is not None:
            return skipped

        remote_uri = context.remote_uri(self._config.remote_name)
        machine = SyncMachine()
        ref_created = False
        try:
            ref_created = self._run_protocol(machine, record, remote_uri, log)
        except SyncError as exc:
            machine.fail()
            log.error(f"Caught git-notes exception. {exc}")
            for line in traceback.format_exc().splitlines():
                log.println(line)
            logger.debug("git notes sync failed at %s", exc.state.value, exc_info=True)
            return SyncResult(
                state=machine.state,
                states=machine.history,
                remote_uri=remote_uri,
                error=str(exc),
                failed_at=exc.state,
            )

        logger.info("Published build record to %s on %s", self.notes_ref, remote_uri)
        return SyncResult(
            state=machine.state,
            states=machine.history,
            remote_uri=remote_uri,
            ref_created=ref_created,
        )

    # ------------------------------------------------------------------
    # Protocol steps
    # ------------------------------------------------------------------

    def _run_protocol(
        self,
        machine: SyncMachine,
        record: BuildRecord,
        remote_uri: str,
        log: LogSink,
    ) -> bool:
        """Execute fetch, ensure-ref, append and push.

        Returns True when this call created the notes ref on the remote.
        """
        ref = self.notes_ref
        client = self._client

        try:
            client.fetch(remote_uri, [self._config.fetch_refspec])
        except VcsError as exc:
            # A missing remote ref is indistinguishable from any other
            # fetch failure, so every fetch failure is treated as benign.
            log.println(
                f"Caught VcsError: {exc}. Most likely remote doesn't have "
                f"git notes reference {ref}"
            )
        machine.advance(SyncState.FETCHED)

        created = False
        if not self._step(machine, lambda: client.ref_exists(ref)):
            machine.advance(SyncState.REF_MISSING)
            self._step(machine, lambda: client.create_ref(ref))
            machine.advance(SyncState.REF_CREATED)
            self._publish_new_ref(machine, remote_uri, log)
            machine.advance(SyncState.REF_PUSHED)
            created = True
        else:
            machine.advance(SyncState.REF_PRESENT)

        self._step(machine, lambda: client.append_note(record.serialize(), ref))
        machine.advance(SyncState.APPENDED)

        self._step(machine, lambda: client.push(remote_uri, ref))
        machine.advance(SyncState.PUBLISHED)
        machine.advance(SyncState.DONE)
        return created

    def _publish_new_ref(
        self, machine: SyncMachine, remote_uri: str, log: LogSink
    ) -> None:
        """Push a freshly created ref, deleting it locally if that fails."""
        ref = self.notes_ref
        try:
            self._client.push(remote_uri, ref)
        except VcsError as exc:
            log.println(f"Failed to push {ref}, removing locally created notes refs")
            try:
                self._client.delete_ref(ref)
            except VcsError as rollback_exc:
                log.error(f"Could not remove local notes ref {ref}: {rollback_exc}")
            else:
                machine.advance(SyncState.ROLLED_BACK)
            raise SyncError(
                f"Failed to publish new notes ref {ref}: {exc}",
                state=SyncState.REF_CREATED,
                cause=exc,
            ) from exc

    @staticmethod
    def _step(machine: SyncMachine, operation: Callable[[], T]) -> T:
        """Run one VCS operation, mapping ``VcsError`` to ``SyncError``."""
        try:
            return operation()
        except VcsError as exc:
            raise SyncError(str(exc), state=machine.state, cause=exc) from exc
