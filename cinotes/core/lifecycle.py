"""BuildLifecycleHook: publishes build records at start and finish.

The host CI integration fires exactly two events per build:

- ``on_start(context)`` once the workspace is checked out, publishing a
  record with the schema version and build URL.
- ``on_finish(context)`` once the build result is final, publishing the
  same fields plus ``status``.

Each event is an independent, complete run of the synchronization
protocol; nothing is carried over from start to finish.  Neither event
ever raises into the host build.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from cinotes.config import NotesConfig
from cinotes.core.engine import NotesSyncEngine
from cinotes.core.message import BuildRecord
from cinotes.models.build import BuildContext
from cinotes.models.sync import SyncResult, SyncState
from cinotes.sinks import LoggingLogSink, LogSink
from cinotes.vcs import VcsClient
from cinotes.vcs.git_cli import GitCliClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[BuildContext], VcsClient]


class LifecycleEvent(str, Enum):
    START = "start"
    FINISH = "finish"


class HookInvocation(BaseModel):
    """Immutable record of one hook firing and its outcome."""

    model_config = ConfigDict(frozen=True)

    event: LifecycleEvent
    record: str | None = None
    result: SyncResult
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


def default_client_factory(config: NotesConfig) -> ClientFactory:
    """Return a factory creating a ``GitCliClient`` for the build workspace."""

    def _factory(context: BuildContext) -> VcsClient:
        return GitCliClient.from_config(config, context.workspace)

    return _factory


class BuildLifecycleHook:
    """Fires the notes recorder around a build.

    Parameters
    ----------
    config:
        Recorder configuration.  Defaults to ``NotesConfig()``.
    client_factory:
        Creates the VCS client for a build context.  Defaults to a
        ``GitCliClient`` over ``context.workspace``.
    log:
        Fallback log sink used when an event is fired without one.
    """

    def __init__(
        self,
        config: NotesConfig | None = None,
        *,
        client_factory: ClientFactory | None = None,
        log: LogSink | None = None,
    ) -> None:
        self.config = config or NotesConfig()
        self._client_factory = client_factory or default_client_factory(self.config)
        self._log = log or LoggingLogSink()
        self._history: list[HookInvocation] = []

    def on_start(self, context: BuildContext, log: LogSink | None = None) -> SyncResult:
        """Publish the "build started" record."""
        return self._fire(LifecycleEvent.START, context, log or self._log)

    def on_finish(self, context: BuildContext, log: LogSink | None = None) -> SyncResult:
        """Publish the "build finished" record, including its status."""
        return self._fire(LifecycleEvent.FINISH, context, log or self._log)

    @property
    def history(self) -> list[HookInvocation]:
        """Return all invocations of this hook, oldest first."""
        return list(self._history)

    def _build_record(
        self, event: LifecycleEvent, context: BuildContext, log: LogSink
    ) -> BuildRecord:
        record = (
            BuildRecord.new(self.config.agent)
            .add_version(self.config.record_version)
            .add_build_log_url(context.root_url, context.url, log)
        )
        if event == LifecycleEvent.FINISH:
            record.add_status(context.result, log)
        return record

    def _fire(
        self,
        event: LifecycleEvent,
        context: BuildContext,
        log: LogSink,
    ) -> SyncResult:
        record: BuildRecord | None = None
        try:
            engine = NotesSyncEngine(self._client_factory(context), self.config)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Could not create VCS client for %s", event.value)
            log.error(f"Could not create git client: {exc}")
            result = SyncResult(state=SyncState.FAILED, error=str(exc))
        else:
            # Skipped builds get no record and none of its diagnostics.
            result = engine.precheck(context, log)
            if result is None:
                record = self._build_record(event, context, log)
                result = engine.publish(record, context, log)

        self._history.append(
            HookInvocation(
                event=event,
                record=record.serialize() if record is not None else None,
                result=result,
            )
        )
        logger.info("Build %s hook fired: outcome=%s", event.value, result.state.value)
        return result

    def __repr__(self) -> str:
        return (
            f"BuildLifecycleHook(remote={self.config.remote_name!r}, "
            f"ref={self.config.notes_ref!r})"
        )
