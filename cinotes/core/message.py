"""Build record: the structured message appended to the notes ref.

A record is a flat JSON object::

    {"agent":"cinotes(0.3.0) NotesSyncEngine","status":"success",
     "timestamp":"1700000000","url":"http://ci/job/app/12/","v":0}

``timestamp``, ``v`` and ``agent`` are set at construction.  ``url`` and
``status`` are added by the chained ``add_*`` calls and are absent from
the serialized form until then.
"""

from __future__ import annotations

import json
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from cinotes.config import DEFAULT_AGENT
from cinotes.models.build import BuildResult

if TYPE_CHECKING:
    from cinotes.sinks import LogSink

logger = logging.getLogger(__name__)

BUILD_URL_NOT_AVAILABLE = "unavailable"
DEFAULT_VERSION = 0


class RecordStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def canonical_json(obj: Any) -> str:
    """Deterministic, sorted, compact JSON on a single line."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class BuildRecord(BaseModel):
    """One build event, serialized as a single note line.

    Setters return the same instance so a record reads as one chain::

        record = BuildRecord.new().add_version(0).add_build_log_url(root, url)
    """

    model_config = ConfigDict(validate_assignment=True)

    timestamp: str = Field(frozen=True)
    v: int = DEFAULT_VERSION
    agent: str = Field(default=DEFAULT_AGENT, frozen=True)
    url: str | None = None
    status: RecordStatus | None = None

    def __setattr__(self, name: str, value: Any) -> None:
        # A field, once recorded, is never cleared.
        if value is None and getattr(self, name, None) is not None:
            raise ValueError(f"{name} cannot be unset once recorded")
        super().__setattr__(name, value)

    @classmethod
    def new(cls, agent: str | None = None, *, now: float | None = None) -> BuildRecord:
        """Create a record stamped with the current time (or *now*)."""
        seconds = int(time.time() if now is None else now)
        return cls(timestamp=f"{seconds:010d}", agent=agent or DEFAULT_AGENT)

    @classmethod
    def parse(cls, line: str) -> BuildRecord:
        """Rebuild a record from one serialized note line."""
        return cls.model_validate_json(line)

    # ------------------------------------------------------------------
    # Chained setters
    # ------------------------------------------------------------------

    def add_status(
        self, result: BuildResult | None, log: LogSink | None = None
    ) -> BuildRecord:
        """Record ``success`` or ``failure`` from the build result.

        Any result other than SUCCESS counts as a failure.  When no result
        is known yet the status stays unset and a diagnostic is written.
        """
        if result is None:
            if log is not None:
                log.error("No build result found.")
            else:
                logger.warning("No build result found; status left unset.")
        elif result == BuildResult.SUCCESS:
            self.status = RecordStatus.SUCCESS
        else:
            self.status = RecordStatus.FAILURE
        return self

    def add_build_log_url(
        self,
        root_url: str | None,
        build_url: str | None,
        log: LogSink | None = None,
    ) -> BuildRecord:
        """Record where the build log lives.

        The root URL is None when the CI server has none configured; the
        relative URL alone is recorded then.
        """
        if not build_url:
            if log is not None:
                log.println("Git notes recorder: no build URL found.")
            self.url = BUILD_URL_NOT_AVAILABLE
        elif root_url:
            self.url = root_url + build_url
        else:
            self.url = build_url
        return self

    def add_version(self, version: int) -> BuildRecord:
        self.v = version
        return self

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Fields currently set, as plain JSON values."""
        return self.model_dump(mode="json", exclude_none=True)

    def serialize(self) -> str:
        return canonical_json(self.to_dict())

    def __str__(self) -> str:
        return self.serialize()
