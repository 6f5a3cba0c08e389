"""Log sink protocol for build-console diagnostics.

The recorder never raises into the host build; its only user-visible
output is lines written to a ``LogSink``, typically the build console.
Developer diagnostics go through ``logging`` as usual.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cinotes.sinks.stream import LoggingLogSink, StreamLogSink


@runtime_checkable
class LogSink(Protocol):
    """Line-oriented text sink the recorder reports to.

    Implementations must not raise; a broken console must not fail
    the build either.
    """

    def println(self, line: str) -> None:
        """Write an informational line."""
        ...

    def error(self, line: str) -> None:
        """Write an error line."""
        ...


__all__ = ["LogSink", "LoggingLogSink", "StreamLogSink"]
