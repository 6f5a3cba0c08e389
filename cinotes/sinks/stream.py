"""Concrete log sinks: a text stream and a ``logging.Logger``."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

logger = logging.getLogger(__name__)

ERROR_PREFIX = "ERROR: "


class StreamLogSink:
    """Writes lines to a text stream (the build console).

    Parameters
    ----------
    stream:
        Target stream.  Defaults to ``sys.stderr``.
    prefix:
        Prepended to every line, e.g. ``"[cinotes] "``.
    """

    def __init__(self, stream: TextIO | None = None, *, prefix: str = "") -> None:
        self._stream = stream if stream is not None else sys.stderr
        self._prefix = prefix

    def println(self, line: str) -> None:
        self._write(f"{self._prefix}{line}")

    def error(self, line: str) -> None:
        self._write(f"{ERROR_PREFIX}{self._prefix}{line}")

    def _write(self, text: str) -> None:
        try:
            self._stream.write(text.rstrip("\n") + "\n")
            self._stream.flush()
        except (OSError, ValueError) as exc:
            # Closed or broken console stream.
            logger.warning("StreamLogSink: dropped line (%s): %s", exc, text)


class LoggingLogSink:
    """Routes sink lines to a ``logging.Logger``."""

    def __init__(self, target: logging.Logger | None = None) -> None:
        self._logger = target or logging.getLogger("cinotes.build")

    def println(self, line: str) -> None:
        self._logger.info("%s", line)

    def error(self, line: str) -> None:
        self._logger.error("%s", line)
