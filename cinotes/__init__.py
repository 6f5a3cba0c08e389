"""cinotes: CI build-outcome records published to shared git notes.

Each build appends a small JSON record (timestamp, schema version, agent,
build URL and, once known, status) to ``refs/notes/devtools/ci`` on the
``origin`` remote, so any clone can tell whether a commit was built and
where to find the log, without access to the CI server.
"""

__version__ = "0.3.0"
__description__ = "Record CI build outcomes into shared git notes"

from cinotes.core.engine import NotesSyncEngine
from cinotes.core.lifecycle import BuildLifecycleHook
from cinotes.core.message import BuildRecord

__all__ = ["BuildLifecycleHook", "BuildRecord", "NotesSyncEngine", "__version__"]
