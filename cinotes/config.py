"""Runtime configuration: env-driven.

Centralized config using pydantic-settings for environment variable
support. Reads from a .env file and CINOTES_* environment variables.

The remote name and notes ref used by the synchronization protocol live
here instead of being hard-coded, so a host can point the recorder at a
different remote or namespace without touching the protocol.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from cinotes import __version__

DEFAULT_REMOTE_NAME = "origin"
DEFAULT_NOTES_REF = "refs/notes/devtools/ci"
DEFAULT_AGENT = f"cinotes({__version__}) NotesSyncEngine"
DEFAULT_GIT_USER_NAME = "cinotes"
DEFAULT_GIT_USER_EMAIL = "cinotes@localhost"


class NotesConfig(BaseSettings):
    """Recorder configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export CINOTES_REMOTE_NAME=upstream
        export CINOTES_NOTES_REF=refs/notes/ci/builds
        export CINOTES_GIT_TIMEOUT_SECONDS=30
        export CINOTES_GIT_USER_EMAIL=ci@example.com

    Or via .env file::

        CINOTES_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CINOTES_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Synchronization target
    remote_name: str = DEFAULT_REMOTE_NAME
    notes_ref: str = DEFAULT_NOTES_REF

    # Record contents
    agent: str = DEFAULT_AGENT
    record_version: int = 0

    # Git CLI client
    git_binary: str = "git"
    git_timeout_seconds: float = 120.0
    # Author and committer of notes commits; git's own config when unset
    git_user_name: str | None = None
    git_user_email: str | None = None

    # Observability
    log_level: str = "INFO"

    @property
    def fetch_refspec(self) -> str:
        """Forced refspec mirroring the remote notes ref onto the local one."""
        return f"+{self.notes_ref}:{self.notes_ref}"

    @property
    def git_identity(self) -> tuple[str, str] | None:
        """``(name, email)`` for notes commits, or None to defer to git."""
        if not self.git_user_name and not self.git_user_email:
            return None
        return (
            self.git_user_name or DEFAULT_GIT_USER_NAME,
            self.git_user_email or DEFAULT_GIT_USER_EMAIL,
        )

