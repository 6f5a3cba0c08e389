"""Tests for recorder config: env-driven settings."""

from __future__ import annotations

import os
import subprocess
import sys

import pytest
from pydantic import ValidationError

from cinotes.config import DEFAULT_AGENT, DEFAULT_GIT_USER_NAME, NotesConfig


class TestNotesConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("CINOTES_REMOTE_NAME", raising=False)
        monkeypatch.delenv("CINOTES_NOTES_REF", raising=False)
        config = NotesConfig(_env_file=None)
        assert config.remote_name == "origin"
        assert config.notes_ref == "refs/notes/devtools/ci"
        assert config.record_version == 0
        assert config.git_binary == "git"

    def test_default_agent_names_recorder(self):
        assert DEFAULT_AGENT.startswith("cinotes(")

    def test_fetch_refspec_is_forced(self):
        config = NotesConfig(_env_file=None, notes_ref="refs/notes/x")
        assert config.fetch_refspec == "+refs/notes/x:refs/notes/x"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CINOTES_REMOTE_NAME", "upstream")
        monkeypatch.setenv("CINOTES_GIT_TIMEOUT_SECONDS", "7.5")
        config = NotesConfig(_env_file=None)
        assert config.remote_name == "upstream"
        assert config.git_timeout_seconds == 7.5

    def test_env_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("CINOTES_NOTES_REF", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("CINOTES_NOTES_REF=refs/notes/ci/builds\n")
        config = NotesConfig(_env_file=env_file)
        assert config.notes_ref == "refs/notes/ci/builds"

    def test_no_identity_by_default(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("CINOTES_GIT_USER_NAME", raising=False)
        monkeypatch.delenv("CINOTES_GIT_USER_EMAIL", raising=False)
        assert NotesConfig(_env_file=None).git_identity is None

    def test_identity_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CINOTES_GIT_USER_NAME", "Build Bot")
        monkeypatch.setenv("CINOTES_GIT_USER_EMAIL", "bot@ci.example")
        config = NotesConfig(_env_file=None)
        assert config.git_identity == ("Build Bot", "bot@ci.example")

    def test_partial_identity_is_completed(self):
        config = NotesConfig(_env_file=None, git_user_email="bot@ci.example")
        assert config.git_identity == (DEFAULT_GIT_USER_NAME, "bot@ci.example")


class TestImportTime:
    def test_malformed_env_fails_at_use_not_import(
        self, monkeypatch: pytest.MonkeyPatch
    ):
        env = {**os.environ, "CINOTES_RECORD_VERSION": "abc"}
        imported = subprocess.run(
            [sys.executable, "-c", "import cinotes"],
            env=env,
            capture_output=True,
            text=True,
            check=False,
        )
        assert imported.returncode == 0, imported.stderr

        monkeypatch.setenv("CINOTES_RECORD_VERSION", "abc")
        with pytest.raises(ValidationError):
            NotesConfig(_env_file=None)
