"""Shared test fixtures for cinotes."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections import Counter
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from cinotes.config import NotesConfig
from cinotes.models.build import BuildContext, BuildResult, ScmKind
from cinotes.vcs import VcsError

REMOTE_URI = "http://git.host/remote/"
BASE_URL = "http://some.fake.host/jenkins/"
JOB_URL = "job/somejob/12/"

requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git binary not installed"
)


class RecordingLogSink:
    """LogSink that keeps every line for assertions."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.errors: list[str] = []

    def println(self, line: str) -> None:
        self.lines.append(line)

    def error(self, line: str) -> None:
        self.errors.append(line)

    @property
    def text(self) -> str:
        return "\n".join(self.lines + self.errors)


class FakeVcsClient:
    """In-memory VcsClient recording every call in order.

    Parameters
    ----------
    remote_has_ref:
        Whether a fetch brings the notes ref into the local repository.
    fail:
        Operation name to the 1-based call numbers that raise ``VcsError``.
        ``None`` instead of a set fails every call of that operation.
    """

    def __init__(
        self,
        *,
        remote_has_ref: bool = True,
        fail: dict[str, set[int] | None] | None = None,
    ) -> None:
        self.remote_has_ref = remote_has_ref
        self.fail = fail or {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.local_refs: set[str] = set()
        self.remote_refs: set[str] = set()
        self.notes: dict[str, list[str]] = {}
        self._counts: Counter[str] = Counter()

    def _record(self, op: str, *args: Any) -> None:
        self.calls.append((op, args))
        self._counts[op] += 1
        if op in self.fail:
            which = self.fail[op]
            if which is None or self._counts[op] in which:
                raise VcsError(f"{op} failed")

    @property
    def ops(self) -> list[str]:
        return [op for op, _ in self.calls]

    def fetch(self, remote_uri: str, refspecs: Sequence[str]) -> None:
        self._record("fetch", remote_uri, list(refspecs))
        for spec in refspecs:
            src, dst = spec.lstrip("+").split(":", 1)
            if self.remote_has_ref or src in self.remote_refs:
                self.local_refs.add(dst)

    def ref_exists(self, ref: str) -> bool:
        self._record("ref_exists", ref)
        return ref in self.local_refs

    def create_ref(self, ref: str) -> None:
        self._record("create_ref", ref)
        self.local_refs.add(ref)

    def delete_ref(self, ref: str) -> None:
        self._record("delete_ref", ref)
        self.local_refs.discard(ref)

    def push(self, remote_uri: str, ref: str) -> None:
        self._record("push", remote_uri, ref)
        self.remote_refs.add(ref)

    def append_note(self, text: str, ref: str) -> None:
        self._record("append_note", text, ref)
        self.notes.setdefault(ref, []).append(text)


@pytest.fixture
def log_sink() -> RecordingLogSink:
    return RecordingLogSink()


@pytest.fixture
def make_client() -> Callable[..., FakeVcsClient]:
    """Factory fixture: build a FakeVcsClient with the given behaviour."""

    def _factory(**kwargs: Any) -> FakeVcsClient:
        return FakeVcsClient(**kwargs)

    return _factory


@pytest.fixture
def notes_config() -> NotesConfig:
    """Config with defaults only, independent of the caller's environment."""
    return NotesConfig(_env_file=None, agent="test-agent")


@pytest.fixture
def make_context() -> Callable[..., BuildContext]:
    """Factory fixture: build a git BuildContext with an origin remote."""

    def _factory(**overrides: Any) -> BuildContext:
        defaults: dict[str, Any] = {
            "result": BuildResult.SUCCESS,
            "url": JOB_URL,
            "root_url": BASE_URL,
            "scm_kind": ScmKind.GIT,
            "remotes": {"origin": [REMOTE_URI]},
        }
        defaults.update(overrides)
        return BuildContext(**defaults)

    return _factory


@pytest.fixture
def git_context(make_context: Callable[..., BuildContext]) -> BuildContext:
    return make_context()


# ---------------------------------------------------------------------------
# Real git repositories
# ---------------------------------------------------------------------------


def run_git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout


@pytest.fixture
def git_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate git from the user's configuration and set an identity."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.delenv("GIT_DIR", raising=False)
    monkeypatch.delenv("GIT_WORK_TREE", raising=False)
    for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(var, "CI Agent")
    for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(var, "ci@example.com")
    for key in [k for k in os.environ if k.startswith("CINOTES_")]:
        monkeypatch.delenv(key)


@pytest.fixture
def bare_remote(tmp_path: Path, git_env: None) -> Path:
    """A bare repository with one commit, standing in for origin."""
    seed = tmp_path / "seed"
    seed.mkdir()
    run_git(seed, "init", "-q")
    run_git(seed, "commit", "-q", "--allow-empty", "-m", "initial")
    remote = tmp_path / "remote.git"
    run_git(tmp_path, "clone", "-q", "--bare", str(seed), str(remote))
    return remote


@pytest.fixture
def make_clone(tmp_path: Path, bare_remote: Path) -> Callable[[str], Path]:
    """Factory fixture: clone the bare remote into a named working copy."""

    def _factory(name: str) -> Path:
        target = tmp_path / name
        run_git(tmp_path, "clone", "-q", str(bare_remote), str(target))
        return target

    return _factory


@pytest.fixture
def strip_git_identity(monkeypatch: pytest.MonkeyPatch) -> Callable[[Path], None]:
    """Return a function that leaves a clone with no usable git identity.

    Identity variables are removed and git is told not to guess one from
    the host, so notes commits fail unless cinotes supplies an identity.
    """

    def _strip(clone: Path) -> None:
        for var in (
            "GIT_AUTHOR_NAME",
            "GIT_AUTHOR_EMAIL",
            "GIT_COMMITTER_NAME",
            "GIT_COMMITTER_EMAIL",
            "EMAIL",
        ):
            monkeypatch.delenv(var, raising=False)
        run_git(clone, "config", "user.useConfigOnly", "true")

    return _strip
