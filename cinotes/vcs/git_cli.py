"""``VcsClient`` backed by the ``git`` command-line binary.

All operations run ``git -C <workspace> ...`` through ``subprocess``
(never ``shell=True``) with a per-command timeout.  Any non-zero exit,
timeout or missing binary surfaces as ``VcsError`` carrying the command
and git's stderr.

Notes refs are created as a root commit over the empty tree, which is
exactly what ``git notes`` itself produces for an empty notes history.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence
from pathlib import Path

from cinotes.config import NotesConfig
from cinotes.models.build import BuildContext, BuildResult, ScmKind
from cinotes.vcs import VcsError

logger = logging.getLogger(__name__)

_EMPTY_REF_MESSAGE = "Notes ref created by cinotes"


class GitCliClient:
    """Drives the ``git`` binary inside one working copy.

    Parameters
    ----------
    workspace:
        Path to the working copy.  Defaults to the current directory.
    git_binary:
        Name or path of the git executable.
    timeout:
        Seconds before any single git command is abandoned.
    identity:
        Optional ``(name, email)`` used as author and committer for the
        commits that notes operations create.  When omitted, git's own
        configuration applies.
    """

    def __init__(
        self,
        workspace: Path | str | None = None,
        *,
        git_binary: str = "git",
        timeout: float = 120.0,
        identity: tuple[str, str] | None = None,
    ) -> None:
        self.workspace = Path(workspace) if workspace else Path.cwd()
        self._git = git_binary
        self._timeout = timeout
        self._env: dict[str, str] | None = None
        if identity is not None:
            name, email = identity
            self._env = {
                **os.environ,
                "GIT_AUTHOR_NAME": name,
                "GIT_AUTHOR_EMAIL": email,
                "GIT_COMMITTER_NAME": name,
                "GIT_COMMITTER_EMAIL": email,
            }

    @classmethod
    def from_config(
        cls, config: NotesConfig, workspace: Path | str | None = None
    ) -> GitCliClient:
        """Create a client using the binary, timeout and identity of *config*."""
        return cls(
            workspace,
            git_binary=config.git_binary,
            timeout=config.git_timeout_seconds,
            identity=config.git_identity,
        )

    def _run(
        self,
        args: list[str],
        *,
        check: bool = True,
        stdin: str | None = None,
    ) -> subprocess.CompletedProcess[str]:
        """Run ``git <args>`` in the workspace.

        Raises
        ------
        VcsError
            If the command exits non-zero and *check* is set, times out,
            or git cannot be executed at all.
        """
        cmd = [self._git, "-C", str(self.workspace), *args]
        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(
                cmd,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                env=self._env,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise VcsError(
                f"git {args[0]} timed out after {self._timeout}s"
            ) from exc
        except OSError as exc:
            raise VcsError(f"Cannot run {self._git}: {exc}") from exc

        if check and result.returncode != 0:
            raise VcsError(
                f"git {' '.join(args)} failed (exit {result.returncode}): "
                f"{result.stderr.strip()}"
            )
        return result

    # ------------------------------------------------------------------
    # VcsClient protocol
    # ------------------------------------------------------------------

    def fetch(self, remote_uri: str, refspecs: Sequence[str]) -> None:
        self._run(["fetch", remote_uri, *refspecs])

    def ref_exists(self, ref: str) -> bool:
        result = self._run(["show-ref", "--verify", "--quiet", ref], check=False)
        return result.returncode == 0

    def create_ref(self, ref: str) -> None:
        tree = self._run(["mktree"], stdin="").stdout.strip()
        commit = self._run(
            ["commit-tree", tree, "-m", _EMPTY_REF_MESSAGE]
        ).stdout.strip()
        # Empty old value: refuse to clobber a ref that appeared meanwhile.
        self._run(["update-ref", ref, commit, ""])

    def delete_ref(self, ref: str) -> None:
        self._run(["update-ref", "-d", ref])

    def push(self, remote_uri: str, ref: str) -> None:
        self._run(["push", remote_uri, f"{ref}:{ref}"])

    def append_note(self, text: str, ref: str) -> None:
        self._run(["notes", f"--ref={ref}", "append", "-m", text, "HEAD"])

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def show_note(self, ref: str, commit: str = "HEAD") -> str | None:
        """Return the note attached to *commit* under *ref*, or None."""
        result = self._run(["notes", f"--ref={ref}", "show", commit], check=False)
        if result.returncode != 0:
            return None
        return result.stdout

    def is_repository(self) -> bool:
        try:
            result = self._run(["rev-parse", "--is-inside-work-tree"], check=False)
        except VcsError:
            return False
        return result.returncode == 0 and result.stdout.strip() == "true"

    def remote_names(self) -> list[str]:
        result = self._run(["remote"], check=False)
        if result.returncode != 0:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def remote_urls(self, name: str) -> list[str]:
        """Return the URLs configured for remote *name* (empty if none)."""
        result = self._run(["remote", "get-url", "--all", name], check=False)
        if result.returncode != 0:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def __repr__(self) -> str:
        return f"GitCliClient(workspace={str(self.workspace)!r})"


def context_from_workspace(
    client: GitCliClient,
    *,
    result: BuildResult | None = None,
    url: str = "",
    root_url: str | None = None,
) -> BuildContext:
    """Build a ``BuildContext`` by probing the client's working copy.

    A directory that is not a git working copy yields ``ScmKind.NONE``
    with no remotes, which the engine treats as a no-op.
    """
    if not client.is_repository():
        logger.info("%s is not a git working copy.", client.workspace)
        return BuildContext(
            result=result,
            url=url,
            root_url=root_url,
            scm_kind=ScmKind.NONE,
            workspace=client.workspace,
        )

    remotes = {name: client.remote_urls(name) for name in client.remote_names()}
    return BuildContext(
        result=result,
        url=url,
        root_url=root_url,
        scm_kind=ScmKind.GIT,
        remotes=remotes,
        workspace=client.workspace,
    )
