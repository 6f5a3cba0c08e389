"""``cinotes start`` / ``cinotes finish``: publish build records.

Meant to be called from a CI job: ``start`` right after checkout and
``finish`` in an always-run teardown step.  Both exit 0 even when the
notes could not be published, so they never fail the build.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from cinotes.config import NotesConfig
from cinotes.core.lifecycle import BuildLifecycleHook
from cinotes.models.build import BuildResult
from cinotes.models.sync import SyncResult
from cinotes.sinks import StreamLogSink
from cinotes.vcs.git_cli import GitCliClient, context_from_workspace

console = Console()

_WORKSPACE_OPTION = typer.Option(
    Path("."),
    "--workspace",
    "-w",
    envvar="WORKSPACE",
    help="Git working copy of the build.",
)
_BUILD_URL_OPTION = typer.Option(
    "",
    "--build-url",
    "-u",
    envvar="CINOTES_BUILD_URL",
    help="Build URL relative to the CI root, e.g. job/app/12/.",
)
_ROOT_URL_OPTION = typer.Option(
    None,
    "--root-url",
    "-r",
    envvar=["CINOTES_ROOT_URL", "JENKINS_URL"],
    help="Absolute base URL of the CI server.",
)
_USER_NAME_OPTION = typer.Option(
    None,
    "--git-user-name",
    help="Author of notes commits.  Overrides CINOTES_GIT_USER_NAME.",
)
_USER_EMAIL_OPTION = typer.Option(
    None,
    "--git-user-email",
    help="Author email of notes commits.  Overrides CINOTES_GIT_USER_EMAIL.",
)


def _hook_for(
    workspace: Path, user_name: str | None, user_email: str | None
) -> tuple[BuildLifecycleHook, GitCliClient]:
    config = NotesConfig()
    overrides = {"git_user_name": user_name, "git_user_email": user_email}
    config = config.model_copy(
        update={key: value for key, value in overrides.items() if value}
    )
    client = GitCliClient.from_config(config, workspace)
    hook = BuildLifecycleHook(config, client_factory=lambda _context: client)
    return hook, client


def _report(result: SyncResult, hook: BuildLifecycleHook) -> None:
    if result.ok:
        created = " (created notes ref)" if result.ref_created else ""
        console.print(
            f"[green]Recorded build note in {hook.config.notes_ref}"
            f" on {escape(result.remote_uri or '')}{created}.[/green]"
        )
    elif result.skipped:
        console.print("[dim]Git notes recording skipped.[/dim]")
    else:
        console.print(
            f"[yellow]Build note not published:[/yellow] {escape(result.error or '')}"
        )


def start_cmd(
    workspace: Path = _WORKSPACE_OPTION,
    build_url: str = _BUILD_URL_OPTION,
    root_url: str | None = _ROOT_URL_OPTION,
    git_user_name: str | None = _USER_NAME_OPTION,
    git_user_email: str | None = _USER_EMAIL_OPTION,
) -> None:
    """Publish the "build started" record for the current commit."""
    hook, client = _hook_for(workspace, git_user_name, git_user_email)
    context = context_from_workspace(client, url=build_url, root_url=root_url)
    result = hook.on_start(context, StreamLogSink(sys.stdout))
    _report(result, hook)


def finish_cmd(
    result: BuildResult | None = typer.Option(
        None,
        "--result",
        "-s",
        case_sensitive=False,
        help="Final build result.  Omit when unknown.",
    ),
    workspace: Path = _WORKSPACE_OPTION,
    build_url: str = _BUILD_URL_OPTION,
    root_url: str | None = _ROOT_URL_OPTION,
    git_user_name: str | None = _USER_NAME_OPTION,
    git_user_email: str | None = _USER_EMAIL_OPTION,
) -> None:
    """Publish the "build finished" record, including its status."""
    hook, client = _hook_for(workspace, git_user_name, git_user_email)
    context = context_from_workspace(
        client, result=result, url=build_url, root_url=root_url
    )
    sync_result = hook.on_finish(context, StreamLogSink(sys.stdout))
    _report(sync_result, hook)
