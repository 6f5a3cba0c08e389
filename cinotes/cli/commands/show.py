"""``cinotes show [COMMIT]``: list the build records of a commit."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cinotes.config import NotesConfig
from cinotes.core.message import BuildRecord
from cinotes.vcs import VcsError
from cinotes.vcs.git_cli import GitCliClient

console = Console()


def parse_note(blob: str) -> list[BuildRecord | str]:
    """Split a note blob into records; unparseable lines are kept as text."""
    entries: list[BuildRecord | str] = []
    for line in blob.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(BuildRecord.parse(line))
        except ValidationError:
            entries.append(line)
    return entries


def _format_timestamp(timestamp: str) -> str:
    try:
        moment = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return timestamp
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def show_cmd(
    commit: str = typer.Argument("HEAD", help="Commit to inspect."),
    workspace: Path = typer.Option(
        Path("."), "--workspace", "-w", help="Git working copy."
    ),
    fetch: bool = typer.Option(
        False,
        "--fetch/--no-fetch",
        help="Fetch the notes ref from the remote first.",
    ),
) -> None:
    """Show the build records attached to COMMIT."""
    config = NotesConfig()
    client = GitCliClient.from_config(config, workspace)
    if not client.is_repository():
        console.print(
            f"[bold red]Not a git working copy:[/bold red] {escape(str(workspace))}"
        )
        raise typer.Exit(code=1)

    if fetch:
        uris = client.remote_urls(config.remote_name)
        if not uris:
            console.print(f"[yellow]No remote named {config.remote_name!r}.[/yellow]")
        else:
            try:
                client.fetch(uris[0], [config.fetch_refspec])
            except VcsError as exc:
                console.print(f"[yellow]Fetch failed:[/yellow] {escape(str(exc))}")

    blob = client.show_note(config.notes_ref, commit)
    if not blob:
        console.print(f"[dim]No build notes for {escape(commit)}.[/dim]")
        return

    table = Table(title=f"Build notes for {escape(commit)}")
    table.add_column("Time", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("v", justify="right")
    table.add_column("URL")
    table.add_column("Agent", style="dim")

    for entry in parse_note(blob):
        if isinstance(entry, str):
            table.add_row("", "", "", f"[red]{escape(entry)}[/red]", "")
            continue
        if entry.status is None:
            status = "[dim]started[/dim]"
        elif entry.status.value == "success":
            status = "[green]success[/green]"
        else:
            status = "[red]failure[/red]"
        table.add_row(
            _format_timestamp(entry.timestamp),
            status,
            str(entry.v),
            entry.url or "",
            entry.agent,
        )

    console.print(table)
