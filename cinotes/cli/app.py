"""Main Typer application: imports and registers all CLI commands.

Entry point: ``cinotes`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from cinotes.cli.commands.record import finish_cmd, start_cmd
from cinotes.cli.commands.show import show_cmd
from cinotes.config import NotesConfig

app = typer.Typer(
    name="cinotes",
    help="cinotes: record CI build outcomes into shared git notes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="start", help="Publish the build-started record.")(start_cmd)
app.command(name="finish", help="Publish the build-finished record.")(finish_cmd)
app.command(name="show", help="Show the build records of a commit.")(show_cmd)


def configure_logging(level: str) -> None:
    """Send library logging to stderr through Rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to CINOTES_LOG_LEVEL or INFO).",
    ),
) -> None:
    """Record CI build outcomes into shared git notes."""
    configure_logging(log_level or NotesConfig().log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
