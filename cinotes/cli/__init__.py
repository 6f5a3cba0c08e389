"""cinotes CLI: Typer-based command-line interface.

Provides the ``cinotes`` command with subcommands for publishing the
build start and finish records from a CI job, and for reading the
records attached to a commit.

All output uses Rich for formatted terminal display.
"""
