"""Command-line interface for BoothSync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- sync: Copy new Photo Booth photos once
- watch: Keep running and sync automatically
- history: List recent sync runs
- status: Show the auto-sync state and the last run
- config: Show or change settings
"""

from __future__ import annotations

import click

from boothsync.cli.config import config, open_store, setup_logging
from boothsync.cli.history import history, status
from boothsync.cli.sync import sync, watch


@click.group()
@click.version_option(package_name="boothsync")
def cli() -> None:
    """BoothSync - Mirror Photo Booth photos into iCloud Drive."""


# Sync commands
cli.add_command(sync)
cli.add_command(watch)

# History commands
cli.add_command(history)
cli.add_command(status)

# Settings commands
cli.add_command(config)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "open_store",
    "setup_logging",
]
