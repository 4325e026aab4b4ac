"""Configuration commands and shared helpers for the BoothSync CLI.

Commands:
- config show: Print the current settings
- config set-interval: Choose when syncs run automatically
- config set-destination: Sync into a custom folder instead of iCloud Drive
- config use-icloud: Go back to the iCloud Drive destination
- config set-sources: Override the Photo Booth source folders
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from boothsync.core.config import SyncInterval, SyncSettings, get_config_dir, get_config_file
from boothsync.core.store import JsonFileStore

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def open_store() -> JsonFileStore:
    """Open the settings store in the configuration directory."""
    return JsonFileStore(get_config_file())


def setup_logging(verbose: bool = False, log_path: Path | None = None) -> None:
    """Configure the boothsync logger.

    Args:
        verbose: Log at DEBUG instead of INFO.
        log_path: Optional file receiving the same records as stderr.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger("boothsync")
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    root_logger.propagate = False

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def interval_choices() -> list[str]:
    """Get the accepted spellings of each interval for click.Choice."""
    return [i.name.lower().replace("_", "-") for i in SyncInterval]


def format_settings(settings: SyncSettings) -> list[str]:
    """Render settings as aligned "key: value" lines."""
    destination = "custom" if settings.has_custom_destination() else "iCloud Drive"
    return [
        f"Auto sync:      {settings.auto_sync_interval.value}",
        f"Destination:    {settings.app_folder()} ({destination})",
        f"Originals:      {settings.originals_path}",
        f"Pictures:       {settings.pictures_path}",
        f"Copy delay:     {settings.copy_delay:g}s",
        f"Config file:    {get_config_file()}",
    ]


@click.group()
def config() -> None:
    """Show or change BoothSync settings."""


@config.command("show")
def show() -> None:
    """Print the current settings."""
    settings = SyncSettings.load(open_store())
    for line in format_settings(settings):
        click.echo(line)


@config.command("set-interval")
@click.argument("interval", type=click.Choice(interval_choices(), case_sensitive=False))
def set_interval(interval: str) -> None:
    """Choose when syncs run automatically.

    INTERVAL is one of never, on-new-photos, every-6-hours, daily,
    weekly or monthly. A running 'boothsync watch' picks the new value up
    on its next start.
    """
    store = open_store()
    settings = SyncSettings.load(store)
    settings.auto_sync_interval = SyncInterval.parse(interval)
    settings.save(store)
    click.echo(f"Auto sync set to: {settings.auto_sync_interval.value}")


@config.command("set-destination")
@click.argument(
    "path",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
)
def set_destination(path: Path) -> None:
    """Sync into PATH instead of iCloud Drive."""
    path = path.expanduser().resolve()
    if not path.is_dir():
        click.echo(f"Error: Destination folder does not exist: {path}", err=True)
        sys.exit(1)

    store = open_store()
    settings = SyncSettings.load(store)
    settings.use_custom_destination = True
    settings.custom_destination_path = path
    settings.save(store)
    click.echo(f"Photos will be synced to: {settings.app_folder()}")


@config.command("use-icloud")
def use_icloud() -> None:
    """Go back to syncing into iCloud Drive."""
    store = open_store()
    settings = SyncSettings.load(store)
    settings.use_custom_destination = False
    settings.save(store)
    click.echo(f"Photos will be synced to: {settings.app_folder()}")


@config.command("set-sources")
@click.option(
    "--originals",
    type=click.Path(file_okay=False, path_type=Path),
    help="Folder with original captures.",
)
@click.option(
    "--pictures",
    type=click.Path(file_okay=False, path_type=Path),
    help="Folder with edited pictures.",
)
def set_sources(originals: Path | None, pictures: Path | None) -> None:
    """Override the Photo Booth source folders."""
    if originals is None and pictures is None:
        click.echo("Error: Nothing to change. Use --originals and/or --pictures.", err=True)
        sys.exit(1)

    store = open_store()
    settings = SyncSettings.load(store)
    if originals is not None:
        settings.originals_path = originals.expanduser().resolve()
    if pictures is not None:
        settings.pictures_path = pictures.expanduser().resolve()
    settings.save(store)
    click.echo(f"Originals: {settings.originals_path}")
    click.echo(f"Pictures:  {settings.pictures_path}")


__all__ = [
    "config",
    "format_settings",
    "get_config_dir",
    "interval_choices",
    "open_store",
    "setup_logging",
]
