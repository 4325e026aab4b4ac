"""History and status commands for BoothSync CLI.

Commands:
- history: List recent sync runs
- status: Show the auto-sync state and the last run
"""

from __future__ import annotations

from datetime import UTC, datetime

import click

from boothsync.cli.config import format_settings, open_store
from boothsync.core.config import SyncSettings
from boothsync.engine import SyncHistoryStore, SyncRecord, compute_next_sync, status_message


def format_date(value: datetime) -> str:
    """Format a timestamp in local time."""
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def time_ago(value: datetime, now: datetime | None = None) -> str:
    """Describe how long ago a timestamp was ("just now", "3 hours ago")."""
    now = now or datetime.now(UTC)
    seconds = int((now - value).total_seconds())
    if seconds < 60:
        return "just now"
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def format_record(record: SyncRecord) -> str:
    """Render one history line."""
    mark = click.style("✓", fg="green") if record.success else click.style("✗", fg="red")
    noun = "file" if record.files_transferred == 1 else "files"
    line = f"{format_date(record.date)}  {mark}  {record.files_transferred} {noun}"
    if record.error_message:
        line += f"  {record.error_message}"
    return line


@click.command()
@click.option("--limit", "-n", default=10, show_default=True, help="Number of runs to show.")
@click.option("--clear", is_flag=True, help="Delete the whole history.")
def history(limit: int, clear: bool) -> None:
    """List recent sync runs, newest first."""
    history_store = SyncHistoryStore(open_store())

    if clear:
        history_store.clear()
        click.echo("Sync history cleared.")
        return

    records = history_store.records
    if not records:
        click.echo("No sync history yet.")
        return

    for record in records[: max(limit, 0)]:
        click.echo(format_record(record))

    click.echo(
        f"\n{len(records)} total records: "
        f"{history_store.success_count} successful, "
        f"{history_store.failure_count} failed"
    )


@click.command()
def status() -> None:
    """Show the auto-sync state and the last run."""
    store = open_store()
    settings = SyncSettings.load(store)
    history_store = SyncHistoryStore(store)

    for line in format_settings(settings):
        click.echo(line)

    for label, path in (("Originals", settings.originals_path), ("Pictures", settings.pictures_path)):
        if not path.is_dir():
            click.echo(f"Warning: {label} folder not found: {path}")

    latest = history_store.latest
    if latest is None:
        click.echo("Last sync:      never")
    else:
        click.echo(f"Last sync:      {format_date(latest.date)} ({time_ago(latest.date)})")
        click.echo(f"Last result:    {status_message(latest)}")

    next_sync = compute_next_sync(
        settings.auto_sync_interval,
        settings.last_sync_date,
        datetime.now(UTC),
    )
    if next_sync is not None:
        click.echo(f"Next sync:      {format_date(next_sync)}")
