"""Sync commands for BoothSync CLI.

Commands:
- sync: Copy new photos once
- watch: Keep running and sync according to the auto-sync interval
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from collections.abc import Callable
from datetime import datetime

import click

from boothsync.cli.config import get_config_dir, interval_choices, open_store, setup_logging
from boothsync.core.config import SyncInterval, SyncSettings
from boothsync.engine import (
    AutoSyncScheduler,
    SchedulerState,
    SyncHistoryStore,
    SyncOrchestrator,
    SyncProgress,
    SyncStarted,
    status_message,
)
from boothsync.engine.types import SyncEvent
from boothsync.notifications import NotificationObserver


class StatusLineAwareHandler(logging.Handler):
    """Logging handler that coordinates with the progress line display.

    Clears the progress line before printing log messages and restores it after.
    """

    def __init__(
        self,
        clear_func: Callable[[], None],
        update_func: Callable[[], None],
        lock: threading.Lock,
    ) -> None:
        super().__init__()
        self._clear_func = clear_func
        self._update_func = update_func
        self._lock = lock

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            with self._lock:
                self._clear_func()
                click.echo(msg)
                self._update_func()
        except Exception:
            self.handleError(record)


class ProgressLine:
    """Single-line progress display fed by orchestrator events."""

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled
        self._text = ""
        self._last_len = 0
        self.lock = threading.Lock()

    def clear(self) -> None:
        """Erase the current line."""
        if self._last_len > 0 and self._enabled:
            click.echo("\r" + " " * self._last_len + "\r", nl=False)
            self._last_len = 0

    def redraw(self) -> None:
        """Draw the current text again."""
        if not self._enabled or not self._text:
            return
        clear_part = " " * max(0, self._last_len - len(self._text))
        click.echo(f"\r{self._text}{clear_part}", nl=False)
        self._last_len = len(self._text)

    def __call__(self, event: SyncEvent) -> None:
        if isinstance(event, SyncStarted):
            text = "  Preparing..."
        elif isinstance(event, SyncProgress):
            parts = [
                f"{role.value} {stats.files_copied}/{stats.total_files}"
                for role, stats in event.stats.items()
            ]
            text = "  Syncing: " + ", ".join(parts)
        else:
            return
        with self.lock:
            self._text = text
            self.redraw()


@click.command()
@click.option("--no-progress", is_flag=True, help="Disable the progress line.")
@click.option("--verbose", "-v", is_flag=True, help="Log every step.")
def sync(no_progress: bool, verbose: bool) -> None:
    """Copy new Photo Booth photos to the destination.

    Files already present at the destination are skipped. Exits with
    status 1 if the run failed.
    """
    store = open_store()
    settings = SyncSettings.load(store)
    history = SyncHistoryStore(store)
    orchestrator = SyncOrchestrator(settings, history, store=store)

    progress = ProgressLine(enabled=not no_progress and not verbose)
    if verbose or no_progress:
        setup_logging(verbose)
        logging.getLogger("boothsync").setLevel(logging.DEBUG if verbose else logging.WARNING)
    else:
        # Warnings and errors only, printed above the progress line
        status_handler = StatusLineAwareHandler(
            clear_func=progress.clear,
            update_func=progress.redraw,
            lock=progress.lock,
        )
        status_handler.setFormatter(logging.Formatter("%(message)s"))
        boothsync_logger = logging.getLogger("boothsync")
        for handler in boothsync_logger.handlers[:]:
            boothsync_logger.removeHandler(handler)
        boothsync_logger.addHandler(status_handler)
        boothsync_logger.setLevel(logging.WARNING)
        boothsync_logger.propagate = False

    orchestrator.subscribe(progress)

    click.echo(f"Syncing to {settings.app_folder()}...")
    record = orchestrator.run_sync()
    with progress.lock:
        progress.clear()

    if record is None:
        click.echo("A sync is already in progress.")
        return

    if record.success:
        click.echo(status_message(record))
    else:
        click.echo(click.style(status_message(record), fg="red"), err=True)
        sys.exit(1)


@click.command()
@click.option(
    "--interval",
    type=click.Choice(interval_choices(), case_sensitive=False),
    default=None,
    help="Use this interval for this session instead of the configured one.",
)
@click.option("--no-notify", is_flag=True, help="Disable desktop notifications.")
@click.option("--verbose", "-v", is_flag=True, help="Log every step.")
def watch(interval: str | None, no_notify: bool, verbose: bool) -> None:
    """Keep running and sync automatically.

    Uses the configured auto-sync interval: a timer for fixed intervals,
    or folder monitoring for 'on-new-photos'. Stop with Ctrl+C.
    """
    setup_logging(verbose, log_path=get_config_dir() / "boothsync.log")

    store = open_store()
    settings = SyncSettings.load(store)
    if interval is not None:
        settings.auto_sync_interval = SyncInterval.parse(interval)

    if settings.auto_sync_interval == SyncInterval.NEVER:
        click.echo(
            "Error: Auto sync is disabled. Run 'boothsync config set-interval' "
            "or pass --interval.",
            err=True,
        )
        sys.exit(1)

    history = SyncHistoryStore(store)
    orchestrator = SyncOrchestrator(settings, history, store=store)
    if not no_notify:
        orchestrator.subscribe(NotificationObserver())

    def trigger() -> None:
        record = orchestrator.run_sync()
        if record is not None:
            stamp = record.date.astimezone().strftime("%Y-%m-%d %H:%M:%S")
            click.echo(f"[{stamp}] {status_message(record)}")

    scheduler = AutoSyncScheduler(settings, trigger)
    scheduler.start()

    click.echo(f"Auto sync: {settings.auto_sync_interval.value}")
    if scheduler.state == SchedulerState.WAITING and settings.next_scheduled_sync:
        next_sync: datetime = settings.next_scheduled_sync
        click.echo(f"Next sync: {next_sync.astimezone().strftime('%Y-%m-%d %H:%M')}")
    elif scheduler.state == SchedulerState.MONITORING:
        for path in scheduler.watched_paths:
            click.echo(f"Watching: {path}")
    click.echo("Press Ctrl+C to stop.\n")

    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        click.echo("\nStopping...")
    finally:
        scheduler.stop()
