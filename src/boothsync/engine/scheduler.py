"""Scheduler for automatic syncs.

This module provides:
- SchedulerState: IDLE, WAITING (timer armed) or MONITORING (folders watched)
- compute_next_sync: Next sync date for a fixed interval
- AutoSyncScheduler: Turns the configured SyncInterval into trigger calls

Interval handling:
    | Interval        | State      | Mechanism                              |
    |-----------------|------------|----------------------------------------|
    | Never           | IDLE       | nothing                                |
    | 6h/daily/...    | WAITING    | one-shot apscheduler job               |
    | On new photos   | MONITORING | FolderWatcher per existing source      |

A fixed-interval job fires at last_sync_date + period, or now + period
when no sync was ever recorded. If that date is already past, the job
fires after a short grace delay instead. Applying a new interval always
tears down the previous timer and watchers first.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from boothsync.core.config import SyncInterval
from boothsync.engine.watcher import DEFAULT_QUIET_PERIOD, FolderWatcher

if TYPE_CHECKING:
    from boothsync.core.config import SyncSettings

logger = logging.getLogger(__name__)

JOB_ID = "auto_sync"
DEFAULT_GRACE_SECONDS = 5.0


class SchedulerState(Enum):
    """State of the auto-sync scheduler."""

    IDLE = auto()
    WAITING = auto()
    MONITORING = auto()


class Watcher(Protocol):
    """Change-notification capability used in MONITORING state."""

    def start(self) -> None: ...

    def stop(self) -> None: ...


WatcherFactory = Callable[[Path, Callable[[], None], float], Watcher]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def compute_next_sync(
    interval: SyncInterval,
    last_sync: datetime | None,
    now: datetime,
) -> datetime | None:
    """Compute the next sync date for a fixed interval.

    Args:
        interval: Configured interval.
        last_sync: Date of the last recorded sync, if any.
        now: Current time.

    Returns:
        The next sync date (possibly in the past), or None if the
        interval is not timer-driven.
    """
    period = interval.period
    if period is None:
        return None
    base = _as_utc(last_sync) if last_sync is not None else _as_utc(now)
    return base + period


def _default_watcher_factory(
    path: Path,
    on_change: Callable[[], None],
    quiet_period: float,
) -> Watcher:
    return FolderWatcher(path, on_change, quiet_period=quiet_period)


class AutoSyncScheduler:
    """Triggers syncs according to the configured interval.

    Usage:
        scheduler = AutoSyncScheduler(settings, trigger=orchestrator.run_sync)
        scheduler.start()
        scheduler.apply(SyncInterval.DAILY)
        scheduler.stop()
    """

    def __init__(
        self,
        settings: SyncSettings,
        trigger: Callable[[], object],
        watcher_factory: WatcherFactory | None = None,
        clock: Callable[[], datetime] | None = None,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        quiet_period: float = DEFAULT_QUIET_PERIOD,
    ) -> None:
        """Initialize the scheduler.

        Args:
            settings: Settings providing the interval, the last sync date
                and the source folders. next_scheduled_sync is updated here.
            trigger: Called whenever a sync should run.
            watcher_factory: Creates a watcher for a folder. Defaults to
                FolderWatcher.
            clock: Returns the current time. Defaults to UTC now.
            grace_seconds: Delay used when the next sync date is past.
            quiet_period: Debounce delay for folder changes.
        """
        self._settings = settings
        self._trigger = trigger
        self._watcher_factory = watcher_factory or _default_watcher_factory
        self._clock = clock or (lambda: datetime.now(UTC))
        self._grace = timedelta(seconds=grace_seconds)
        self._quiet_period = quiet_period

        self._lock = threading.RLock()
        self._state = SchedulerState.IDLE
        self._scheduler: BackgroundScheduler | None = None
        self._watchers: list[Watcher] = []
        self._watched_paths: list[Path] = []
        self._fire_time: datetime | None = None

    @property
    def state(self) -> SchedulerState:
        """Get current scheduler state."""
        return self._state

    @property
    def next_fire_time(self) -> datetime | None:
        """Get when the armed timer will fire (WAITING only)."""
        return self._fire_time

    @property
    def watched_paths(self) -> list[Path]:
        """Get the folders being monitored (MONITORING only)."""
        return list(self._watched_paths)

    @property
    def is_running(self) -> bool:
        """Check if the scheduler was started."""
        return self._scheduler is not None

    def start(self) -> None:
        """Start the scheduler with the configured interval."""
        with self._lock:
            if self._scheduler is None:
                self._scheduler = BackgroundScheduler(timezone=UTC)
                self._scheduler.start()
                logger.info("Auto sync scheduler started")
            self._establish(self._settings.auto_sync_interval)

    def stop(self) -> None:
        """Stop timers and watchers."""
        with self._lock:
            self._teardown()
            self._state = SchedulerState.IDLE
            if self._scheduler is not None:
                self._scheduler.shutdown(wait=False)
                self._scheduler = None
                logger.info("Auto sync scheduler stopped")

    def apply(self, interval: SyncInterval) -> None:
        """Switch to a new interval.

        The interval is stored in the settings. If the scheduler is not
        started yet, the mechanism is established on start().
        """
        with self._lock:
            self._settings.auto_sync_interval = interval
            if self._scheduler is None:
                self._settings.next_scheduled_sync = compute_next_sync(
                    interval, self._settings.last_sync_date, self._clock()
                )
                return
            self._establish(interval)

    def reschedule(self) -> None:
        """Recompute the timer after a sync outside the scheduler (manual run)."""
        with self._lock:
            if self._state == SchedulerState.WAITING:
                self._schedule_next()

    def _establish(self, interval: SyncInterval) -> None:
        self._teardown()
        if interval == SyncInterval.NEVER:
            self._state = SchedulerState.IDLE
            logger.info("Auto sync disabled")
        elif interval == SyncInterval.ON_NEW_PHOTOS:
            self._start_monitoring()
        else:
            self._schedule_next()

    def _teardown(self) -> None:
        """Cancel the timer and stop every watcher."""
        if self._scheduler is not None and self._scheduler.get_job(JOB_ID) is not None:
            self._scheduler.remove_job(JOB_ID)
        self._fire_time = None
        self._settings.next_scheduled_sync = None

        for watcher in self._watchers:
            try:
                watcher.stop()
            except Exception:
                logger.exception("Failed to stop folder watcher")
        self._watchers.clear()
        self._watched_paths.clear()

    def _schedule_next(self, not_before: datetime | None = None) -> None:
        """Arm the one-shot timer for the next fixed-interval sync.

        Args:
            not_before: Earliest base date. After a fire, the fire time is
                used so a trigger that did not record a sync cannot make
                the timer loop on the grace delay.
        """
        now = _as_utc(self._clock())
        last = self._settings.last_sync_date
        if not_before is not None and (last is None or _as_utc(last) < not_before):
            last = not_before

        next_sync = compute_next_sync(self._settings.auto_sync_interval, last, now)
        if next_sync is None:
            return

        fire_time = next_sync if next_sync > now else now + self._grace
        self._settings.next_scheduled_sync = next_sync
        self._fire_time = fire_time
        self._state = SchedulerState.WAITING

        if self._scheduler is not None:
            self._scheduler.add_job(
                self._fire,
                trigger=DateTrigger(run_date=fire_time),
                id=JOB_ID,
                name="Automatic sync",
                replace_existing=True,
                misfire_grace_time=None,
                coalesce=True,
            )
        logger.info(
            "Next %s sync scheduled for %s",
            self._settings.auto_sync_interval.value.lower(),
            fire_time.isoformat(),
        )

    def _fire(self) -> None:
        """Job function for the fixed-interval timer."""
        fired_at = _as_utc(self._clock())
        logger.info("Starting scheduled sync")
        self._call_trigger()

        with self._lock:
            if self._state == SchedulerState.WAITING and self._settings.auto_sync_interval.is_fixed:
                self._schedule_next(not_before=fired_at)

    def _start_monitoring(self) -> None:
        folders = [self._settings.originals_path, self._settings.pictures_path]
        for folder in folders:
            if not folder.is_dir():
                logger.debug("Not watching missing folder %s", folder)
                continue
            try:
                watcher = self._watcher_factory(folder, self._on_folder_change, self._quiet_period)
                watcher.start()
            except (OSError, ValueError) as e:
                logger.warning("Cannot watch %s: %s", folder, e)
                continue
            self._watchers.append(watcher)
            self._watched_paths.append(folder)

        self._state = SchedulerState.MONITORING
        if not self._watchers:
            logger.warning("No source folder to watch for new photos")

    def _on_folder_change(self) -> None:
        logger.info("New photos detected, starting sync")
        self._call_trigger()

    def _call_trigger(self) -> None:
        try:
            self._trigger()
        except Exception:
            logger.exception("Error during automatic sync")
