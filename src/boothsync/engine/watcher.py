"""Folder watcher with a quiet-period debounce.

This module provides:
- QuietPeriodHandler: Coalesces bursts of events into a single callback
- FolderWatcher: Watches one source folder (non-recursive) using watchdog

Cameras write several files and touch attributes in quick succession, so
the callback only fires once no event has arrived for ``quiet_period``
seconds. Every new event restarts the countdown. Deletions and hidden
entries are ignored: neither can produce something new to copy.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import (
    FileClosedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from boothsync.engine.scanner import is_hidden

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

logger = logging.getLogger(__name__)

DEFAULT_QUIET_PERIOD = 2.0


def _decode(path: str | bytes) -> Path:
    if isinstance(path, bytes):
        path = path.decode("utf-8", errors="replace")
    return Path(path)


class QuietPeriodHandler(FileSystemEventHandler):
    """Event handler that calls on_change once events settle."""

    def __init__(
        self,
        on_change: Callable[[], None],
        quiet_period: float = DEFAULT_QUIET_PERIOD,
    ) -> None:
        """Initialize the handler.

        Args:
            on_change: Called once per burst of events.
            quiet_period: Seconds without events before on_change fires.
        """
        super().__init__()
        self._on_change = on_change
        self._quiet_period = quiet_period
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    @property
    def pending(self) -> bool:
        """Check if a callback is scheduled."""
        with self._lock:
            return self._timer is not None

    def _is_relevant(self, event: FileSystemEvent) -> bool:
        if not isinstance(
            event,
            FileCreatedEvent | FileModifiedEvent | FileMovedEvent | FileClosedEvent,
        ):
            return False
        if isinstance(event, FileMovedEvent):
            return not is_hidden(_decode(event.dest_path).name)
        return not is_hidden(_decode(event.src_path).name)

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Restart the quiet period on every relevant event."""
        if not self._is_relevant(event):
            return

        logger.debug("Detected change: %s", event.src_path)
        with self._lock:
            if self._timer:
                self._timer.cancel()
            self._timer = threading.Timer(self._quiet_period, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        try:
            self._on_change()
        except Exception:
            logger.exception("Change callback failed")

    def stop(self) -> None:
        """Cancel any pending callback."""
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None


class FolderWatcher:
    """Watches a source folder and reports settled changes.

    Only entries directly inside the folder are watched.
    """

    def __init__(
        self,
        watch_path: Path,
        on_change: Callable[[], None],
        quiet_period: float = DEFAULT_QUIET_PERIOD,
    ) -> None:
        """Initialize the watcher.

        Args:
            watch_path: Directory to watch.
            on_change: Called once changes have settled.
            quiet_period: Seconds without events before on_change fires.

        Raises:
            ValueError: If watch_path is not a directory.
        """
        self._watch_path = Path(watch_path).resolve()
        if not self._watch_path.is_dir():
            raise ValueError(f"Watch path must be a directory: {watch_path}")

        self._handler = QuietPeriodHandler(on_change, quiet_period=quiet_period)
        self._observer: BaseObserver = Observer()
        self._running = False

    @property
    def watch_path(self) -> Path:
        """Get the watched directory path."""
        return self._watch_path

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    def start(self) -> None:
        """Start watching for changes."""
        if self._running:
            return

        self._observer.schedule(self._handler, str(self._watch_path), recursive=False)
        self._observer.start()
        self._running = True
        logger.info("Watching %s for new photos", self._watch_path)

    def stop(self) -> None:
        """Stop watching for changes."""
        if not self._running:
            return

        self._handler.stop()
        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._running = False
        logger.info("Stopped watching %s", self._watch_path)

    def __enter__(self) -> FolderWatcher:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()
