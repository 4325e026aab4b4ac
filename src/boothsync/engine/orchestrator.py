"""Sync orchestrator.

This module provides:
- SyncOrchestrator: Runs one FolderSyncWorker per source folder and turns
  the outcome into a SyncRecord
- status_message: User-facing summary of a record

Threading model:
    The thread calling run_sync() is the control thread for that run.
    Workers copy files on their own threads and post progress and
    completion messages to a queue; the control thread drains it, and is
    the only thread that mutates the per-folder SyncStats, the history
    and the settings, and the only one that notifies observers.

Outcome rules:
    | Situation                            | Record                          |
    |--------------------------------------|---------------------------------|
    | Access provider refuses              | 0 files, failed, "Permission…"  |
    | No source folder exists              | 0 files, failed                 |
    | Every worker returns (0 or more)     | sum of copies, success          |
    | A worker raises                      | sum incl. partial, failed       |

A worker returning 0 means "nothing new" and is never an error. One
failing worker does not stop the others.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from boothsync.core.types import SyncState
from boothsync.engine.access import FilesystemAccess
from boothsync.engine.types import (
    CopyFailed,
    NoSourceFolders,
    SourceFolder,
    SourceRole,
    SyncCompleted,
    SyncError,
    SyncFailed,
    SyncProgress,
    SyncRecord,
    SyncStarted,
    SyncStats,
)
from boothsync.engine.worker import FolderSyncWorker

if TYPE_CHECKING:
    from boothsync.core.config import SyncSettings
    from boothsync.core.store import KeyValueStore
    from boothsync.engine.access import AccessProvider
    from boothsync.engine.history import SyncHistoryStore
    from boothsync.engine.types import SyncEvent, SyncObserver

logger = logging.getLogger(__name__)

PERMISSION_DENIED_MESSAGE = "Permission denied"


@dataclass(frozen=True)
class _ProgressMessage:
    role: SourceRole
    stats: SyncStats


@dataclass(frozen=True)
class _DoneMessage:
    role: SourceRole
    files_copied: int
    error: BaseException | None = None


def status_message(record: SyncRecord) -> str:
    """Summarize a record for status lines and notifications."""
    if not record.success:
        if record.error_message:
            return f"Sync failed: {record.error_message}"
        return "Sync failed"
    if record.files_transferred == 0:
        return "No new files to sync"
    noun = "file" if record.files_transferred == 1 else "files"
    return f"Sync completed: {record.files_transferred} {noun} copied"


class SyncOrchestrator:
    """Runs complete sync passes and records their outcome.

    Usage:
        orchestrator = SyncOrchestrator(settings, history, store=store)
        orchestrator.subscribe(print)
        record = orchestrator.run_sync()
    """

    def __init__(
        self,
        settings: SyncSettings,
        history: SyncHistoryStore,
        store: KeyValueStore | None = None,
        access: AccessProvider | None = None,
        worker_factory: Callable[[], FolderSyncWorker] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            settings: Settings consulted at the start of every run.
            history: Where finished records are appended.
            store: Optional store where last_sync_date is persisted.
            access: Access provider. Defaults to filesystem permission
                checks with the destination root as the writable path.
            worker_factory: Creates one worker per folder and run.
        """
        self._settings = settings
        self._history = history
        self._store = store
        self._access = access
        self._worker_factory = worker_factory or (
            lambda: FolderSyncWorker(copy_delay=self._settings.copy_delay)
        )

        self._run_lock = threading.Lock()
        self._state = SyncState.IDLE
        self._observers: list[SyncObserver] = []
        self._stats: dict[SourceRole, SyncStats] = {}

    @property
    def state(self) -> SyncState:
        """Get current orchestrator state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if a run is in flight."""
        return self._run_lock.locked()

    @property
    def progress(self) -> dict[SourceRole, SyncStats]:
        """Get snapshots of the per-folder stats of the current or last run."""
        return {role: stats.snapshot() for role, stats in self._stats.items()}

    @property
    def settings(self) -> SyncSettings:
        """Get the settings used by this orchestrator."""
        return self._settings

    def subscribe(self, observer: SyncObserver) -> Callable[[], None]:
        """Register an observer for sync events.

        Returns:
            A function that unsubscribes the observer.
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def source_folders(self) -> list[SourceFolder]:
        """Get the configured source folders, existing or not."""
        return [
            SourceFolder(self._settings.originals_path, SourceRole.ORIGINALS),
            SourceFolder(self._settings.pictures_path, SourceRole.PICTURES),
        ]

    def run_sync(self) -> SyncRecord | None:
        """Run one sync pass.

        Never raises: every failure is turned into a failed SyncRecord.

        Returns:
            The record of the run, or None if a run was already in
            progress and this request was ignored.
        """
        if not self._run_lock.acquire(blocking=False):
            logger.info("Sync already in progress, ignoring request")
            return None

        try:
            self._state = SyncState.SYNCING
            self._stats = {}
            try:
                record = self._run()
            except Exception as e:
                logger.exception("Unexpected error during sync")
                record = SyncRecord.create(
                    files_transferred=0,
                    success=False,
                    error_message=str(e) or type(e).__name__,
                )
            self._finish(record)
            return record
        finally:
            self._run_lock.release()

    def _run(self) -> SyncRecord:
        """Perform the run and build its record."""
        logger.info("Starting sync process...")
        destination_root = self._settings.destination_base_path()
        configured = self.source_folders()

        access = self._access or FilesystemAccess(writable=[destination_root])
        required = [s.path for s in configured] + [destination_root]
        if not access.ensure_access(required):
            logger.error("Permission denied: Unable to access required folders")
            return SyncRecord.create(0, False, PERMISSION_DENIED_MESSAGE)

        sources = [s for s in configured if s.path.is_dir()]
        logger.info(
            "Directory exists check - %s",
            ", ".join(f"{s.role.value}: {s.path.is_dir()}" for s in configured),
        )
        if not sources:
            error = NoSourceFolders()
            logger.error("%s", error)
            return SyncRecord.create(0, False, str(error))

        if self._settings.has_custom_destination():
            logger.info("Using custom destination: %s", destination_root)
        else:
            logger.info("Using iCloud destination: %s", destination_root)

        app_folder = destination_root / self._settings.app_folder_name
        try:
            app_folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Cannot create destination folder %s: %s", app_folder, e)
            return SyncRecord.create(0, False, f"Cannot create destination folder {app_folder}: {e}")

        self._stats = {s.role: SyncStats() for s in sources}
        self._publish(SyncStarted(totals=self.progress))

        outcomes = self._run_workers(sources, app_folder)

        total = sum(o.files_copied for o in outcomes)
        failures = [o for o in outcomes if o.error is not None]
        if failures:
            message = "; ".join(f"{o.role.value}: {o.error}" for o in failures)
            return SyncRecord.create(total, False, message)
        return SyncRecord.create(total, True)

    def _run_workers(
        self,
        sources: list[SourceFolder],
        app_folder: Path,
    ) -> list[_DoneMessage]:
        """Run workers concurrently and relay their messages on this thread."""
        messages: queue.Queue[_ProgressMessage | _DoneMessage] = queue.Queue()
        threads = [
            threading.Thread(
                target=self._worker_main,
                args=(source, app_folder / source.role.value, messages),
                name=f"FolderSync-{source.role.value}",
                daemon=True,
            )
            for source in sources
        ]
        for thread in threads:
            thread.start()

        done: dict[SourceRole, _DoneMessage] = {}
        while len(done) < len(sources):
            message = messages.get()
            if isinstance(message, _ProgressMessage):
                self._apply_progress(message.role, message.stats)
            else:
                done[message.role] = message

        for thread in threads:
            thread.join()

        return [done[s.role] for s in sources]

    def _worker_main(
        self,
        source: SourceFolder,
        dest_folder: Path,
        messages: queue.Queue[_ProgressMessage | _DoneMessage],
    ) -> None:
        """Thread target: sync one folder and report back through the queue."""
        role = source.role

        def on_progress(stats: SyncStats) -> None:
            messages.put(_ProgressMessage(role, stats))

        logger.info("Starting sync for %s folder: %s", role.value, source.path)
        try:
            worker = self._worker_factory()
            copied = worker.sync(source.path, dest_folder, on_progress=on_progress)
        except CopyFailed as e:
            logger.error("Error syncing %s: %s", role.value, e)
            messages.put(_DoneMessage(role, e.files_copied, e))
        except SyncError as e:
            logger.error("Error syncing %s: %s", role.value, e)
            messages.put(_DoneMessage(role, 0, e))
        except Exception as e:
            logger.exception("Error syncing %s", role.value)
            messages.put(_DoneMessage(role, 0, e))
        else:
            if copied == 0:
                logger.info("No new files to copy in %s folder", role.value)
            else:
                logger.info("%s sync complete: %d files copied", role.value, copied)
            messages.put(_DoneMessage(role, copied))

    def _apply_progress(self, role: SourceRole, stats: SyncStats) -> None:
        """Record a worker's stats and notify observers (control thread only)."""
        self._stats[role] = stats
        self._publish(SyncProgress(stats=self.progress, role=role))

    def _finish(self, record: SyncRecord) -> None:
        """Persist the record and publish the final event."""
        try:
            self._history.add(record)
            self._settings.last_sync_date = record.date
            if self._store is not None:
                self._store.set("last_sync_date", record.date.isoformat())
        except Exception:
            logger.exception("Failed to save sync record %s", record.id)

        logger.info("%s", status_message(record))
        if record.success:
            self._state = SyncState.IDLE
            self._publish(SyncCompleted(total_copied=record.files_transferred, record=record))
        else:
            self._state = SyncState.ERROR
            self._publish(SyncFailed(error_message=record.error_message or "Sync failed", record=record))

    def _publish(self, event: SyncEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                logger.exception("Sync observer failed on %s", type(event).__name__)
