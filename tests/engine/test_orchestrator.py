"""Tests for the sync orchestrator."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from pathlib import Path

import pytest

from boothsync.core.config import SyncSettings
from boothsync.core.store import MemoryStore
from boothsync.core.types import SyncState
from boothsync.engine.history import SyncHistoryStore
from boothsync.engine.orchestrator import SyncOrchestrator, status_message
from boothsync.engine.types import (
    CopyFailed,
    SourceRole,
    SyncCompleted,
    SyncEvent,
    SyncFailed,
    SyncProgress,
    SyncRecord,
    SyncStarted,
)
from boothsync.engine.worker import FolderSyncWorker


class DenyAll:
    """Access provider refusing everything."""

    def __init__(self) -> None:
        self.requested: list[Path] = []

    def ensure_access(self, paths: Iterable[Path]) -> bool:
        self.requested.extend(paths)
        return False


class FailingOriginalsWorker(FolderSyncWorker):
    """Worker that fails after one file when syncing the Originals folder."""

    def sync(self, source_folder, dest_folder, on_progress=None):
        if Path(source_folder).name == "Originals":
            raise CopyFailed("b.jpg", OSError("disk full"), files_copied=1)
        return super().sync(source_folder, dest_folder, on_progress)


class BlockingWorker(FolderSyncWorker):
    """Worker that waits until released."""

    def __init__(self, started: threading.Event, release: threading.Event) -> None:
        super().__init__(copy_delay=0.0)
        self._started = started
        self._release = release

    def sync(self, source_folder, dest_folder, on_progress=None):
        self._started.set()
        self._release.wait(timeout=5.0)
        return 0


class RendezvousWorker(FolderSyncWorker):
    """Worker that only proceeds once the other folder's worker is also running."""

    def __init__(self, barrier: threading.Barrier) -> None:
        super().__init__(copy_delay=0.0)
        self._barrier = barrier

    def sync(self, source_folder, dest_folder, on_progress=None):
        self._barrier.wait()
        return super().sync(source_folder, dest_folder, on_progress)


@pytest.fixture
def orchestrator(settings: SyncSettings, history: SyncHistoryStore, store: MemoryStore) -> SyncOrchestrator:
    return SyncOrchestrator(settings, history, store=store)


class TestStatusMessage:
    """Tests for status_message."""

    def test_failure(self) -> None:
        record = SyncRecord.create(0, False, "Permission denied")
        assert status_message(record) == "Sync failed: Permission denied"

    def test_nothing_new(self) -> None:
        assert status_message(SyncRecord.create(0, True)) == "No new files to sync"

    def test_copied(self) -> None:
        assert status_message(SyncRecord.create(1, True)) == "Sync completed: 1 file copied"
        assert status_message(SyncRecord.create(3, True)) == "Sync completed: 3 files copied"


class TestRunSync:
    """Tests for SyncOrchestrator.run_sync."""

    def test_copies_both_folders(
        self,
        orchestrator: SyncOrchestrator,
        library: Path,
        destination: Path,
        make_files,
    ) -> None:
        """Should mirror both folders into the app folder."""
        make_files(library / "Originals", "a.jpg", "b.jpg")
        make_files(library / "Pictures", "c.jpg")

        record = orchestrator.run_sync()

        assert record is not None
        assert record.success is True
        assert record.files_transferred == 3
        assert record.error_message is None
        app = destination / "BoothSync"
        assert sorted(p.name for p in (app / "Originals").iterdir()) == ["a.jpg", "b.jpg"]
        assert [p.name for p in (app / "Pictures").iterdir()] == ["c.jpg"]
        assert orchestrator.state == SyncState.IDLE

    def test_second_run_copies_nothing(
        self,
        orchestrator: SyncOrchestrator,
        history: SyncHistoryStore,
        library: Path,
        make_files,
    ) -> None:
        """Running twice should be a successful no-op the second time."""
        make_files(library / "Originals", "a.jpg")
        orchestrator.run_sync()

        record = orchestrator.run_sync()

        assert record.success is True
        assert record.files_transferred == 0
        assert status_message(record) == "No new files to sync"
        assert len(history) == 2

    def test_only_one_source_exists(
        self,
        settings: SyncSettings,
        history: SyncHistoryStore,
        library: Path,
        destination: Path,
        make_files,
    ) -> None:
        """A missing source folder should be skipped, not fail the run."""
        settings.pictures_path = library / "Missing"
        make_files(library / "Originals", "a.jpg")
        orchestrator = SyncOrchestrator(settings, history)

        record = orchestrator.run_sync()

        assert record.success is True
        assert record.files_transferred == 1
        assert not (destination / "BoothSync" / "Pictures").exists()

    def test_no_source_folders(
        self,
        settings: SyncSettings,
        history: SyncHistoryStore,
        tmp_path: Path,
        destination: Path,
    ) -> None:
        """Should fail when neither source exists."""
        settings.originals_path = tmp_path / "nope1"
        settings.pictures_path = tmp_path / "nope2"
        orchestrator = SyncOrchestrator(settings, history)

        record = orchestrator.run_sync()

        assert record.success is False
        assert record.files_transferred == 0
        assert record.error_message == "No Photo Booth directories available"
        assert history.latest == record
        assert orchestrator.state == SyncState.ERROR
        assert not (destination / "BoothSync").exists()

    def test_access_denied(
        self,
        settings: SyncSettings,
        history: SyncHistoryStore,
        library: Path,
        destination: Path,
        make_files,
    ) -> None:
        """A refused access request should record a failed run without copying."""
        make_files(library / "Originals", "a.jpg")
        access = DenyAll()
        orchestrator = SyncOrchestrator(settings, history, access=access)

        record = orchestrator.run_sync()

        assert record.success is False
        assert record.error_message == "Permission denied"
        assert record.files_transferred == 0
        assert destination in access.requested
        assert not (destination / "BoothSync").exists()
        assert len(history) == 1

    def test_failure_does_not_stop_other_folder(
        self,
        settings: SyncSettings,
        history: SyncHistoryStore,
        library: Path,
        destination: Path,
        make_files,
    ) -> None:
        """One failing folder should not prevent the other from syncing."""
        make_files(library / "Originals", "a.jpg", "b.jpg")
        make_files(library / "Pictures", "c.jpg", "d.jpg")
        orchestrator = SyncOrchestrator(
            settings,
            history,
            worker_factory=lambda: FailingOriginalsWorker(copy_delay=0.0),
        )

        record = orchestrator.run_sync()

        assert record.success is False
        assert record.files_transferred == 3
        assert record.error_message.startswith("Originals: Failed to copy b.jpg")
        assert sorted(p.name for p in (destination / "BoothSync" / "Pictures").iterdir()) == [
            "c.jpg",
            "d.jpg",
        ]

    def test_event_sequence(
        self,
        orchestrator: SyncOrchestrator,
        library: Path,
        make_files,
    ) -> None:
        """Observers should see start, progress and completion in order."""
        make_files(library / "Originals", "a.jpg", "b.jpg")
        make_files(library / "Pictures", "c.jpg")
        events: list[SyncEvent] = []
        orchestrator.subscribe(events.append)

        record = orchestrator.run_sync()

        assert isinstance(events[0], SyncStarted)
        assert set(events[0].totals) == {SourceRole.ORIGINALS, SourceRole.PICTURES}
        assert isinstance(events[-1], SyncCompleted)
        assert events[-1].total_copied == 3
        assert events[-1].record == record

        progress = [e for e in events if isinstance(e, SyncProgress)]
        assert progress
        for event in progress:
            for stats in event.stats.values():
                assert 0 <= stats.files_copied <= stats.total_files
        assert progress[-1].files_copied == 3
        assert progress[-1].total_files == 3

    def test_failure_event(self, settings: SyncSettings, history: SyncHistoryStore) -> None:
        events: list[SyncEvent] = []
        orchestrator = SyncOrchestrator(settings, history, access=DenyAll())
        orchestrator.subscribe(events.append)

        orchestrator.run_sync()

        assert len(events) == 1
        assert isinstance(events[0], SyncFailed)
        assert events[0].error_message == "Permission denied"

    def test_unsubscribe(self, orchestrator: SyncOrchestrator) -> None:
        events: list[SyncEvent] = []
        unsubscribe = orchestrator.subscribe(events.append)
        unsubscribe()

        orchestrator.run_sync()

        assert events == []

    def test_observer_errors_are_tolerated(
        self,
        orchestrator: SyncOrchestrator,
        library: Path,
        make_files,
    ) -> None:
        """A failing observer should not break the run."""
        make_files(library / "Originals", "a.jpg")

        def broken(event: SyncEvent) -> None:
            raise RuntimeError("boom")

        orchestrator.subscribe(broken)
        record = orchestrator.run_sync()

        assert record.success is True
        assert record.files_transferred == 1

    def test_last_sync_date_persisted(
        self,
        orchestrator: SyncOrchestrator,
        settings: SyncSettings,
        store: MemoryStore,
    ) -> None:
        """Every run should update and persist the last sync date."""
        record = orchestrator.run_sync()

        assert settings.last_sync_date == record.date
        assert store.get("last_sync_date") == record.date.isoformat()

    def test_progress_snapshots(
        self,
        orchestrator: SyncOrchestrator,
        library: Path,
        make_files,
    ) -> None:
        make_files(library / "Originals", "a.jpg")

        orchestrator.run_sync()

        progress = orchestrator.progress
        assert progress[SourceRole.ORIGINALS].files_copied == 1
        assert progress[SourceRole.PICTURES].total_files == 0
        progress[SourceRole.ORIGINALS].files_copied = 99
        assert orchestrator.progress[SourceRole.ORIGINALS].files_copied == 1

    def test_overlapping_request_ignored(
        self,
        settings: SyncSettings,
        history: SyncHistoryStore,
    ) -> None:
        """A request while a run is in flight should return None."""
        started = threading.Event()
        release = threading.Event()
        orchestrator = SyncOrchestrator(
            settings,
            history,
            worker_factory=lambda: BlockingWorker(started, release),
        )
        results: list[SyncRecord | None] = []
        thread = threading.Thread(target=lambda: results.append(orchestrator.run_sync()))
        thread.start()

        try:
            assert started.wait(timeout=5.0)
            assert orchestrator.is_running
            assert orchestrator.state == SyncState.SYNCING
            assert orchestrator.run_sync() is None
        finally:
            release.set()
            thread.join(timeout=5.0)

        assert len(results) == 1
        assert results[0].success is True
        assert len(history) == 1
        assert not orchestrator.is_running

    def test_folders_sync_concurrently(
        self,
        settings: SyncSettings,
        history: SyncHistoryStore,
        library: Path,
        make_files,
    ) -> None:
        """Both folder workers should be running at the same time."""
        make_files(library / "Originals", "a.jpg")
        make_files(library / "Pictures", "b.jpg")
        barrier = threading.Barrier(2, timeout=5.0)
        orchestrator = SyncOrchestrator(
            settings,
            history,
            worker_factory=lambda: RendezvousWorker(barrier),
        )

        record = orchestrator.run_sync()

        assert record.success is True, record.error_message
        assert record.files_transferred == 2
        assert not barrier.broken

    def test_unexpected_worker_error(
        self,
        settings: SyncSettings,
        history: SyncHistoryStore,
        library: Path,
        make_files,
    ) -> None:
        """Any worker exception should become a failed record."""
        make_files(library / "Originals", "a.jpg")

        class ExplodingWorker(FolderSyncWorker):
            def sync(self, source_folder, dest_folder, on_progress=None):
                raise RuntimeError("unexpected")

        orchestrator = SyncOrchestrator(settings, history, worker_factory=ExplodingWorker)

        record = orchestrator.run_sync()

        assert record.success is False
        assert "unexpected" in record.error_message
