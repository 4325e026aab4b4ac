"""Sync engine - Enumeration, copying, orchestration, history and scheduling."""

from boothsync.engine.access import AccessGrant, AccessHandle, AccessProvider, FilesystemAccess
from boothsync.engine.history import MAX_HISTORY, SyncHistoryStore
from boothsync.engine.orchestrator import SyncOrchestrator, status_message
from boothsync.engine.scanner import enumerate_files, is_hidden, plan_copy
from boothsync.engine.scheduler import (
    AutoSyncScheduler,
    SchedulerState,
    compute_next_sync,
)
from boothsync.engine.types import (
    CopyFailed,
    CopyPlan,
    DestinationUnavailable,
    DirectoryUnreadable,
    NoSourceFolders,
    PermissionDenied,
    SourceFolder,
    SourceRole,
    SyncCompleted,
    SyncError,
    SyncEvent,
    SyncFailed,
    SyncObserver,
    SyncProgress,
    SyncRecord,
    SyncStarted,
    SyncStats,
)
from boothsync.engine.watcher import FolderWatcher, QuietPeriodHandler
from boothsync.engine.worker import FolderSyncWorker

__all__ = [
    # Access
    "AccessGrant",
    "AccessHandle",
    "AccessProvider",
    "FilesystemAccess",
    # History
    "MAX_HISTORY",
    "SyncHistoryStore",
    # Orchestrator
    "SyncOrchestrator",
    "status_message",
    # Scanner
    "enumerate_files",
    "is_hidden",
    "plan_copy",
    # Scheduler
    "AutoSyncScheduler",
    "SchedulerState",
    "compute_next_sync",
    # Types
    "CopyFailed",
    "CopyPlan",
    "DestinationUnavailable",
    "DirectoryUnreadable",
    "NoSourceFolders",
    "PermissionDenied",
    "SourceFolder",
    "SourceRole",
    "SyncCompleted",
    "SyncError",
    "SyncEvent",
    "SyncFailed",
    "SyncObserver",
    "SyncProgress",
    "SyncRecord",
    "SyncStarted",
    "SyncStats",
    # Watcher
    "FolderWatcher",
    "QuietPeriodHandler",
    # Worker
    "FolderSyncWorker",
]
