"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError, PermissionDenied, NoSourceFolders, DirectoryUnreadable,
  DestinationUnavailable, CopyFailed: Exception classes
- SourceRole, SourceFolder: Source folder description
- CopyPlan: What a folder worker is about to copy
- SyncStats: Per-folder progress counter
- SyncRecord: Outcome of one sync run
- SyncStarted, SyncProgress, SyncCompleted, SyncFailed: Observer events
- Type aliases for callbacks
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any


class SyncError(Exception):
    """Base exception for sync errors."""


class PermissionDenied(SyncError):
    """Access to one or more required directories was refused."""

    def __init__(self, paths: Sequence[Path]) -> None:
        self.paths = list(paths)
        joined = ", ".join(str(p) for p in self.paths)
        super().__init__(f"Permission denied: {joined}" if joined else "Permission denied")


class NoSourceFolders(SyncError):
    """Neither source directory exists."""

    def __init__(self) -> None:
        super().__init__("No Photo Booth directories available")


class DirectoryUnreadable(SyncError):
    """A source directory could not be listed.

    Attributes:
        path: Directory that failed.
        cause: Underlying OS error, if any.
    """

    def __init__(self, path: Path, cause: BaseException | None = None) -> None:
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Cannot read directory {path}{detail}")


class DestinationUnavailable(SyncError):
    """A destination folder could not be created.

    Attributes:
        path: Directory that could not be created.
        cause: Underlying OS error.
    """

    def __init__(self, path: Path, cause: BaseException | None = None) -> None:
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Cannot create destination folder {path}{detail}")


class CopyFailed(SyncError):
    """A single file could not be copied.

    Attributes:
        filename: Name of the file that failed.
        cause: Underlying OS error.
        files_copied: Files newly copied by the worker before the failure.
    """

    def __init__(
        self,
        filename: str,
        cause: BaseException | None = None,
        files_copied: int = 0,
    ) -> None:
        self.filename = filename
        self.cause = cause
        self.files_copied = files_copied
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to copy {filename}{detail}")


class SourceRole(str, Enum):
    """Role of a source folder. The value is the destination subfolder name."""

    ORIGINALS = "Originals"
    PICTURES = "Pictures"


@dataclass(frozen=True)
class SourceFolder:
    """A source directory and its role."""

    path: Path
    role: SourceRole


@dataclass
class CopyPlan:
    """Files of one source folder that still need copying.

    Attributes:
        source_folder: Directory being mirrored.
        dest_folder: Mirror directory.
        total_files: Number of enumerated source files (progress denominator).
        files_to_copy: Filenames missing at the destination, in enumeration order.
    """

    source_folder: Path
    dest_folder: Path
    total_files: int
    files_to_copy: list[str] = field(default_factory=list)

    @property
    def already_present(self) -> int:
        """Get the number of source files already at the destination."""
        return self.total_files - len(self.files_to_copy)

    @property
    def is_empty(self) -> bool:
        """Check if there is nothing to copy."""
        return not self.files_to_copy


@dataclass
class SyncStats:
    """Progress of one source folder during a run."""

    files_copied: int = 0
    total_files: int = 0

    @property
    def percent(self) -> float:
        """Get progress percentage."""
        if self.total_files == 0:
            return 100.0
        return (self.files_copied / self.total_files) * 100

    def snapshot(self) -> SyncStats:
        """Return an independent copy for observers."""
        return replace(self)


# Type alias for per-folder progress callback
ProgressCallback = Callable[[SyncStats], None]


@dataclass(frozen=True)
class SyncRecord:
    """Outcome of one sync run.

    Attributes:
        date: When the run finished.
        files_transferred: Files newly copied during the run.
        success: Whether every folder synced without error.
        error_message: Why the run failed.
        id: Unique identifier.
    """

    date: datetime
    files_transferred: int
    success: bool
    error_message: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def create(
        cls,
        files_transferred: int,
        success: bool,
        error_message: str | None = None,
    ) -> SyncRecord:
        """Create a record dated now (UTC)."""
        return cls(
            date=datetime.now(UTC),
            files_transferred=files_transferred,
            success=success,
            error_message=error_message,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "files_transferred": self.files_transferred,
            "success": self.success,
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncRecord:
        """Deserialize a record produced by to_dict().

        Raises:
            KeyError, ValueError, TypeError: If the data is malformed.
        """
        date = datetime.fromisoformat(data["date"])
        if date.tzinfo is None:
            date = date.replace(tzinfo=UTC)
        return cls(
            id=str(data["id"]),
            date=date,
            files_transferred=int(data["files_transferred"]),
            success=bool(data["success"]),
            error_message=data.get("error_message"),
        )


# =============================================================================
# Observer Events
# =============================================================================


@dataclass(frozen=True)
class SyncStarted:
    """A run started. totals holds a zeroed SyncStats per active folder."""

    totals: dict[SourceRole, SyncStats]


@dataclass(frozen=True)
class SyncProgress:
    """Current stats of every active folder after one of them advanced."""

    stats: dict[SourceRole, SyncStats]
    role: SourceRole

    @property
    def files_copied(self) -> int:
        """Get files processed across all folders."""
        return sum(s.files_copied for s in self.stats.values())

    @property
    def total_files(self) -> int:
        """Get total files across all folders."""
        return sum(s.total_files for s in self.stats.values())


@dataclass(frozen=True)
class SyncCompleted:
    """A run finished successfully."""

    total_copied: int
    record: SyncRecord


@dataclass(frozen=True)
class SyncFailed:
    """A run failed."""

    error_message: str
    record: SyncRecord


SyncEvent = SyncStarted | SyncProgress | SyncCompleted | SyncFailed

# Type alias for observers subscribed to the orchestrator
SyncObserver = Callable[[SyncEvent], None]
