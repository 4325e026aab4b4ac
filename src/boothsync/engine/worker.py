"""Folder sync worker.

This module provides:
- FolderSyncWorker: Copies the missing files of one source folder

A worker runs on its own thread, driven by the orchestrator. It never
touches shared state directly: progress leaves the worker only through
the on_progress callback, which receives independent SyncStats snapshots.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import time
from pathlib import Path
from typing import TYPE_CHECKING

from boothsync.core.config import DEFAULT_COPY_DELAY
from boothsync.engine.scanner import plan_copy
from boothsync.engine.types import CopyFailed, DestinationUnavailable, SyncStats

if TYPE_CHECKING:
    from boothsync.engine.types import ProgressCallback

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".partial"


class FolderSyncWorker:
    """Mirrors one source folder into one destination folder.

    Usage:
        worker = FolderSyncWorker(copy_delay=0.05)
        copied = worker.sync(source, dest, on_progress=callback)
    """

    def __init__(self, copy_delay: float = DEFAULT_COPY_DELAY) -> None:
        """Initialize the worker.

        Args:
            copy_delay: Pause after each copied file, in seconds. Keeps the
                cloud upload daemon from being flooded.
        """
        self._copy_delay = max(copy_delay, 0.0)

    @property
    def copy_delay(self) -> float:
        """Get the inter-file delay in seconds."""
        return self._copy_delay

    def sync(
        self,
        source_folder: Path,
        dest_folder: Path,
        on_progress: ProgressCallback | None = None,
    ) -> int:
        """Copy every source file missing at the destination.

        Progress is reported once with the already-present count before
        copying starts, then after every copied file.

        Args:
            source_folder: Directory to mirror.
            dest_folder: Mirror directory, created with parents if missing.
            on_progress: Optional callback receiving SyncStats snapshots.

        Returns:
            Number of files newly copied (0 when nothing was new).

        Raises:
            DestinationUnavailable: If the destination cannot be created.
            DirectoryUnreadable: If the source cannot be listed.
            CopyFailed: On the first file that cannot be copied.
        """
        return self._do_sync(Path(source_folder), Path(dest_folder), on_progress)

    def _do_sync(
        self,
        source_folder: Path,
        dest_folder: Path,
        on_progress: ProgressCallback | None,
    ) -> int:
        logger.info("Started syncing from %s to %s", source_folder, dest_folder)

        try:
            dest_folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DestinationUnavailable(dest_folder, e) from e

        plan = plan_copy(source_folder, dest_folder)
        stats = SyncStats(files_copied=plan.already_present, total_files=plan.total_files)
        self._report(on_progress, stats)

        if plan.is_empty:
            logger.info("No new files to copy in %s", source_folder)
            return 0

        logger.info("%d new files will be copied from %s", len(plan.files_to_copy), source_folder)

        copied = 0
        for name in plan.files_to_copy:
            try:
                was_copied = self._copy_file(source_folder / name, dest_folder / name)
            except OSError as e:
                logger.error("Failed to copy %s: %s", name, e)
                raise CopyFailed(name, e, files_copied=copied) from e

            if was_copied:
                copied += 1
                logger.debug("Copied file: %s", name)
            stats.files_copied += 1
            self._report(on_progress, stats)

            if self._copy_delay > 0:
                time.sleep(self._copy_delay)

        logger.info("Completed syncing %d files from %s", copied, source_folder)
        return copied

    def _copy_file(self, source: Path, destination: Path) -> bool:
        """Copy one file without ever replacing an existing destination.

        The data is written to a hidden sibling first and renamed into
        place, so an interrupted copy never leaves a truncated file under
        the final name.

        Returns:
            True if the file was copied, False if the destination appeared
            in the meantime.
        """
        if os.path.lexists(destination):
            return False

        tmp_path = destination.with_name(f".{destination.name}{PARTIAL_SUFFIX}")
        try:
            shutil.copy2(source, tmp_path)
            if os.path.lexists(destination):
                tmp_path.unlink()
                return False
            os.replace(tmp_path, destination)
        except OSError:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise
        return True

    @staticmethod
    def _report(on_progress: ProgressCallback | None, stats: SyncStats) -> None:
        if on_progress:
            on_progress(stats.snapshot())
