"""Source enumeration and copy planning.

This module provides:
- is_hidden: Hidden-entry policy shared with the watcher
- enumerate_files: Non-recursive listing of regular files in a folder
- plan_copy: Existence-based comparison against the destination

Deduplication is purely by filename: a file is considered synced as soon
as a same-named entry exists in the destination folder. Contents and
modification times are never compared, and every run re-checks every
source file against the destination.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from boothsync.engine.types import CopyPlan, DirectoryUnreadable

logger = logging.getLogger(__name__)


def is_hidden(name: str) -> bool:
    """Check if an entry name is hidden (dotfile)."""
    return name.startswith(".")


def enumerate_files(directory: Path) -> list[Path]:
    """List the regular files directly inside a directory.

    Hidden entries and subdirectories are skipped. Symlinks pointing at
    regular files are included. The result is sorted by name, which is
    the order files are copied in.

    Args:
        directory: Directory to list.

    Returns:
        Sorted list of file paths.

    Raises:
        DirectoryUnreadable: If the directory does not exist or cannot be listed.
    """
    files: list[Path] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if is_hidden(entry.name):
                    continue
                try:
                    if not entry.is_file():
                        continue
                except OSError as e:
                    logger.warning("Skipping %s: %s", entry.path, e)
                    continue
                files.append(Path(entry.path))
    except OSError as e:
        raise DirectoryUnreadable(Path(directory), e) from e

    files.sort(key=lambda p: p.name)
    logger.debug("Found %d files in %s", len(files), directory)
    return files


def plan_copy(source_folder: Path, dest_folder: Path) -> CopyPlan:
    """Compute which source files are missing at the destination.

    Args:
        source_folder: Directory being mirrored.
        dest_folder: Mirror directory (may not exist yet).

    Returns:
        CopyPlan with the total count and the ordered copy set.

    Raises:
        DirectoryUnreadable: If the source cannot be listed.
    """
    files = enumerate_files(source_folder)
    to_copy = [f.name for f in files if not os.path.lexists(dest_folder / f.name)]

    plan = CopyPlan(
        source_folder=source_folder,
        dest_folder=dest_folder,
        total_files=len(files),
        files_to_copy=to_copy,
    )
    logger.info(
        "%s: %d files, %d already present, %d to copy",
        source_folder,
        plan.total_files,
        plan.already_present,
        len(plan.files_to_copy),
    )
    return plan
