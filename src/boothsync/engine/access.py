"""Directory access checks performed before a sync run.

This module provides:
- AccessProvider: Protocol consulted by the orchestrator
- AccessGrant: Protocol granting access to a single path
- AccessHandle: Proof that a path was granted
- FilesystemAccess: Permission checks based on os.access

Platform-specific grants (security-scoped bookmarks, sandbox tokens) can be
plugged in by implementing AccessProvider and AccessGrant. The engine only
needs to know whether access was granted.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from boothsync.engine.types import PermissionDenied

logger = logging.getLogger(__name__)


class AccessProvider(Protocol):
    """Grants the engine access to the directories of a run."""

    def ensure_access(self, paths: Iterable[Path]) -> bool:
        """Return True if every path can be used by the run."""
        ...


@dataclass(frozen=True)
class AccessHandle:
    """A granted path and the kind of access that was checked."""

    path: Path
    writable: bool


class AccessGrant(Protocol):
    """Grants access to one directory, raising PermissionDenied on refusal."""

    def acquire(self, path: Path) -> AccessHandle: ...


def _nearest_existing(path: Path) -> Path | None:
    for candidate in (path, *path.parents):
        if candidate.exists():
            return candidate
    return None


class FilesystemAccess:
    """Access provider backed by plain filesystem permissions.

    Paths listed in ``writable`` must be writable, or creatable under their
    nearest existing ancestor. Every other path must be readable and
    listable. Paths that do not exist and are not writable targets are
    granted: a missing source folder is handled by the orchestrator, not
    reported as a permission problem.
    """

    def __init__(self, writable: Iterable[Path] = ()) -> None:
        self._writable = {Path(p) for p in writable}

    def acquire(self, path: Path) -> AccessHandle:
        """Check access to a single path.

        Raises:
            PermissionDenied: If the path cannot be used.
        """
        path = Path(path)
        if path in self._writable:
            target = _nearest_existing(path)
            if target is None or not os.access(target, os.W_OK | os.X_OK):
                raise PermissionDenied([path])
            return AccessHandle(path=path, writable=True)

        if path.exists() and not os.access(path, os.R_OK | os.X_OK):
            raise PermissionDenied([path])
        return AccessHandle(path=path, writable=False)

    def ensure_access(self, paths: Iterable[Path]) -> bool:
        denied: list[Path] = []
        for path in paths:
            try:
                self.acquire(path)
            except PermissionDenied as e:
                denied.extend(e.paths)

        if denied:
            logger.warning("Access denied to: %s", ", ".join(str(p) for p in denied))
            return False
        return True
