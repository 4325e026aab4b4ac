"""Shared types for boothsync.

This module defines enums used by the engine, the scheduler and the CLI.
"""

from __future__ import annotations

from enum import Enum


class SyncState(str, Enum):
    """Sync state of the orchestrator.

    Tells an idle engine from one that is copying or whose last run failed.
    """

    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"
