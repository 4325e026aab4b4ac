"""Persistent, bounded history of sync runs.

Records are kept newest-first and capped at MAX_HISTORY entries; the
oldest entries are dropped when a new record overflows the cap. The list
is stored as serialized records under the ``sync_history`` key of the
settings store and written back on every mutation.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from boothsync.engine.types import SyncRecord

if TYPE_CHECKING:
    from boothsync.core.store import KeyValueStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "sync_history"
MAX_HISTORY = 50


class SyncHistoryStore:
    """Newest-first log of SyncRecord backed by a KeyValueStore."""

    def __init__(self, store: KeyValueStore, max_records: int = MAX_HISTORY) -> None:
        """Load the history from a store.

        Args:
            store: Persistence backend.
            max_records: Maximum number of records kept.
        """
        if max_records < 1:
            raise ValueError("max_records must be positive")
        self._store = store
        self._max_records = max_records
        self._lock = threading.Lock()
        self._records: list[SyncRecord] = self._load()

    def _load(self) -> list[SyncRecord]:
        return self._parse(self._store.get(HISTORY_KEY))

    def _parse(self, raw: object) -> list[SyncRecord]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Failed to load sync history: expected a list")
            return []

        records: list[SyncRecord] = []
        for item in raw:
            try:
                records.append(SyncRecord.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Dropping malformed history entry %r: %s", item, e)
        return records[: self._max_records]

    @property
    def max_records(self) -> int:
        """Get the history cap."""
        return self._max_records

    @property
    def records(self) -> list[SyncRecord]:
        """Get a copy of the records, newest first."""
        with self._lock:
            return list(self._records)

    @property
    def latest(self) -> SyncRecord | None:
        """Get the most recent record."""
        with self._lock:
            return self._records[0] if self._records else None

    @property
    def success_count(self) -> int:
        """Get the number of successful runs in the history."""
        with self._lock:
            return sum(1 for r in self._records if r.success)

    @property
    def failure_count(self) -> int:
        """Get the number of failed runs in the history."""
        with self._lock:
            return sum(1 for r in self._records if not r.success)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def add(self, record: SyncRecord) -> None:
        """Insert a record at the front and drop overflow.

        The stored list is re-read first, so records written by another
        process sharing the store are kept.
        """

        def prepend(raw: object) -> list[dict[str, Any]]:
            records = [record, *self._parse(raw)][: self._max_records]
            self._records = records
            return [r.to_dict() for r in records]

        with self._lock:
            self._store.update(HISTORY_KEY, prepend)
        logger.debug("Recorded sync run %s (%d in history)", record.id, len(self._records))

    def clear(self) -> None:
        """Remove every record."""
        with self._lock:
            self._records = []
            self._store.set(HISTORY_KEY, [])
        logger.info("Sync history cleared")
