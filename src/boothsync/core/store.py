"""Key-value persistence for settings and sync history.

This module provides:
- KeyValueStore: Protocol implemented by every persistence backend
- JsonFileStore: JSON file backend (~/.boothsync/config.json)
- MemoryStore: In-process backend for embedding and tests

Values must be JSON-serializable. Each ``set`` call persists immediately,
so callers never need an explicit save step. ``update`` is the
read-modify-write primitive for values that several processes append to.
"""

from __future__ import annotations

import fcntl
import json
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Persistence port used by settings and history."""

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for key, or default."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a value and persist it."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        ...

    def update(self, key: str, func: Callable[[Any], Any]) -> Any:
        """Replace the value of key with func(current value) atomically.

        Returns:
            The new value.
        """
        ...


class MemoryStore:
    """Dictionary-backed store that never touches the disk."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def update(self, key: str, func: Callable[[Any], Any]) -> Any:
        with self._lock:
            value = func(self._data.get(key))
            self._data[key] = value
            return value

    def as_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the stored data."""
        with self._lock:
            return dict(self._data)


class JsonFileStore:
    """Store backed by a single JSON object on disk.

    The file is shared by every boothsync process (a long-running
    ``watch`` and one-shot commands), so each call re-reads it, and each
    mutation is a read-modify-write of a single key under an exclusive
    ``flock`` on a sibling ``.lock`` file. A missing file is an empty
    store; an unreadable or corrupt file is logged and also treated as
    empty.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Path to the JSON file. Parent directories are created
                on first write.
        """
        self._path = Path(path)
        self._lock_path = self._path.with_name(self._path.name + ".lock")
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """Get the backing file path."""
        return self._path

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the in-process lock and an exclusive lock on the lock file."""
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._lock_path, "a") as lock_file:
                fcntl.flock(lock_file, fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Failed to load settings from %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", self._path)
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.replace(self._path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._locked():
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> None:
        with self._locked():
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)

    def update(self, key: str, func: Callable[[Any], Any]) -> Any:
        with self._locked():
            data = self._load()
            value = func(data.get(key))
            data[key] = value
            self._save(data)
            return value
