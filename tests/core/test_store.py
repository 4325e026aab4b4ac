"""Tests for key-value stores."""

from __future__ import annotations

import json
from pathlib import Path

from boothsync.core.store import JsonFileStore, MemoryStore


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_get_default(self) -> None:
        """Missing keys should return the default."""
        store = MemoryStore()
        assert store.get("missing") is None
        assert store.get("missing", 5) == 5

    def test_set_and_delete(self) -> None:
        """Should store and remove values."""
        store = MemoryStore()
        store.set("key", [1, 2])
        assert store.get("key") == [1, 2]
        store.delete("key")
        store.delete("key")
        assert store.get("key") is None


class TestJsonFileStore:
    """Tests for JsonFileStore."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """A missing file should behave as an empty store."""
        store = JsonFileStore(tmp_path / "config.json")
        assert store.get("anything") is None
        assert not (tmp_path / "config.json").exists()

    def test_set_persists_immediately(self, tmp_path: Path) -> None:
        """Every set should be written to disk."""
        path = tmp_path / "nested" / "config.json"
        store = JsonFileStore(path)
        store.set("auto_sync_interval", "Daily")

        assert json.loads(path.read_text()) == {"auto_sync_interval": "Daily"}
        assert JsonFileStore(path).get("auto_sync_interval") == "Daily"

    def test_delete_persists(self, tmp_path: Path) -> None:
        """Deleting a key should rewrite the file."""
        path = tmp_path / "config.json"
        store = JsonFileStore(path)
        store.set("a", 1)
        store.set("b", 2)
        store.delete("a")

        assert json.loads(path.read_text()) == {"b": 2}

    def test_corrupt_file_is_empty(self, tmp_path: Path) -> None:
        """A corrupt file should be ignored rather than crash."""
        path = tmp_path / "config.json"
        path.write_text("{not json")
        store = JsonFileStore(path)
        assert store.get("a") is None

        store.set("a", 1)
        assert json.loads(path.read_text()) == {"a": 1}

    def test_non_object_file_is_empty(self, tmp_path: Path) -> None:
        """A JSON file that is not an object should be ignored."""
        path = tmp_path / "config.json"
        path.write_text("[1, 2, 3]")
        assert JsonFileStore(path).get("0") is None

    def test_update(self, tmp_path: Path) -> None:
        """update should apply the function to the stored value."""
        store = JsonFileStore(tmp_path / "config.json")
        store.set("runs", [1])

        result = store.update("runs", lambda current: [0, *(current or [])])

        assert result == [0, 1]
        assert JsonFileStore(tmp_path / "config.json").get("runs") == [0, 1]

    def test_two_instances_share_the_file(self, tmp_path: Path) -> None:
        """A write from one instance should not revert keys written by another."""
        path = tmp_path / "config.json"
        watcher_store = JsonFileStore(path)
        cli_store = JsonFileStore(path)
        watcher_store.set("auto_sync_interval", "Daily")

        cli_store.set("auto_sync_interval", "Weekly")
        watcher_store.set("last_sync_date", "2026-10-18T12:00:00+00:00")

        reloaded = JsonFileStore(path)
        assert reloaded.get("auto_sync_interval") == "Weekly"
        assert reloaded.get("last_sync_date") == "2026-10-18T12:00:00+00:00"
        assert watcher_store.get("auto_sync_interval") == "Weekly"

    def test_delete_keeps_other_writers_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        first = JsonFileStore(path)
        second = JsonFileStore(path)
        first.set("custom_destination_path", "/tmp/dest")

        second.set("copy_delay", 0.1)
        first.delete("custom_destination_path")

        assert json.loads(path.read_text()) == {"copy_delay": 0.1}


class TestMemoryStoreUpdate:
    """Tests for MemoryStore.update."""

    def test_update_missing_key(self) -> None:
        store = MemoryStore()
        assert store.update("count", lambda current: (current or 0) + 1) == 1
        assert store.get("count") == 1
