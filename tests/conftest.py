"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from boothsync.core.config import SyncSettings
from boothsync.core.store import MemoryStore
from boothsync.engine.history import SyncHistoryStore


def _make_files(folder: Path, *names: str, content: str = "data") -> list[Path]:
    folder.mkdir(parents=True, exist_ok=True)
    paths = []
    for name in names:
        path = folder / name
        path.write_text(f"{content}:{name}")
        paths.append(path)
    return paths


@pytest.fixture(autouse=True)
def reset_boothsync_logger() -> Generator[None, None, None]:
    """Undo logger changes made by CLI commands."""
    yield
    boothsync_logger = logging.getLogger("boothsync")
    for handler in boothsync_logger.handlers[:]:
        boothsync_logger.removeHandler(handler)
        handler.close()
    boothsync_logger.setLevel(logging.NOTSET)
    boothsync_logger.propagate = True


@pytest.fixture
def make_files() -> Callable[..., list[Path]]:
    """Return a helper creating named files inside a folder."""
    return _make_files


@pytest.fixture
def library(tmp_path: Path) -> Path:
    """Create an empty Photo Booth library with both source folders."""
    lib = tmp_path / "Photo Booth Library"
    (lib / "Originals").mkdir(parents=True)
    (lib / "Pictures").mkdir(parents=True)
    return lib


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    """Create a destination root."""
    dest = tmp_path / "Cloud"
    dest.mkdir()
    return dest


@pytest.fixture
def settings(library: Path, destination: Path) -> SyncSettings:
    """Settings pointing at the test library and destination, without delay."""
    return SyncSettings(
        use_custom_destination=True,
        custom_destination_path=destination,
        originals_path=library / "Originals",
        pictures_path=library / "Pictures",
        copy_delay=0.0,
    )


@pytest.fixture
def store() -> MemoryStore:
    """Create an in-memory settings store."""
    return MemoryStore()


@pytest.fixture
def history(store: MemoryStore) -> SyncHistoryStore:
    """Create a history backed by the in-memory store."""
    return SyncHistoryStore(store)
