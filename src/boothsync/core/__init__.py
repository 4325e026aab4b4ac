"""Core module - Settings, persistence and shared types."""

from boothsync.core.config import (
    DEFAULT_APP_FOLDER,
    DEFAULT_COPY_DELAY,
    SyncInterval,
    SyncSettings,
    get_config_dir,
    get_config_file,
    icloud_drive_directory,
    photo_booth_library,
)
from boothsync.core.store import JsonFileStore, KeyValueStore, MemoryStore
from boothsync.core.types import SyncState

__all__ = [
    # Config
    "DEFAULT_APP_FOLDER",
    "DEFAULT_COPY_DELAY",
    "SyncInterval",
    "SyncSettings",
    "get_config_dir",
    "get_config_file",
    "icloud_drive_directory",
    "photo_booth_library",
    # Store
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    # Types
    "SyncState",
]
