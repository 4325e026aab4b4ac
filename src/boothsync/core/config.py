"""Configuration for boothsync.

This module provides:
- SyncInterval: Auto-sync interval choices
- SyncSettings: Explicit settings object handed to the engine
- get_config_dir / get_config_file: Location of the persisted settings

Settings are loaded from and saved to a KeyValueStore. Sync history is
persisted in the same store by SyncHistoryStore under its own key.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from boothsync.core.store import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_APP_FOLDER = "BoothSync"
DEFAULT_COPY_DELAY = 0.05


class SyncInterval(str, Enum):
    """How often the scheduler triggers a sync automatically."""

    NEVER = "Never"
    ON_NEW_PHOTOS = "When New Photos Added"
    EVERY_6_HOURS = "Every 6 Hours"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"

    @property
    def period(self) -> timedelta | None:
        """Get the fixed period, or None for NEVER and ON_NEW_PHOTOS."""
        return _PERIODS.get(self)

    @property
    def is_fixed(self) -> bool:
        """Check if this interval is timer-driven."""
        return self in _PERIODS

    @classmethod
    def parse(cls, value: str) -> SyncInterval:
        """Parse an interval from its value or member name.

        Accepts "Daily", "daily", "EVERY_6_HOURS", "every-6-hours", ...

        Raises:
            ValueError: If the value matches no interval.
        """
        for interval in cls:
            if value == interval.value:
                return interval
        key = value.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls[key]
        except KeyError:
            pass
        for interval in cls:
            if value.strip().lower() == interval.value.lower():
                return interval
        raise ValueError(f"Unknown sync interval: {value!r}")


_PERIODS: dict[SyncInterval, timedelta] = {
    SyncInterval.EVERY_6_HOURS: timedelta(hours=6),
    SyncInterval.DAILY: timedelta(days=1),
    SyncInterval.WEEKLY: timedelta(days=7),
    SyncInterval.MONTHLY: timedelta(days=30),
}


def get_config_dir() -> Path:
    """Get the configuration directory for BoothSync.

    Returns:
        $BOOTHSYNC_CONFIG_DIR if set, otherwise ~/.boothsync.
    """
    override = os.environ.get("BOOTHSYNC_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".boothsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def photo_booth_library() -> Path:
    """Get the default Photo Booth library directory."""
    return Path.home() / "Pictures" / "Photo Booth Library"


def icloud_drive_directory() -> Path:
    """Get the iCloud Drive directory of the current user."""
    return Path.home() / "Library" / "Mobile Documents" / "com~apple~CloudDocs"


def _parse_datetime(value: object) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        logger.warning("Ignoring invalid timestamp in settings: %r", value)
        return None


@dataclass
class SyncSettings:
    """Settings consulted by the orchestrator and the scheduler.

    Attributes:
        auto_sync_interval: When to sync automatically.
        use_custom_destination: Whether custom_destination_path replaces iCloud.
        custom_destination_path: User-chosen destination root.
        last_sync_date: Date of the last recorded run (success or failure).
        next_scheduled_sync: Next timer fire time, maintained by the scheduler.
            Runtime only, never persisted.
        originals_path: Source folder with untouched captures.
        pictures_path: Source folder with edited pictures.
        app_folder_name: Folder created under the destination root.
        copy_delay: Pause between two copied files, in seconds.
    """

    auto_sync_interval: SyncInterval = SyncInterval.NEVER
    use_custom_destination: bool = False
    custom_destination_path: Path | None = None
    last_sync_date: datetime | None = None
    next_scheduled_sync: datetime | None = field(default=None, compare=False)
    originals_path: Path = field(default_factory=lambda: photo_booth_library() / "Originals")
    pictures_path: Path = field(default_factory=lambda: photo_booth_library() / "Pictures")
    app_folder_name: str = DEFAULT_APP_FOLDER
    copy_delay: float = DEFAULT_COPY_DELAY

    def has_custom_destination(self) -> bool:
        """Check if a custom destination is enabled and configured."""
        return self.use_custom_destination and self.custom_destination_path is not None

    def destination_base_path(self) -> Path:
        """Get the destination root consulted at the start of each run."""
        if self.use_custom_destination and self.custom_destination_path is not None:
            return self.custom_destination_path
        return icloud_drive_directory()

    def app_folder(self) -> Path:
        """Get the top-level sync folder under the destination root."""
        return self.destination_base_path() / self.app_folder_name

    def to_dict(self) -> dict[str, object]:
        """Serialize the persisted fields."""
        return {
            "auto_sync_interval": self.auto_sync_interval.value,
            "use_custom_destination": self.use_custom_destination,
            "custom_destination_path": (
                str(self.custom_destination_path) if self.custom_destination_path else None
            ),
            "last_sync_date": self.last_sync_date.isoformat() if self.last_sync_date else None,
            "originals_path": str(self.originals_path),
            "pictures_path": str(self.pictures_path),
            "app_folder_name": self.app_folder_name,
            "copy_delay": self.copy_delay,
        }

    @classmethod
    def load(cls, store: KeyValueStore) -> SyncSettings:
        """Load settings from a store, falling back to defaults per key."""
        settings = cls()

        interval = store.get("auto_sync_interval")
        if interval:
            try:
                settings.auto_sync_interval = SyncInterval.parse(str(interval))
            except ValueError:
                logger.warning("Ignoring unknown auto sync interval: %r", interval)

        settings.use_custom_destination = bool(store.get("use_custom_destination", False))
        custom = store.get("custom_destination_path")
        settings.custom_destination_path = Path(custom).expanduser() if custom else None
        settings.last_sync_date = _parse_datetime(store.get("last_sync_date"))

        originals = store.get("originals_path")
        if originals:
            settings.originals_path = Path(originals).expanduser()
        pictures = store.get("pictures_path")
        if pictures:
            settings.pictures_path = Path(pictures).expanduser()

        app_folder = store.get("app_folder_name")
        if app_folder:
            settings.app_folder_name = str(app_folder)

        delay = store.get("copy_delay")
        if delay is not None:
            try:
                settings.copy_delay = max(float(delay), 0.0)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid copy delay: %r", delay)

        return settings

    def save(self, store: KeyValueStore) -> None:
        """Persist every field returned by to_dict()."""
        for key, value in self.to_dict().items():
            if value is None:
                store.delete(key)
            else:
                store.set(key, value)
