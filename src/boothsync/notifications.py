"""Desktop notifications for BoothSync.

This module provides:
- send_notification: Native OS notifications (macOS notification center,
  Linux notify-send)
- notify_sync_complete / notify_error: Messages for finished runs
- NotificationObserver: Sync observer that reports finished runs

Each backend only builds a command line; running it and handling a missing
or failing tool is shared.
"""

from __future__ import annotations

import logging
import platform
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto

from boothsync.engine.types import SyncCompleted, SyncEvent, SyncFailed

logger = logging.getLogger(__name__)

APP_NAME = "BoothSync"


class NotificationType(Enum):
    """Type of notification."""

    INFO = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass
class Notification:
    """A notification to display."""

    title: str
    message: str
    type: NotificationType = NotificationType.INFO


def _applescript_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _macos_command(notification: Notification) -> list[str]:
    script = (
        f"display notification {_applescript_string(notification.message)} "
        f"with title {_applescript_string(notification.title)}"
    )
    return ["osascript", "-e", script]


def _linux_command(notification: Notification) -> list[str]:
    urgency = "critical" if notification.type == NotificationType.ERROR else "normal"
    return [
        "notify-send",
        "--urgency", urgency,
        "--app-name", APP_NAME,
        notification.title,
        notification.message,
    ]


_BACKENDS: dict[str, Callable[[Notification], list[str]]] = {
    "Darwin": _macos_command,
    "Linux": _linux_command,
}


def send_notification(notification: Notification) -> bool:
    """Send a system notification.

    Args:
        notification: The notification to send.

    Returns:
        True if notification was sent, False if failed or unavailable.
    """
    system = platform.system()
    build_command = _BACKENDS.get(system)
    if build_command is None:
        logger.warning("Notifications not supported on %s", system)
        return False

    command = build_command(notification)
    try:
        subprocess.run(command, capture_output=True, check=True)
    except FileNotFoundError:
        logger.debug("%s not found", command[0])
        return False
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug("Notification via %s failed: %s", command[0], e)
        return False
    return True


def notify_sync_complete(files_copied: int) -> bool:
    """Announce a run that copied something. Runs with nothing new stay silent."""
    if files_copied == 0:
        return False

    noun = "photo" if files_copied == 1 else "photos"
    return send_notification(Notification(
        title=f"{APP_NAME} - Sync Complete",
        message=f"{files_copied} {noun} copied",
    ))


def notify_error(message: str) -> bool:
    """Announce a failed run."""
    return send_notification(Notification(
        title=f"{APP_NAME} - Sync Failed",
        message=message,
        type=NotificationType.ERROR,
    ))


class NotificationObserver:
    """Sync observer that notifies on completed and failed runs."""

    def __call__(self, event: SyncEvent) -> None:
        if isinstance(event, SyncCompleted):
            notify_sync_complete(event.total_copied)
        elif isinstance(event, SyncFailed):
            notify_error(event.error_message)
