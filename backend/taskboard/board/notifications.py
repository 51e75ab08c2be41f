"""User-visible notifications raised by the board."""

from dataclasses import dataclass
from typing import Literal, Protocol

import structlog

from taskboard.exceptions import RateLimitError, TaskboardError

logger = structlog.get_logger()

Variant = Literal["default", "destructive"]


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: Variant = "default"


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LogNotifier:
    """Writes notifications to the log. Used when no UI is attached."""

    def notify(self, notification: Notification) -> None:
        log = logger.warning if notification.variant == "destructive" else logger.info
        log("notification", title=notification.title, description=notification.description)


class RecordingNotifier:
    """Keeps every notification in memory."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.notifications]


def failure_notification(label: str, error: TaskboardError) -> Notification:
    """Notification shown after a reverted optimistic change."""
    if isinstance(error, RateLimitError):
        return Notification(
            title="Too many requests",
            description=f"Could not {label}: you are making changes too quickly. Wait a moment and try again.",
            variant="destructive",
        )
    return Notification(
        title="Update failed",
        description=f"Failed to {label}. Your change was undone, please try again.",
        variant="destructive",
    )
