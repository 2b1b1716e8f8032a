"""
Notification Center - transient user-facing messages.

Host failures reach the UI as error envelopes; they are surfaced here rather
than raised. Notifications auto-expire after their duration and the queue is
bounded, so an unattended session never grows without limit.

Usage:
    notifications = NotificationCenter()
    notifications.push("Dashboard created", NotificationType.SUCCESS)
    for note in notifications.drain():
        print(note.message)
"""

import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class NotificationType:
    """Notification levels."""

    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    message: str
    type: str = NotificationType.INFO
    duration: float = 3.0  # seconds
    timestamp: float = field(default_factory=time.time)

    def is_expired(self, now: float | None = None) -> bool:
        return ((now or time.time()) - self.timestamp) >= self.duration


class NotificationCenter:
    """Bounded queue of transient notifications with optional listeners."""

    def __init__(self, max_items: int = 20, default_duration: float = 3.0):
        self.default_duration = default_duration
        self._items: deque[Notification] = deque(maxlen=max_items)
        self._listeners: list[Callable[[Notification], None]] = []

    def __len__(self) -> int:
        return len(self._items)

    def push(
        self, message: str, notification_type: str = NotificationType.INFO, duration: float | None = None
    ) -> Notification:
        notification = Notification(
            message=message,
            type=notification_type,
            duration=self.default_duration if duration is None else duration,
        )
        self._items.append(notification)

        log = logger.error if notification_type == NotificationType.ERROR else logger.info
        log(f"[{notification_type}] {message}")

        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.error(f"Error in notification listener: {e}")
        return notification

    def active(self) -> list[Notification]:
        """Notifications that have not expired yet."""
        now = time.time()
        return [n for n in self._items if not n.is_expired(now)]

    def drain(self) -> list[Notification]:
        """Return and clear every queued notification."""
        items = list(self._items)
        self._items.clear()
        return items

    def subscribe(self, listener: Callable[[Notification], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
