"""UI process: session orchestration and notifications."""

from .notifications import Notification, NotificationCenter, NotificationType
from .session import DashboardSession

__all__ = ["DashboardSession", "Notification", "NotificationCenter", "NotificationType"]
