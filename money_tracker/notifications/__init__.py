"""User-visible notifications package."""

from money_tracker.notifications.notifier import (
    CollectingNotificationSink,
    NotificationSink,
    Notifier,
    configure_logging,
)

__all__ = [
    "CollectingNotificationSink",
    "NotificationSink",
    "Notifier",
    "configure_logging",
]
