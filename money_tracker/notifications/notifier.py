"""
Notifier

DESIGN DECISION: Every operation outcome the user should see goes
through a single Notifier. This provides:
1. One place where toasts are produced
2. A structured log line for every user-visible event
3. A UI-agnostic sink so any host can render notifications

The notifier:
- Is async so a sink may do I/O
- Gracefully handles sink failures (never crashes the calling operation)
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from money_tracker.models.notification import (
    Notification,
    NotificationBuilder,
    NotificationSeverity,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output to stderr at ``level``.

    Call once from the entrypoint; library code only calls get_logger.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class NotificationSink(ABC):
    """Where notifications are delivered (toast queue, websocket, ...)."""

    @abstractmethod
    async def deliver(self, notification: Notification) -> None:
        pass


class CollectingNotificationSink(NotificationSink):
    """
    Keeps delivered notifications in memory.

    A host UI drains them with ``drain()`` after each operation.
    """

    def __init__(self):
        self.notifications: list[Notification] = []

    async def deliver(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def drain(self) -> list[Notification]:
        drained, self.notifications = self.notifications, []
        return drained


class Notifier:
    """
    Central notification service.

    Sends notifications both to:
    1. Structured local log (for debugging)
    2. The configured sink (for the user)
    """

    def __init__(
        self,
        sink: Optional[NotificationSink] = None,
    ):
        """
        Initialize notifier.

        Args:
            sink: Delivery target for notifications.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger(__name__)

    async def notify(self, notification: Notification) -> bool:
        """
        Emit a notification.

        Always logs locally. Delivers to the sink if available.

        Returns True if delivery succeeded (or no sink configured).
        """
        log_dict = notification.to_log_dict()

        if notification.severity == NotificationSeverity.ERROR:
            self._logger.error("notification", **log_dict)
        elif notification.severity == NotificationSeverity.WARNING:
            self._logger.warning("notification", **log_dict)
        else:
            self._logger.info("notification", **log_dict)

        if self._sink:
            try:
                await self._sink.deliver(notification)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "notification_delivery_failed",
                    error=str(e),
                    notification_id=str(notification.notification_id),
                )
                return False

        return True

    async def remote_error(self, operation: str, error: Exception) -> None:
        """Report a failed remote read/write."""
        await self.notify(NotificationBuilder.remote_error(operation, str(error)))

    async def auth_required(self, action: str) -> None:
        await self.notify(NotificationBuilder.auth_required(action))
