"""
Notification Models for Money Tracker

Every user-facing outcome of an operation (success, validation failure,
conflict, remote error) is represented as a Notification. The UI shows
them as toasts; the notifier also writes each one to the structured log.

DESIGN DECISION: Operations never raise to the UI. They either complete
a state change or produce a no-op plus a notification explaining why.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from money_tracker.models.transaction import utcnow


class NotificationKind(str, Enum):
    """
    Types of notifications we emit.

    Every operation outcome has its own kind.
    """
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    VALIDATION_FAILED = "validation_failed"

    # Local to remote migration
    SYNC_AVAILABLE = "sync_available"
    SYNC_COMPLETED = "sync_completed"
    SYNC_SKIPPED = "sync_skipped"
    SYNC_FAILED = "sync_failed"

    # Categories
    CATEGORY_CREATED = "category_created"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"
    CATEGORY_CONFLICT = "category_conflict"

    # Authentication
    AUTH_REQUIRED = "auth_required"
    SIGNED_IN = "signed_in"
    SIGNED_UP = "signed_up"
    SIGNED_OUT = "signed_out"
    AUTH_FAILED = "auth_failed"

    # Failures
    REMOTE_ERROR = "remote_error"
    LOCAL_STORAGE_ERROR = "local_storage_error"
    ASSISTANT_ERROR = "assistant_error"


class NotificationSeverity(str, Enum):
    """How the notification is presented."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """A single user-visible notification."""

    # Identity
    notification_id: UUID = Field(
        default_factory=uuid4,
        description="Unique notification identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the notification was raised (UTC)"
    )

    # Classification
    kind: NotificationKind
    severity: NotificationSeverity = NotificationSeverity.INFO

    # Content
    title: str = Field(..., max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)

    # Additional data (kind-specific)
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.severity == NotificationSeverity.ERROR

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "notification_id": str(self.notification_id),
            "timestamp": self.timestamp.isoformat(),
            "kind": self.kind.value,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "details": self.details,
        }


class NotificationBuilder:
    """
    Helper class to build notifications with the standard wording.

    Usage:
        note = NotificationBuilder.transaction_added(amount, category)
        note = NotificationBuilder.category_conflict("Food")
    """

    @staticmethod
    def transaction_added(amount: str, category: str) -> Notification:
        return Notification(
            kind=NotificationKind.TRANSACTION_ADDED,
            severity=NotificationSeverity.SUCCESS,
            title="Transaction added",
            description=f"{amount} for {category}",
            details={"amount": amount, "category": category},
        )

    @staticmethod
    def transaction_updated(transaction_id: UUID) -> Notification:
        return Notification(
            kind=NotificationKind.TRANSACTION_UPDATED,
            severity=NotificationSeverity.SUCCESS,
            title="Transaction updated",
            details={"transaction_id": str(transaction_id)},
        )

    @staticmethod
    def transaction_deleted(transaction_id: UUID) -> Notification:
        return Notification(
            kind=NotificationKind.TRANSACTION_DELETED,
            severity=NotificationSeverity.SUCCESS,
            title="Transaction deleted",
            details={"transaction_id": str(transaction_id)},
        )

    @staticmethod
    def validation_failed(field: str, message: str) -> Notification:
        return Notification(
            kind=NotificationKind.VALIDATION_FAILED,
            severity=NotificationSeverity.ERROR,
            title="Invalid input",
            description=message,
            details={"field": field},
        )

    @staticmethod
    def sync_available(pending_count: int) -> Notification:
        return Notification(
            kind=NotificationKind.SYNC_AVAILABLE,
            severity=NotificationSeverity.INFO,
            title="Local transactions found",
            description=(
                f"You have {pending_count} transaction(s) saved on this device. "
                "Sync them to your account or discard them."
            ),
            details={"pending_count": pending_count},
        )

    @staticmethod
    def sync_completed(inserted: int, duplicates: int) -> Notification:
        return Notification(
            kind=NotificationKind.SYNC_COMPLETED,
            severity=NotificationSeverity.SUCCESS,
            title="Sync complete",
            description=f"{inserted} transaction(s) synced to your account.",
            details={"inserted": inserted, "duplicates": duplicates},
        )

    @staticmethod
    def sync_skipped(discarded: int) -> Notification:
        return Notification(
            kind=NotificationKind.SYNC_SKIPPED,
            severity=NotificationSeverity.INFO,
            title="Local transactions discarded",
            details={"discarded": discarded},
        )

    @staticmethod
    def sync_failed(error_message: str) -> Notification:
        return Notification(
            kind=NotificationKind.SYNC_FAILED,
            severity=NotificationSeverity.ERROR,
            title="Sync failed",
            description="Your local transactions were kept. Please try again.",
            details={"error": error_message},
        )

    @staticmethod
    def category_created(name: str) -> Notification:
        return Notification(
            kind=NotificationKind.CATEGORY_CREATED,
            severity=NotificationSeverity.SUCCESS,
            title="Category created",
            description=f'Category "{name}" was created successfully.',
            details={"name": name},
        )

    @staticmethod
    def category_updated(name: Optional[str]) -> Notification:
        return Notification(
            kind=NotificationKind.CATEGORY_UPDATED,
            severity=NotificationSeverity.SUCCESS,
            title="Category updated",
            description="Your category was updated successfully.",
            details={"name": name},
        )

    @staticmethod
    def category_deleted(name: str) -> Notification:
        return Notification(
            kind=NotificationKind.CATEGORY_DELETED,
            severity=NotificationSeverity.SUCCESS,
            title="Category deleted",
            description="Your category was deleted successfully.",
            details={"name": name},
        )

    @staticmethod
    def category_conflict(name: str) -> Notification:
        return Notification(
            kind=NotificationKind.CATEGORY_CONFLICT,
            severity=NotificationSeverity.ERROR,
            title="Category already exists",
            description=f'A category with the name "{name}" already exists.',
            details={"name": name},
        )

    @staticmethod
    def auth_required(action: str) -> Notification:
        return Notification(
            kind=NotificationKind.AUTH_REQUIRED,
            severity=NotificationSeverity.ERROR,
            title="Authentication required",
            description=f"Please sign in to {action}.",
            details={"action": action},
        )

    @staticmethod
    def signed_in(email: Optional[str]) -> Notification:
        return Notification(
            kind=NotificationKind.SIGNED_IN,
            severity=NotificationSeverity.SUCCESS,
            title="Signed in successfully",
            description="Welcome back!",
            details={"email": email},
        )

    @staticmethod
    def signed_up(email: str) -> Notification:
        return Notification(
            kind=NotificationKind.SIGNED_UP,
            severity=NotificationSeverity.SUCCESS,
            title="Signed up successfully",
            description="Please check your email for verification!",
            details={"email": email},
        )

    @staticmethod
    def signed_out() -> Notification:
        return Notification(
            kind=NotificationKind.SIGNED_OUT,
            severity=NotificationSeverity.INFO,
            title="Signed out successfully",
        )

    @staticmethod
    def auth_failed(action: str, error_message: str) -> Notification:
        return Notification(
            kind=NotificationKind.AUTH_FAILED,
            severity=NotificationSeverity.ERROR,
            title=f"{action} failed",
            description=error_message,
            details={"action": action},
        )

    @staticmethod
    def remote_error(operation: str, error_message: str) -> Notification:
        return Notification(
            kind=NotificationKind.REMOTE_ERROR,
            severity=NotificationSeverity.ERROR,
            title=f"Error {operation}",
            description=f"Failed {operation}. Please try again.",
            details={"operation": operation, "error": error_message},
        )

    @staticmethod
    def local_storage_error(operation: str, error_message: str) -> Notification:
        return Notification(
            kind=NotificationKind.LOCAL_STORAGE_ERROR,
            severity=NotificationSeverity.ERROR,
            title="Could not save on this device",
            description=f"Failed {operation}.",
            details={"operation": operation, "error": error_message},
        )

    @staticmethod
    def assistant_error(error_message: str) -> Notification:
        return Notification(
            kind=NotificationKind.ASSISTANT_ERROR,
            severity=NotificationSeverity.ERROR,
            title="Assistant unavailable",
            description=error_message[:500],
        )
