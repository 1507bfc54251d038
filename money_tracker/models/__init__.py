"""
Data Models Package

This package contains all Pydantic models used in Money Tracker.
All data flowing through the system must conform to these schemas.
"""

from money_tracker.models.transaction import (
    DEFAULT_CATEGORIES,
    MAX_NOTE_LENGTH,
    OTHER_CATEGORY,
    Category,
    CategoryDraft,
    CategoryPatch,
    CategoryStyle,
    MonthlySummary,
    Totals,
    Transaction,
    TransactionDraft,
    TransactionPatch,
    TransactionType,
)
from money_tracker.models.cache import (
    CachedResponse,
    RequestClass,
    cache_key,
)
from money_tracker.models.notification import (
    Notification,
    NotificationBuilder,
    NotificationKind,
    NotificationSeverity,
)
from money_tracker.models.session import AuthSession, ChatMessage

__all__ = [
    # Transaction models
    "DEFAULT_CATEGORIES",
    "MAX_NOTE_LENGTH",
    "OTHER_CATEGORY",
    "Category",
    "CategoryDraft",
    "CategoryPatch",
    "CategoryStyle",
    "MonthlySummary",
    "Totals",
    "Transaction",
    "TransactionDraft",
    "TransactionPatch",
    "TransactionType",
    # Cache models
    "CachedResponse",
    "RequestClass",
    "cache_key",
    # Notification models
    "Notification",
    "NotificationBuilder",
    "NotificationKind",
    "NotificationSeverity",
    # Session models
    "AuthSession",
    "ChatMessage",
]
