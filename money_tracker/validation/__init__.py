"""Validation package."""

from money_tracker.validation.validator import (
    CategoryNameConflictError,
    CategoryValidationError,
    CategoryValidator,
    TransactionValidationError,
    TransactionValidator,
    InputValidationError,
)

__all__ = [
    "CategoryNameConflictError",
    "CategoryValidationError",
    "CategoryValidator",
    "TransactionValidationError",
    "TransactionValidator",
    "InputValidationError",
]
