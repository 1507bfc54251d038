"""
Boundary Validation

DESIGN DECISION: User input is validated BEFORE any store is touched.
A rejected draft or patch produces no state change and no store call;
the caller turns the error into a "validation failed" notification.

TRANSACTIONS:
- amount must be a finite number greater than zero
- an expense needs a category (income is always filed under "other")
- the note is bounded in length

CATEGORIES:
- the name must be non-empty
- the name must not collide, case-insensitively, with any existing
  default or custom category (a rename may keep its own name)

IMPORTANT: Validation NEVER silently fixes input. It rejects it.
"""

from decimal import Decimal
from typing import Iterable, Optional

from money_tracker.config import AppSettings, get_settings
from money_tracker.models.transaction import (
    CategoryDraft,
    CategoryPatch,
    TransactionDraft,
    TransactionPatch,
    TransactionType,
)


class InputValidationError(Exception):
    """Input rejected at the boundary."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class TransactionValidationError(InputValidationError):
    """A transaction draft or patch was rejected."""
    pass


class CategoryValidationError(InputValidationError):
    """A category draft or patch was rejected."""
    pass


class CategoryNameConflictError(CategoryValidationError):
    """The name is already taken (case-insensitively)."""

    def __init__(self, name: str):
        self.name = name
        super().__init__("name", f'A category with the name "{name}" already exists')


class TransactionValidator:
    """Checks transaction input against the persisted-record rules."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _check_amount(self, amount: Decimal) -> None:
        if not amount.is_finite():
            raise TransactionValidationError("amount", "Amount must be a number")
        if amount <= 0:
            raise TransactionValidationError("amount", "Amount must be greater than zero")

    def _check_note(self, note: Optional[str]) -> None:
        limit = self._settings.max_note_length
        if note and len(note) > limit:
            raise TransactionValidationError(
                "note", f"Note must be at most {limit} characters"
            )

    def validate_draft(self, draft: TransactionDraft) -> None:
        """
        Raises:
            TransactionValidationError: On the first rule the draft breaks
        """
        self._check_amount(draft.amount)
        if draft.type == TransactionType.EXPENSE and not draft.category:
            raise TransactionValidationError("category", "Please select a category")
        self._check_note(draft.note)

    def validate_patch(self, patch: TransactionPatch) -> None:
        """Only the fields the patch sets are checked."""
        fields = patch.model_fields_set
        if "amount" in fields:
            if patch.amount is None:
                raise TransactionValidationError("amount", "Amount is required")
            self._check_amount(patch.amount)
        if "category" in fields and not patch.category:
            raise TransactionValidationError("category", "Please select a category")
        if "type" in fields and patch.type is None:
            raise TransactionValidationError("type", "Type is required")
        if "date" in fields and patch.date is None:
            raise TransactionValidationError("date", "Date is required")
        if "note" in fields:
            self._check_note(patch.note)


class CategoryValidator:
    """Checks custom category input against the current category set."""

    @staticmethod
    def _collides(name: str, existing: Iterable[str], own_name: Optional[str] = None) -> bool:
        candidate = name.casefold()
        own = own_name.casefold() if own_name else None
        return any(
            other.casefold() == candidate
            for other in existing
            if other.casefold() != own
        )

    def validate_draft(self, draft: CategoryDraft, existing_names: Iterable[str]) -> None:
        """
        Raises:
            CategoryValidationError: If the name is empty
            CategoryNameConflictError: If the name is already taken
        """
        if not draft.name:
            raise CategoryValidationError("name", "Please enter a category name")
        if self._collides(draft.name, existing_names):
            raise CategoryNameConflictError(draft.name)

    def validate_patch(
        self,
        patch: CategoryPatch,
        existing_names: Iterable[str],
        current_name: str,
    ) -> None:
        if "name" not in patch.model_fields_set:
            return
        if not patch.name:
            raise CategoryValidationError("name", "Please enter a category name")
        if self._collides(patch.name, existing_names, own_name=current_name):
            raise CategoryNameConflictError(patch.name)
