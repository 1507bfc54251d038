"""
Tests for Money Tracker models

Test strategy:
1. Unit tests for individual components (models, validators)
2. Integration tests for flows (with in-memory or mocked collaborators)
3. No real network calls in tests (httpx.MockTransport)
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import httpx

from money_tracker.models.cache import CachedResponse, RequestClass, cache_key
from money_tracker.models.notification import (
    NotificationBuilder,
    NotificationKind,
    NotificationSeverity,
)
from money_tracker.models.session import AuthSession, ChatMessage
from money_tracker.models.transaction import (
    DEFAULT_CATEGORIES,
    OTHER_CATEGORY,
    Category,
    CategoryPatch,
    Totals,
    Transaction,
    TransactionDraft,
    TransactionPatch,
    TransactionType,
)


class TestTransactionModels:
    """Tests for transaction-related Pydantic models."""

    def test_transaction_creation_assigns_id_and_date(self):
        """A new transaction gets a unique id and a timezone-aware date."""
        first = Transaction(amount=Decimal("50000"), category="food", type=TransactionType.EXPENSE)
        second = Transaction(amount=Decimal("50000"), category="food", type=TransactionType.EXPENSE)
        assert first.id != second.id
        assert first.date.tzinfo is not None

    def test_transaction_rejects_non_positive_amount(self):
        """Zero and negative amounts are never persisted."""
        with pytest.raises(ValueError):
            Transaction(amount=Decimal("0"), category="food", type=TransactionType.EXPENSE)
        with pytest.raises(ValueError):
            Transaction(amount=Decimal("-5"), category="food", type=TransactionType.EXPENSE)

    def test_transaction_note_is_bounded(self):
        with pytest.raises(ValueError):
            Transaction(
                amount=Decimal("1"),
                category="food",
                type=TransactionType.EXPENSE,
                note="x" * 129,
            )

    def test_empty_note_becomes_none(self):
        transaction = Transaction(
            amount=Decimal("1"), category="food", type=TransactionType.EXPENSE, note="  "
        )
        assert transaction.note is None

    def test_naive_date_is_treated_as_utc(self):
        transaction = Transaction(
            amount=Decimal("1"),
            category="food",
            type=TransactionType.EXPENSE,
            date=datetime(2024, 1, 1, 12, 0),
        )
        assert transaction.date == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_storage_dict_uses_iso_date_and_plain_amount(self):
        """Local storage keeps the date as an ISO-8601 string."""
        transaction = Transaction(
            amount=Decimal("50000"),
            category="food",
            type=TransactionType.EXPENSE,
            date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            note="lunch",
        )
        record = transaction.to_storage_dict()
        assert record["amount"] == 50000
        assert record["type"] == "expense"
        assert record["date"].startswith("2024-01-01T00:00:00")
        assert record["id"] == str(transaction.id)

        restored = Transaction.from_record(record)
        assert restored.id == transaction.id
        assert restored.date == transaction.date
        assert restored.amount == transaction.amount

    def test_remote_record_carries_owner(self):
        transaction = Transaction(amount=Decimal("10"), category="food", type=TransactionType.EXPENSE)
        record = transaction.to_remote_record("user-1")
        assert record["user_id"] == "user-1"

    def test_from_record_ignores_unknown_columns(self):
        record = {
            "id": str(uuid4()),
            "amount": 1500.0,
            "category": "transport",
            "type": "expense",
            "date": "2024-03-01T08:30:00+00:00",
            "note": None,
            "user_id": "user-1",
            "created_at": "2024-03-01T08:30:01+00:00",
        }
        transaction = Transaction.from_record(record)
        assert transaction.amount == Decimal("1500")
        assert transaction.category == "transport"


class TestDraftsAndPatches:
    """Tests for user input models."""

    def test_draft_accepts_any_amount(self):
        """Drafts are unvalidated; the validator rejects bad amounts."""
        draft = TransactionDraft(amount=Decimal("-5"), category="food")
        assert draft.amount == Decimal("-5")

    def test_income_draft_is_filed_under_other(self):
        draft = TransactionDraft(amount=Decimal("100000"), category="salary", type=TransactionType.INCOME)
        transaction = draft.to_transaction()
        assert transaction.category == OTHER_CATEGORY
        assert transaction.is_income

    def test_expense_draft_keeps_category_and_date(self):
        moment = datetime(2024, 1, 2, tzinfo=timezone.utc)
        draft = TransactionDraft(amount=Decimal("20000"), category="shopping", date=moment)
        transaction = draft.to_transaction()
        assert transaction.category == "shopping"
        assert transaction.date == moment

    def test_patch_only_serializes_set_fields(self):
        patch = TransactionPatch(amount=Decimal("75000"))
        assert patch.to_patch_dict() == {"amount": 75000}

    def test_patch_apply_to_revalidates(self):
        transaction = Transaction(amount=Decimal("10"), category="food", type=TransactionType.EXPENSE)
        updated = TransactionPatch(note="dinner").apply_to(transaction)
        assert updated.id == transaction.id
        assert updated.note == "dinner"
        assert updated.amount == Decimal("10")

    def test_category_patch_excludes_unset(self):
        assert CategoryPatch(emoji="🏋️").to_patch_dict() == {"emoji": "🏋️"}


class TestTotalsAndCategories:

    def test_balance_is_income_minus_spent(self):
        totals = Totals(total_spent=Decimal("150"), total_income=Decimal("1000"))
        assert totals.balance == Decimal("850")

    def test_default_categories(self):
        names = [category.name for category in DEFAULT_CATEGORIES]
        assert names == ["food", "transport", "entertainment", "shopping", "other"]

    def test_category_to_style(self):
        category = Category(id=uuid4(), name="Gym", emoji="🏋️", background_color="#dbeafe")
        style = category.to_style()
        assert style.name == "Gym"
        assert style.background_color == "#dbeafe"


class TestCacheModels:

    def test_cache_key_uses_method_and_url(self):
        assert cache_key("get", "https://example.com/a") == "GET https://example.com/a"

    def test_cached_response_replays_body(self):
        """A stored entry replays as a response flagged as coming from cache."""
        request = httpx.Request("GET", "https://example.com/index.html")
        entry = CachedResponse(
            url=str(request.url),
            status_code=200,
            headers=[("content-type", "text/html")],
            content=b"<html></html>",
        )
        response = entry.to_response(request)
        assert response.status_code == 200
        assert response.extensions["from_cache"] is True

    def test_cached_response_record_survives_json(self):
        entry = CachedResponse(url="https://example.com/icon.png", status_code=200, content=b"\x89PNG")
        restored = CachedResponse.from_record(entry.to_record())
        assert restored.content == b"\x89PNG"
        assert restored.key == entry.key

    def test_ok_only_for_2xx(self):
        assert CachedResponse(url="https://e.com", status_code=204).ok
        assert not CachedResponse(url="https://e.com", status_code=404).ok

    def test_request_classes(self):
        assert RequestClass.NETWORK_FIRST.value == "network_first"


class TestSessionModels:

    def test_session_from_token_response(self):
        payload = {
            "access_token": "abc",
            "refresh_token": "def",
            "expires_in": 3600,
            "user": {"id": "user-1", "email": "a@example.com"},
        }
        session = AuthSession.from_token_response(payload)
        assert session.user_id == "user-1"
        assert session.email == "a@example.com"
        assert not session.is_expired

    def test_session_expired(self):
        session = AuthSession(
            access_token="abc",
            user_id="user-1",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
        assert session.is_expired

    def test_chat_message_role_is_restricted(self):
        with pytest.raises(ValueError):
            ChatMessage(role="system", content="hi")


class TestNotificationModels:

    def test_category_conflict_message(self):
        notification = NotificationBuilder.category_conflict("Food")
        assert notification.kind == NotificationKind.CATEGORY_CONFLICT
        assert notification.title == "Category already exists"
        assert notification.is_error

    def test_to_log_dict(self):
        notification = NotificationBuilder.sync_completed(inserted=1, duplicates=1)
        log = notification.to_log_dict()
        assert log["kind"] == "sync_completed"
        assert log["severity"] == NotificationSeverity.SUCCESS.value
        assert log["details"] == {"inserted": 1, "duplicates": 1}
