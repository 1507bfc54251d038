"""
Local/Remote Reconciliation Engine

Presents one consistent transaction list regardless of who is signed in,
and migrates the anonymous user's local transactions into the remote
store exactly once per sign-in, without duplicates.

STATE MACHINE:

    ANONYMOUS ──sign-in, local empty──────▶ AUTHENTICATED
        │                                        ▲
        └──sign-in, local non-empty──▶ PENDING_SYNC
                                          │ sync_local() / skip_sync()
                                          ▼
                                     AUTHENTICATED
    any ──sign-out──▶ ANONYMOUS (in-memory state cleared)

Each state owns its storage strategy (local or remote backend), selected
once per transition. While PENDING_SYNC the list shown (and all CRUD) is
the remote one; the local transactions wait for the user's decision.

CRITICAL: Entry points never raise. Each produces either a committed
state change or a no-op plus a notification, and returns a falsy value
on failure.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ValidationError

from money_tracker.config import AppSettings, SupabaseSettings, get_settings
from money_tracker.formatting import format_currency
from money_tracker.models.notification import NotificationBuilder
from money_tracker.models.session import AuthSession
from money_tracker.models.transaction import (
    MonthlySummary,
    Totals,
    Transaction,
    TransactionDraft,
    TransactionPatch,
    TransactionType,
)
from money_tracker.notifications import Notifier
from money_tracker.reports import compute_totals, monthly_summary, spending_by_category
from money_tracker.services.storage import (
    LocalTransactionStore,
    RemoteStoreInterface,
    StorageError,
)
from money_tracker.sync.backends import (
    LocalTransactionBackend,
    RemoteTransactionBackend,
    TransactionBackend,
)
from money_tracker.sync.dedup import filter_new
from money_tracker.validation import TransactionValidationError, TransactionValidator


logger = structlog.get_logger(__name__)


class SessionState(str, Enum):
    """Where transactions currently live."""
    ANONYMOUS = "anonymous"            # Local store
    AUTHENTICATED = "authenticated"    # Remote store, nothing pending
    PENDING_SYNC = "pending_sync"      # Remote store, local transactions await a decision


class SyncReport(BaseModel):
    """Outcome of migrating local transactions to the remote store."""

    local_count: int
    inserted: int
    duplicates: int


class ReconciliationEngine:
    """
    Owner of the current transaction list.

    Usage:
        engine = ReconciliationEngine(local_store, remote_store, notifier)
        await engine.start()                      # anonymous, local list
        await engine.on_session_changed(session)  # sign-in
        if engine.state == SessionState.PENDING_SYNC:
            await engine.sync_local()
    """

    def __init__(
        self,
        local_store: LocalTransactionStore,
        remote_store: RemoteStoreInterface,
        notifier: Optional[Notifier] = None,
        validator: Optional[TransactionValidator] = None,
        supabase_settings: Optional[SupabaseSettings] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._local_store = local_store
        self._remote_store = remote_store
        self._notifier = notifier or Notifier()
        self._app_settings = app_settings or get_settings().app
        self._supabase_settings = supabase_settings
        self._validator = validator or TransactionValidator(self._app_settings)

        self._state = SessionState.ANONYMOUS
        self._user_id: Optional[str] = None
        self._backend: TransactionBackend = LocalTransactionBackend(local_store)
        self._transactions: list[Transaction] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def transactions(self) -> list[Transaction]:
        """Snapshot of the displayed list."""
        return list(self._transactions)

    @property
    def pending_local_count(self) -> int:
        if self._state != SessionState.PENDING_SYNC:
            return 0
        return len(self._local_store.load())

    async def start(self) -> None:
        """Begin an anonymous session from the device store."""
        self.reset()
        self.load_local()

    def load_local(self) -> list[Transaction]:
        """(Re)load the device store into view. Only meaningful while anonymous."""
        if self._state == SessionState.ANONYMOUS:
            self._transactions = self._local_store.load()
            logger.info("local_transactions_loaded", count=len(self._transactions))
        return self.transactions

    def reset(self) -> None:
        """Back to ANONYMOUS with empty in-memory state. The device store is untouched."""
        self._state = SessionState.ANONYMOUS
        self._user_id = None
        self._backend = LocalTransactionBackend(self._local_store)
        self._transactions = []

    async def on_session_changed(self, session: Optional[AuthSession]) -> SessionState:
        """
        Apply an auth state change.

        A refreshed token for the same user changes nothing; a different
        user gets a full reload.
        """
        if session is None:
            if self._state != SessionState.ANONYMOUS:
                logger.info("session_ended", user_id=self._user_id)
            self.reset()
            return self._state

        if session.user_id == self._user_id:
            return self._state

        self._user_id = session.user_id
        self._backend = RemoteTransactionBackend(
            self._remote_store, session.user_id, self._supabase_settings
        )
        self._transactions = []

        pending = len(self._local_store.load())
        if pending:
            self._state = SessionState.PENDING_SYNC
            await self._notifier.notify(NotificationBuilder.sync_available(pending))
        else:
            self._state = SessionState.AUTHENTICATED

        logger.info("session_started", user_id=session.user_id, state=self._state.value, pending=pending)
        await self.refresh()
        return self._state

    async def refresh(self) -> bool:
        """Re-read the authoritative list into view."""
        try:
            self._transactions = await self._backend.load()
        except (StorageError, OSError) as e:
            await self._report_failure("loading transactions", e)
            return False
        return True

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def _report_failure(self, operation: str, error: Exception) -> None:
        logger.error("transaction_operation_failed", operation=operation, state=self._state.value, error=str(error))
        if isinstance(error, OSError):
            await self._notifier.notify(NotificationBuilder.local_storage_error(operation, str(error)))
        else:
            await self._notifier.remote_error(operation, error)

    async def _reject(self, error: TransactionValidationError) -> None:
        logger.info("transaction_rejected", field=error.field, reason=error.message)
        await self._notifier.notify(NotificationBuilder.validation_failed(error.field, error.message))

    async def add(self, draft: TransactionDraft) -> Optional[Transaction]:
        """
        Validate, assign a fresh id and store a new transaction.

        Returns:
            The created transaction, or None if rejected or the write failed
        """
        try:
            self._validator.validate_draft(draft)
            transaction = draft.to_transaction(self._app_settings.other_category)
        except TransactionValidationError as e:
            await self._reject(e)
            return None
        except ValidationError as e:
            await self._reject(TransactionValidationError("transaction", str(e)))
            return None

        try:
            self._transactions = await self._backend.add(self._transactions, transaction)
        except (StorageError, OSError) as e:
            await self._report_failure("adding transaction", e)
            return None

        await self._notifier.notify(NotificationBuilder.transaction_added(
            format_currency(transaction.amount, self._app_settings.currency_symbol),
            transaction.category,
        ))
        return transaction

    async def update(self, transaction_id: UUID, patch: TransactionPatch) -> bool:
        """Apply a partial update to one transaction."""
        try:
            self._validator.validate_patch(patch)
        except TransactionValidationError as e:
            await self._reject(e)
            return False

        if patch.type == TransactionType.INCOME:
            patch = patch.model_copy(update={"category": self._app_settings.other_category})

        try:
            self._transactions = await self._backend.update(self._transactions, transaction_id, patch)
        except ValidationError as e:
            await self._reject(TransactionValidationError("transaction", str(e)))
            return False
        except (StorageError, OSError) as e:
            await self._report_failure("updating transaction", e)
            return False

        await self._notifier.notify(NotificationBuilder.transaction_updated(transaction_id))
        return True

    async def delete(self, transaction_id: UUID) -> bool:
        try:
            self._transactions = await self._backend.delete(self._transactions, transaction_id)
        except (StorageError, OSError) as e:
            await self._report_failure("deleting transaction", e)
            return False

        await self._notifier.notify(NotificationBuilder.transaction_deleted(transaction_id))
        return True

    async def reassign_category(self, from_category: str, to_category: Optional[str] = None) -> int:
        """
        Move every transaction of ``from_category`` to ``to_category``
        (the "other" category by default).

        Returns:
            Number of transactions moved (0 on failure)
        """
        target = to_category or self._app_settings.other_category
        affected = sum(1 for t in self._transactions if t.category == from_category)
        if not affected or from_category == target:
            return 0

        try:
            self._transactions = await self._backend.reassign_category(
                self._transactions, from_category, target
            )
        except (StorageError, OSError) as e:
            await self._report_failure("reassigning transactions", e)
            return 0

        logger.info("transactions_reassigned", from_category=from_category, to_category=target, count=affected)
        return affected

    # ------------------------------------------------------------------
    # Local to remote migration
    # ------------------------------------------------------------------

    async def sync_local(self) -> Optional[SyncReport]:
        """
        Merge the device store into the remote store, skipping records
        whose dedup key already exists remotely, then clear the device
        store and re-read the remote list.

        The upload is one bulk insert, so a failure stores nothing and
        leaves the device store untouched for a retry.
        """
        if self._state != SessionState.PENDING_SYNC:
            logger.info("sync_not_pending", state=self._state.value)
            return None

        backend = self._backend
        if not isinstance(backend, RemoteTransactionBackend):
            return None

        local = self._local_store.load()
        try:
            existing = await backend.load()
            unique = filter_new(local, existing)
            if unique:
                await backend.insert_all(unique)
            self._local_store.clear()
        except (StorageError, OSError) as e:
            logger.error("sync_failed", user_id=self._user_id, local_count=len(local), error=str(e))
            await self._notifier.notify(NotificationBuilder.sync_failed(str(e)))
            return None

        report = SyncReport(
            local_count=len(local),
            inserted=len(unique),
            duplicates=len(local) - len(unique),
        )
        self._state = SessionState.AUTHENTICATED
        logger.info("sync_completed", user_id=self._user_id, **report.model_dump())
        await self._notifier.notify(NotificationBuilder.sync_completed(report.inserted, report.duplicates))
        await self.refresh()
        return report

    async def skip_sync(self) -> bool:
        """Discard the device store without migrating it."""
        if self._state != SessionState.PENDING_SYNC:
            return False

        discarded = len(self._local_store.load())
        try:
            self._local_store.clear()
        except OSError as e:
            await self._report_failure("discarding local transactions", e)
            return False

        self._state = SessionState.AUTHENTICATED
        logger.info("sync_skipped", user_id=self._user_id, discarded=discarded)
        await self._notifier.notify(NotificationBuilder.sync_skipped(discarded))
        return True

    # ------------------------------------------------------------------
    # Derived values (never stored)
    # ------------------------------------------------------------------

    def compute_totals(self) -> Totals:
        return compute_totals(self._transactions)

    def spending_by_category(self) -> list[tuple[str, Decimal]]:
        return spending_by_category(self._transactions)

    def monthly_summary(self) -> list[MonthlySummary]:
        return monthly_summary(self._transactions)
