"""
Transaction Storage Strategies

The reconciliation engine talks to exactly one backend at a time:

- LocalTransactionBackend: the anonymous user's device store. Mutations
  apply to the list and persist it wholesale.
- RemoteTransactionBackend: the signed-in user's rows in the remote store.
  Mutations are written remotely, then the whole list is re-read (the
  server may apply defaults, so the local copy is never trusted).

Every method takes the current list and returns a NEW list. The engine
commits it only when the call succeeds, so a failure never leaves a
partial mutation behind.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from money_tracker.config import SupabaseSettings, get_settings
from money_tracker.models.transaction import Transaction, TransactionPatch
from money_tracker.services.storage import (
    LocalTransactionStore,
    NotFoundError,
    RemoteStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class TransactionBackend(ABC):
    """Where the current state's transactions live."""

    @abstractmethod
    async def load(self) -> list[Transaction]:
        pass

    @abstractmethod
    async def add(self, current: list[Transaction], transaction: Transaction) -> list[Transaction]:
        pass

    @abstractmethod
    async def update(
        self,
        current: list[Transaction],
        transaction_id: UUID,
        patch: TransactionPatch,
    ) -> list[Transaction]:
        pass

    @abstractmethod
    async def delete(self, current: list[Transaction], transaction_id: UUID) -> list[Transaction]:
        pass

    @abstractmethod
    async def reassign_category(
        self,
        current: list[Transaction],
        from_category: str,
        to_category: str,
    ) -> list[Transaction]:
        pass


class LocalTransactionBackend(TransactionBackend):
    """
    Device storage. Newest transactions first.

    Raises OSError when the device write fails, NotFoundError for an
    unknown id.
    """

    def __init__(self, store: LocalTransactionStore):
        self._store = store

    async def load(self) -> list[Transaction]:
        return self._store.load()

    def _commit(self, transactions: list[Transaction]) -> list[Transaction]:
        self._store.save(transactions)
        return transactions

    async def add(self, current: list[Transaction], transaction: Transaction) -> list[Transaction]:
        return self._commit([transaction, *current])

    async def update(
        self,
        current: list[Transaction],
        transaction_id: UUID,
        patch: TransactionPatch,
    ) -> list[Transaction]:
        if not any(transaction.id == transaction_id for transaction in current):
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return self._commit([
            patch.apply_to(transaction) if transaction.id == transaction_id else transaction
            for transaction in current
        ])

    async def delete(self, current: list[Transaction], transaction_id: UUID) -> list[Transaction]:
        if not any(transaction.id == transaction_id for transaction in current):
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return self._commit([
            transaction for transaction in current if transaction.id != transaction_id
        ])

    async def reassign_category(
        self,
        current: list[Transaction],
        from_category: str,
        to_category: str,
    ) -> list[Transaction]:
        return self._commit([
            transaction.model_copy(update={"category": to_category})
            if transaction.category == from_category else transaction
            for transaction in current
        ])


class RemoteTransactionBackend(TransactionBackend):
    """The signed-in user's rows in the remote transactions table."""

    def __init__(
        self,
        remote: RemoteStoreInterface,
        user_id: str,
        settings: Optional[SupabaseSettings] = None,
    ):
        self._remote = remote
        self._user_id = user_id
        self._table = (settings or get_settings().supabase).transactions_table

    @property
    def user_id(self) -> str:
        return self._user_id

    async def load(self) -> list[Transaction]:
        """
        Read every transaction owned by the user, newest first.

        Raises:
            StorageError: If the read fails or a row is malformed
        """
        records = await self._remote.select(
            self._table,
            filters={"user_id": self._user_id},
            order=("date", False),
        )
        try:
            return [Transaction.from_record(record) for record in records]
        except ValidationError as e:
            logger.error("remote_transaction_malformed", table=self._table, error=str(e))
            raise StorageError(f"Malformed transaction row in {self._table}") from e

    async def insert_all(self, transactions: list[Transaction]) -> None:
        """Store every transaction in one statement, or none of them."""
        await self._remote.insert_many(
            self._table,
            [transaction.to_remote_record(self._user_id) for transaction in transactions],
        )

    async def add(self, current: list[Transaction], transaction: Transaction) -> list[Transaction]:
        await self._remote.insert(self._table, transaction.to_remote_record(self._user_id))
        return await self.load()

    async def update(
        self,
        current: list[Transaction],
        transaction_id: UUID,
        patch: TransactionPatch,
    ) -> list[Transaction]:
        await self._remote.update(self._table, str(transaction_id), patch.to_patch_dict())
        return await self.load()

    async def delete(self, current: list[Transaction], transaction_id: UUID) -> list[Transaction]:
        await self._remote.delete(self._table, str(transaction_id))
        return await self.load()

    async def reassign_category(
        self,
        current: list[Transaction],
        from_category: str,
        to_category: str,
    ) -> list[Transaction]:
        for transaction in current:
            if transaction.category == from_category:
                await self._remote.update(
                    self._table, str(transaction.id), {"category": to_category}
                )
        return await self.load()
