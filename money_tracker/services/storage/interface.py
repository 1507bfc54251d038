"""
Abstract Remote Store Interface

DESIGN DECISION: We define an abstract interface for the remote store.
This allows us to:
1. Talk to the hosted database over REST in production
2. Use in-memory storage for offline demos and testing
3. Keep the reconciliation logic decoupled from the backend

The interface is intentionally small - a handful of generic table operations.
Row-level security on the backend scopes rows to the signed-in user;
callers still pass the owner filter explicitly.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


Record = dict[str, Any]

# Backend error code for a unique constraint violation
UNIQUE_VIOLATION = "23505"


class RemoteStoreInterface(ABC):
    """
    Abstract interface for remote table operations.

    Any remote backend (PostgREST, in-memory, ...) must implement these methods.
    """

    def set_access_token(self, access_token: Optional[str]) -> None:
        """
        Act as the user owning ``access_token`` (None = anonymous).

        Backends without per-user authorization ignore it.
        """
        pass

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order: Optional[tuple[str, bool]] = None,
    ) -> list[Record]:
        """
        Read rows from a table.

        Args:
            table: Table name
            filters: Column equality filters
            order: (column, ascending) sort order

        Returns:
            Matching rows

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def insert(self, table: str, record: Record) -> Record:
        """
        Insert a row.

        Returns:
            The stored row, including server-side defaults (id, timestamps)

        Raises:
            ConflictError: If a uniqueness constraint is violated
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def insert_many(self, table: str, records: list[Record]) -> list[Record]:
        """
        Insert several rows as one statement: either all are stored or none.

        Returns:
            The stored rows, in input order

        Raises:
            ConflictError: If any row violates a uniqueness constraint
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update(self, table: str, record_id: Any, patch: Record) -> Record:
        """
        Apply a partial update to the row with ``record_id``.

        Returns:
            The updated row

        Raises:
            NotFoundError: If no row has this id
            ConflictError: If a uniqueness constraint is violated
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def delete(self, table: str, record_id: Any) -> bool:
        """
        Delete the row with ``record_id``.

        Returns:
            True if deleted successfully

        Raises:
            StorageError: If the delete fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.code = code
        super().__init__(message)


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConflictError(StorageError):
    """A uniqueness constraint was violated."""

    def __init__(self, message: str, code: Optional[str] = UNIQUE_VIOLATION):
        super().__init__(message, code=code)


class StoreConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
