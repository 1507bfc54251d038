"""
Storage Services Package

Provides the remote store interface with its REST and in-memory
implementations, and the device-local store used while anonymous.
"""

from money_tracker.services.storage.interface import (
    UNIQUE_VIOLATION,
    ConflictError,
    NotFoundError,
    Record,
    RemoteStoreInterface,
    StorageError,
    StoreConnectionError,
)
from money_tracker.services.storage.local import (
    LocalKeyValueStore,
    LocalTransactionStore,
)
from money_tracker.services.storage.memory import InMemoryRemoteStore
from money_tracker.services.storage.supabase_rest import SupabaseRemoteStore

__all__ = [
    # Interfaces
    "Record",
    "RemoteStoreInterface",
    # Exceptions
    "UNIQUE_VIOLATION",
    "ConflictError",
    "NotFoundError",
    "StorageError",
    "StoreConnectionError",
    # Implementations
    "InMemoryRemoteStore",
    "LocalKeyValueStore",
    "LocalTransactionStore",
    "SupabaseRemoteStore",
]
