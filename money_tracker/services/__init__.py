"""Services package."""

from money_tracker.services.assistant import (
    AssistantError,
    FinanceAssistantClient,
)
from money_tracker.services.auth import (
    AuthError,
    AuthServiceInterface,
    SupabaseAuthService,
)
from money_tracker.services.storage import (
    ConflictError,
    InMemoryRemoteStore,
    LocalKeyValueStore,
    LocalTransactionStore,
    NotFoundError,
    RemoteStoreInterface,
    StorageError,
    StoreConnectionError,
    SupabaseRemoteStore,
)

__all__ = [
    # Assistant
    "AssistantError",
    "FinanceAssistantClient",
    # Auth
    "AuthError",
    "AuthServiceInterface",
    "SupabaseAuthService",
    # Storage
    "ConflictError",
    "InMemoryRemoteStore",
    "LocalKeyValueStore",
    "LocalTransactionStore",
    "NotFoundError",
    "RemoteStoreInterface",
    "StorageError",
    "StoreConnectionError",
    "SupabaseRemoteStore",
]
