"""Local/remote reconciliation package."""

from money_tracker.sync.backends import (
    LocalTransactionBackend,
    RemoteTransactionBackend,
    TransactionBackend,
)
from money_tracker.sync.dedup import dedup_key, filter_new
from money_tracker.sync.engine import ReconciliationEngine, SessionState, SyncReport

__all__ = [
    "LocalTransactionBackend",
    "ReconciliationEngine",
    "RemoteTransactionBackend",
    "SessionState",
    "SyncReport",
    "TransactionBackend",
    "dedup_key",
    "filter_new",
]
