"""
Local (Device) Storage

DESIGN DECISION: Anonymous users keep their transactions on the device,
in a single JSON document that plays the role of browser local storage:
one key, one serialized array, rewritten wholesale on every mutation.

TRADEOFFS:
- O(n) rewrite per mutation (fine for a personal ledger)
- No merge conflicts possible with a single writer
- A corrupted file must never block the app: it is logged and
  treated as an empty data set (fail open)
"""

import json
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from money_tracker.config import LocalStoreSettings, get_settings
from money_tracker.fileio import atomic_write_text
from money_tracker.models.transaction import Transaction


logger = structlog.get_logger(__name__)


class LocalKeyValueStore:
    """
    File-backed string key/value store.

    Mirrors the browser local storage contract: values are strings,
    a missing key is ``None``, and every write persists immediately.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("local_storage_unreadable", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.error("local_storage_unreadable", path=str(self._path), error="not an object")
            return {}
        return {key: value for key, value in data.items() if isinstance(value, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        atomic_write_text(self._path, json.dumps(data, ensure_ascii=False))

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)


class LocalTransactionStore:
    """
    The anonymous user's transactions, persisted under a fixed key.

    Records are stored with ``date`` as an ISO-8601 string and parsed
    back to timestamps on load. Absence of the key means an empty set.
    """

    def __init__(
        self,
        kv_store: Optional[LocalKeyValueStore] = None,
        settings: Optional[LocalStoreSettings] = None,
    ):
        self._settings = settings or get_settings().local_store
        self._kv = kv_store or LocalKeyValueStore(self._settings.path)
        self._key = self._settings.transactions_key

    def load(self) -> list[Transaction]:
        """Read all local transactions (empty on absence or corruption)."""
        raw = self._kv.get_item(self._key)
        if raw is None:
            return []
        try:
            records = json.loads(raw)
            if not isinstance(records, list):
                raise ValueError("stored transactions are not an array")
            return [Transaction.from_record(record) for record in records]
        except (ValueError, TypeError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error("local_transactions_parse_failed", key=self._key, error=str(e))
            return []

    def save(self, transactions: list[Transaction]) -> None:
        """Rewrite the whole set. Raises OSError if the device write fails."""
        payload = json.dumps(
            [transaction.to_storage_dict() for transaction in transactions],
            ensure_ascii=False,
        )
        self._kv.set_item(self._key, payload)

    def clear(self) -> None:
        self._kv.remove_item(self._key)

    def is_empty(self) -> bool:
        return not self.load()
