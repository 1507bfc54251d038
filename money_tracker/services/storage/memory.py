"""
In-Memory Remote Store

Behaves like the hosted backend for the operations the app uses:
- server-side defaults (id, created_at, updated_at) on insert
- the primary key on id and the (user_id, name) uniqueness constraint
  on the categories table
- bulk inserts that store every row or none
- rows returned as copies, never as live references

Used for offline demos and as the test double of the remote store.
"""

import copy
from typing import Any, Optional
from uuid import uuid4

from money_tracker.models.transaction import utcnow
from money_tracker.services.storage.interface import (
    ConflictError,
    NotFoundError,
    Record,
    RemoteStoreInterface,
)


class InMemoryRemoteStore(RemoteStoreInterface):
    """Dict-backed implementation of the remote store."""

    def __init__(self, unique_constraints: Optional[dict[str, tuple[str, ...]]] = None):
        self._tables: dict[str, list[Record]] = {}
        self._unique = unique_constraints if unique_constraints is not None else {
            "categories": ("user_id", "name"),
        }
        # Call log, handy for asserting what reached the "server"
        self.calls: list[tuple[str, str]] = []

    def rows(self, table: str) -> list[Record]:
        """Snapshot of a table's rows."""
        return copy.deepcopy(self._tables.get(table, []))

    def seed(self, table: str, records: list[Record]) -> None:
        for record in records:
            self._insert_row(table, dict(record))

    def _violates_unique(
        self,
        table: str,
        candidate: Record,
        ignore_id: Any = None,
        rows: Optional[list[Record]] = None,
    ) -> bool:
        columns = self._unique.get(table)
        if not columns:
            return False
        key = tuple(candidate.get(column) for column in columns)
        return any(
            tuple(row.get(column) for column in columns) == key
            for row in (self._tables.get(table, []) if rows is None else rows)
            if str(row.get("id")) != str(ignore_id)
        )

    def _prepare_row(self, table: str, record: Record, rows: list[Record]) -> Record:
        """Apply server defaults and check constraints against ``rows``."""
        now = utcnow().isoformat()
        record.setdefault("id", str(uuid4()))
        record.setdefault("created_at", now)
        record.setdefault("updated_at", now)
        if any(str(row.get("id")) == str(record["id"]) for row in rows):
            raise ConflictError(
                f'duplicate key value violates primary key on "{table}"'
            )
        if self._violates_unique(table, record, rows=rows):
            raise ConflictError(
                f'duplicate key value violates unique constraint on "{table}"'
            )
        return record

    def _insert_row(self, table: str, record: Record) -> Record:
        rows = self._tables.setdefault(table, [])
        rows.append(self._prepare_row(table, record, rows))
        return copy.deepcopy(record)

    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order: Optional[tuple[str, bool]] = None,
    ) -> list[Record]:
        self.calls.append(("select", table))
        rows = [
            row for row in self._tables.get(table, [])
            if all(str(row.get(col)) == str(val) for col, val in (filters or {}).items())
        ]
        if order:
            column, ascending = order
            rows = sorted(rows, key=lambda row: str(row.get(column) or ""), reverse=not ascending)
        return copy.deepcopy(rows)

    async def insert(self, table: str, record: Record) -> Record:
        self.calls.append(("insert", table))
        return self._insert_row(table, copy.deepcopy(record))

    async def insert_many(self, table: str, records: list[Record]) -> list[Record]:
        self.calls.append(("insert_many", table))
        rows = self._tables.setdefault(table, [])
        staged: list[Record] = []
        for record in records:
            staged.append(self._prepare_row(table, copy.deepcopy(record), rows + staged))
        rows.extend(staged)
        return copy.deepcopy(staged)

    async def update(self, table: str, record_id: Any, patch: Record) -> Record:
        self.calls.append(("update", table))
        for row in self._tables.get(table, []):
            if str(row.get("id")) == str(record_id):
                candidate = {**row, **copy.deepcopy(patch)}
                if self._violates_unique(table, candidate, ignore_id=record_id):
                    raise ConflictError(
                        f'duplicate key value violates unique constraint on "{table}"'
                    )
                row.update(candidate)
                return copy.deepcopy(row)
        raise NotFoundError(f"Row not found in {table}: {record_id}")

    async def delete(self, table: str, record_id: Any) -> bool:
        self.calls.append(("delete", table))
        rows = self._tables.get(table, [])
        remaining = [row for row in rows if str(row.get("id")) != str(record_id)]
        self._tables[table] = remaining
        return len(remaining) != len(rows)
