"""
Deduplication Key

Local records and remote records are created through different paths
(a local record never saw the server), so they cannot be matched by id.
Two records are "the same real-world transaction" when their amount,
category, type, timestamp and note agree.

Normalization:
- amount: Decimal without exponent or trailing zeros (50000 == 50000.0)
- date: UTC, truncated to milliseconds, ISO-8601
- note: missing and empty are the same

KNOWN LIMITATION: two genuinely distinct transactions with identical
fields collide and are treated as one during merge.
"""

from datetime import timezone
from typing import Iterable

from money_tracker.models.transaction import Transaction


DedupKey = tuple[str, str, str, str, str]


def _normalize_amount(transaction: Transaction) -> str:
    return format(transaction.amount.normalize(), "f")


def _normalize_date(transaction: Transaction) -> str:
    moment = transaction.date.astimezone(timezone.utc)
    moment = moment.replace(microsecond=(moment.microsecond // 1000) * 1000)
    return moment.isoformat(timespec="milliseconds")


def dedup_key(transaction: Transaction) -> DedupKey:
    return (
        _normalize_amount(transaction),
        transaction.category,
        _normalize_date(transaction),
        transaction.type.value,
        transaction.note or "",
    )


def filter_new(
    local: Iterable[Transaction],
    remote: Iterable[Transaction],
) -> list[Transaction]:
    """
    Local transactions not already present remotely.

    A local record is present when a remote record shares its key, or
    carries its id (it was uploaded before and edited since). Only remote
    records are compared: duplicates within the local batch are all kept.
    """
    remote = list(remote)
    existing_keys = {dedup_key(transaction) for transaction in remote}
    existing_ids = {transaction.id for transaction in remote}
    return [
        transaction for transaction in local
        if dedup_key(transaction) not in existing_keys and transaction.id not in existing_ids
    ]
