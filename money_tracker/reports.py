"""
Derived Summaries

Everything here is computed from the current transaction list on demand.
Nothing is stored or cached, so totals can never drift from the list they
describe.
"""

from collections import defaultdict
from datetime import timezone
from decimal import Decimal
from typing import Iterable

from money_tracker.models.transaction import (
    MonthlySummary,
    Totals,
    Transaction,
    TransactionType,
)


def compute_totals(transactions: Iterable[Transaction]) -> Totals:
    """Sum expenses and income; balance is derived from the two."""
    spent = Decimal(0)
    income = Decimal(0)
    for transaction in transactions:
        if transaction.type == TransactionType.EXPENSE:
            spent += transaction.amount
        else:
            income += transaction.amount
    return Totals(total_spent=spent, total_income=income)


def spending_by_category(transactions: Iterable[Transaction]) -> list[tuple[str, Decimal]]:
    """
    Expense amount per category, largest first.

    Ties are ordered by category name so the result is stable.
    """
    per_category: dict[str, Decimal] = defaultdict(Decimal)
    for transaction in transactions:
        if transaction.is_expense:
            per_category[transaction.category] += transaction.amount
    return sorted(per_category.items(), key=lambda item: (-item[1], item[0]))


def monthly_summary(transactions: Iterable[Transaction]) -> list[MonthlySummary]:
    """Spent and income per calendar month (UTC), most recent month first."""
    months: dict[str, MonthlySummary] = {}
    for transaction in transactions:
        month = transaction.date.astimezone(timezone.utc).strftime("%Y-%m")
        summary = months.setdefault(month, MonthlySummary(month=month))
        if transaction.is_expense:
            summary.spent += transaction.amount
        else:
            summary.income += transaction.amount
    return [months[month] for month in sorted(months, reverse=True)]
