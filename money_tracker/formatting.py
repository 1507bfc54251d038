"""
Currency formatting helpers.

Amounts are whole units of the currency (no fractional display) grouped
the Indonesian way: ``Rp 1.234.567``.
"""

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from money_tracker.config import get_settings


Number = Union[int, float, Decimal]

_NON_DIGITS = re.compile(r"\D")


def format_currency(amount: Number, symbol: Optional[str] = None) -> str:
    """
    Format an amount for display.

    >>> format_currency(1234567, symbol="Rp")
    'Rp 1.234.567'
    """
    if symbol is None:
        symbol = get_settings().app.currency_symbol
    whole = int(Decimal(str(amount)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    grouped = f"{abs(whole):,}".replace(",", ".")
    sign = "-" if whole < 0 else ""
    return f"{symbol} {sign}{grouped}"


def parse_currency_input(text: str) -> int:
    """
    Read a typed amount, ignoring grouping separators and any symbol.

    Every non-digit is dropped, so ``"Rp 50.000"`` is 50000 and input
    without digits is 0.
    """
    digits = _NON_DIGITS.sub("", text or "")
    return int(digits) if digits else 0
