"""Utility helpers for calculator modules."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from templetax.backend.app.models import CENT, ZERO


def round_currency(value: Decimal) -> Decimal:
    """Round monetary amounts to two decimals."""

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def outstanding_balance(tax_amount: Decimal, amount_paid: Decimal) -> Decimal:
    """Return the unpaid part of ``tax_amount``; overpayments never go negative."""

    return round_currency(max(ZERO, tax_amount - amount_paid))


def format_currency(value: Decimal, symbol: str = "₹") -> str:
    """Return a display label such as ``₹1,100.00``."""

    return f"{symbol}{round_currency(value):,.2f}"
