"""Domain-specific calculation helpers."""

from .liability import calculate_liability, calculate_snapshot_liability
from .utils import format_currency, outstanding_balance, round_currency

__all__ = [
    "calculate_liability",
    "calculate_snapshot_liability",
    "format_currency",
    "outstanding_balance",
    "round_currency",
]
