"""
Alert Metrics.

============================================================
RESPONSIBILITY
============================================================
Derives percentages and PnL figures from a vault event payload.

- Vault value change in percent
- Transaction size relative to the vault
- Strategy PnL, PnL percent and PnL-to-amount ratio

============================================================
DESIGN PRINCIPLES
============================================================
- Pure functions, no state
- Never raises on degenerate input
- A missing or zero "before" value is replaced by 1
- Missing amounts and "after" values count as 0

============================================================
"""

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional


TOTAL_BEFORE_FIELD = "vaultAssetTotalValueBefore"
TOTAL_AFTER_FIELD = "vaultAssetTotalValueAfter"


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a payload value to a finite float.

    Accepts ints, floats and numeric strings. Booleans and
    anything non-numeric are treated as absent.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _denominator(total_before: Optional[float]) -> float:
    if not total_before:
        return 1.0
    return total_before


def percentage_change(before: Optional[float], after: Optional[float]) -> float:
    """(after - before) / before * 100."""
    base = _denominator(before)
    return (_or_zero(after) - base) / base * 100


def transaction_percent(amount: Optional[float], total_before: Optional[float]) -> float:
    """Transaction size as a percentage of the vault value before it."""
    return _or_zero(amount) / _denominator(total_before) * 100


def pnl(total_before: Optional[float], total_after: Optional[float]) -> float:
    """Vault value gained (positive) or lost (negative)."""
    return _or_zero(total_after) - _denominator(total_before)


def pnl_percent(pnl_value: float, total_before: Optional[float]) -> float:
    return pnl_value / _denominator(total_before) * 100


def pnl_to_amount_ratio(pnl_value: float, amount: Optional[float]) -> float:
    """
    |pnl| / amount.

    A zero amount yields inf for a non-zero PnL and 0.0 when
    the PnL is zero as well.
    """
    amount = _or_zero(amount)
    if amount == 0:
        return math.inf if pnl_value != 0 else 0.0
    return abs(pnl_value / amount)


def _or_zero(value: Optional[float]) -> float:
    return 0.0 if value is None else value


@dataclass(frozen=True)
class EventMetrics:
    """All derived figures for one event."""

    amount: float
    total_before: float
    total_after: float
    percentage_change: float
    transaction_percent: float
    pnl: float
    pnl_percent: float
    pnl_to_amount_ratio: float

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], amount_field: str) -> "EventMetrics":
        """
        Compute metrics from an eventData mapping.

        Args:
            payload: Event payload
            amount_field: Payload field holding the moved amount
        """
        amount = _or_zero(to_number(payload.get(amount_field)))
        before = to_number(payload.get(TOTAL_BEFORE_FIELD))
        after = to_number(payload.get(TOTAL_AFTER_FIELD))

        pnl_value = pnl(before, after)

        return cls(
            amount=amount,
            total_before=_denominator(before),
            total_after=_or_zero(after),
            percentage_change=percentage_change(before, after),
            transaction_percent=transaction_percent(amount, before),
            pnl=pnl_value,
            pnl_percent=pnl_percent(pnl_value, before),
            pnl_to_amount_ratio=pnl_to_amount_ratio(pnl_value, amount),
        )


__all__ = [
    "TOTAL_BEFORE_FIELD",
    "TOTAL_AFTER_FIELD",
    "to_number",
    "percentage_change",
    "transaction_percent",
    "pnl",
    "pnl_percent",
    "pnl_to_amount_ratio",
    "EventMetrics",
]
