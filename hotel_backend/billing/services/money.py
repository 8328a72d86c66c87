from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

TWOPLACES = Decimal("0.01")


def to_money(v) -> Decimal:
    """Persistence boundary rounding: 2dp, half-up."""
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def money_str(v) -> str:
    return f"{to_money(v):.2f}"
