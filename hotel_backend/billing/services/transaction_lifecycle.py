"""
TRANSACTION LIFECYCLE DOMAIN RULES

States: UNPAID -> PARTIAL -> PAID, always derived from (total, paid).

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth for status / balance derivation

Rules:
- paid == 0            -> UNPAID
- 0 < paid < total     -> PARTIAL
- paid >= total        -> PAID   (balance clamps to 0; excess is not credit)
- Payments move status forward only.
- Amendments recompute total against an unchanged paid amount, so they MAY
  move status backwards (PAID -> PARTIAL/UNPAID). There is no terminal state.
"""

from __future__ import annotations

from decimal import Decimal

from billing.models import Transaction

ZERO = Decimal("0")

# ============================================================
# DOMAIN ERRORS
# ============================================================


class TransactionLifecycleError(Exception):
    pass


class InvalidStatusTransitionError(TransactionLifecycleError):
    pass


# ============================================================
# STATE DEFINITIONS
# ============================================================

STATUS_ORDER = {
    Transaction.STATUS_UNPAID: 0,
    Transaction.STATUS_PARTIAL: 1,
    Transaction.STATUS_PAID: 2,
}


# ============================================================
# DOMAIN RULES
# ============================================================


def derive_balance(total, paid) -> Decimal:
    remaining = Decimal(total) - Decimal(paid)
    return remaining if remaining > ZERO else ZERO


def derive_status(total, paid) -> str:
    paid = Decimal(paid)
    if paid <= ZERO:
        return Transaction.STATUS_UNPAID
    if paid < Decimal(total):
        return Transaction.STATUS_PARTIAL
    return Transaction.STATUS_PAID


def is_regression(from_status: str, to_status: str) -> bool:
    return STATUS_ORDER[to_status] < STATUS_ORDER[from_status]


def validate_payment_transition(*, from_status: str, to_status: str) -> None:
    """Payments can only keep or advance status."""
    if is_regression(from_status, to_status):
        raise InvalidStatusTransitionError(
            f"Payment cannot move a transaction from '{from_status}' to '{to_status}'"
        )


def describe_regression(*, reference: str, from_status: str, to_status: str) -> str:
    return (
        f"{reference} reopened by amendment: {from_status} -> {to_status} "
        "(new charges after settlement)"
    )
