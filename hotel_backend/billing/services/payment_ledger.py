"""
PAYMENT LEDGER

Pure part (no DB):
- normalize_payments(): validate split rows, drop zero-amount rows
- apply_payment() / apply_payments(): append entries, recompute
  paid / balance / status

DB part:
- settle_transaction(): append PaymentRecords and update the denormalized
  paid/balance/status through a compare-and-swap write, retried on conflict.

Hard rules:
- amount > 0 for every stored entry (zero rows are dropped, negatives rejected)
- overpayment is rejected: the accepted sum may not exceed the current balance
- paid only grows; status never moves backwards because of a payment
- validation happens before any write
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from django.db import transaction as db_transaction
from django.utils import timezone

from billing.models import PaymentRecord, Transaction
from billing.services.concurrency import cas_update, run_with_retry
from billing.services.exceptions import InvalidPaymentError, OverpaymentError
from billing.services.money import TWOPLACES, to_money
from billing.services.transaction_lifecycle import (
    derive_balance,
    derive_status,
    validate_payment_transition,
)
from billing.signals import emit_transaction_changed

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


# ============================================================
# PURE LEDGER
# ============================================================


@dataclass(frozen=True)
class PaymentEntry:
    method: str
    amount: Decimal
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class LedgerState:
    total_amount: Decimal
    paid_amount: Decimal = ZERO
    entries: tuple[PaymentEntry, ...] = field(default_factory=tuple)

    @property
    def balance(self) -> Decimal:
        return derive_balance(self.total_amount, self.paid_amount)

    @property
    def status(self) -> str:
        return derive_status(self.total_amount, self.paid_amount)

    @property
    def last_method(self) -> str:
        return self.entries[-1].method if self.entries else ""


def _field(obj: Any, name: str):
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _parse_amount(raw, idx: int) -> Decimal:
    if raw is None or raw == "":
        return ZERO
    try:
        amount = Decimal(str(raw))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidPaymentError(f"payments[{idx}].amount is not a number")
    if not amount.is_finite():
        raise InvalidPaymentError(f"payments[{idx}].amount is not a number")
    return amount


def normalize_payments(payments: Optional[Iterable[Any]]) -> list[PaymentEntry]:
    """
    payments: iterable of {method, amount} (dicts or objects).
    Returns entries with 2dp amounts; zero-amount rows are silently dropped.
    Sub-cent amounts are rejected, never rounded to zero.
    """
    out: list[PaymentEntry] = []
    for idx, row in enumerate(payments or []):
        method = (str(_field(row, "method") or "")).strip().upper()
        amount = _parse_amount(_field(row, "amount"), idx)

        if amount == ZERO:
            continue
        if amount < ZERO:
            raise InvalidPaymentError(f"payments[{idx}].amount must be greater than zero")
        if amount != amount.quantize(TWOPLACES):
            raise InvalidPaymentError(f"payments[{idx}].amount has more than 2 decimal places")
        if method not in PaymentRecord.METHODS:
            raise InvalidPaymentError(
                f"payments[{idx}].method must be one of {sorted(PaymentRecord.METHODS)}"
            )

        out.append(PaymentEntry(method=method, amount=to_money(amount)))
    return out


def apply_payment(state: LedgerState, amount, method: str, *, now=None) -> LedgerState:
    entries = normalize_payments([{"method": method, "amount": amount}])
    if not entries:
        raise InvalidPaymentError("Payment amount must be greater than zero.")
    return apply_payments(state, entries, now=now)


def apply_payments(state: LedgerState, payments: Iterable[Any], *, now=None) -> LedgerState:
    payments = list(payments)
    if all(isinstance(p, PaymentEntry) for p in payments):
        entries = payments
    else:
        entries = normalize_payments(payments)

    if not entries:
        return state

    incoming = sum((e.amount for e in entries), ZERO)
    if incoming > state.balance:
        raise OverpaymentError(
            f"Payment of {incoming:.2f} exceeds the outstanding balance of {state.balance:.2f}"
        )

    stamp = now or timezone.now()
    stamped = tuple(replace(e, timestamp=e.timestamp or stamp) for e in entries)

    new_state = LedgerState(
        total_amount=state.total_amount,
        paid_amount=state.paid_amount + incoming,
        entries=state.entries + stamped,
    )
    validate_payment_transition(from_status=state.status, to_status=new_state.status)
    return new_state


def ledger_state_of(txn: Transaction) -> LedgerState:
    return LedgerState(
        total_amount=Decimal(txn.total_amount),
        paid_amount=Decimal(txn.paid_amount),
    )


def record_payments(txn: Transaction, entries: Iterable[PaymentEntry], *, user=None) -> list[PaymentRecord]:
    """Append PaymentRecord rows (caller owns the atomic block)."""
    return [
        PaymentRecord.objects.create(
            transaction=txn,
            method=e.method,
            amount=e.amount,
            recorded_by=user,
        )
        for e in entries
    ]


# ============================================================
# DB SETTLEMENT (compare-and-swap + bounded retry)
# ============================================================


def settle_transaction(*, transaction_id, payments, user=None) -> Transaction:
    entries = normalize_payments(payments)
    if not entries:
        raise InvalidPaymentError("Payment amount must be greater than zero.")

    def attempt() -> Transaction:
        with db_transaction.atomic():
            txn = Transaction.objects.get(pk=transaction_id)
            before = ledger_state_of(txn)

            try:
                after = apply_payments(before, entries)
            except OverpaymentError:
                logger.warning(
                    "overpayment rejected on %s: balance=%s submitted=%s",
                    txn.reference,
                    before.balance,
                    sum((e.amount for e in entries), ZERO),
                )
                raise

            cas_update(
                txn,
                paid_amount=to_money(after.paid_amount),
                balance=to_money(after.balance),
                status=after.status,
                settlement_method=after.last_method,
            )
            record_payments(txn, entries, user=user)

        logger.info(
            "settled %s: +%s (%s) paid=%s balance=%s status=%s",
            txn.reference,
            sum((e.amount for e in entries), ZERO),
            ",".join(e.method for e in entries),
            txn.paid_amount,
            txn.balance,
            txn.status,
        )
        emit_transaction_changed(txn, "settled")
        return txn

    return run_with_retry(attempt, label=f"settle {transaction_id}")
