"""
COMPARE-AND-SWAP WRITES ON TRANSACTIONS

Every balance-affecting write follows the same discipline:

    read row (incl. version) -> compute new state -> conditional UPDATE
    WHERE pk = ? AND version = v  SET ..., version = v + 1

Zero rows updated means someone else wrote first: the attempt is rolled back
(SettlementConflictError inside transaction.atomic) and re-run from a fresh
read, up to BILLING_SETTLEMENT_MAX_ATTEMPTS times. Validation errors are never
retried.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from django.conf import settings
from django.db.models import F
from django.utils import timezone

from billing.models import Transaction
from billing.services.exceptions import SettlementConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def max_attempts() -> int:
    return max(1, int(getattr(settings, "BILLING_SETTLEMENT_MAX_ATTEMPTS", 3)))


def cas_update(txn: Transaction, **fields) -> None:
    """
    Conditional UPDATE guarded by the version read into `txn`.
    Raises SettlementConflictError when the row moved underneath us.
    """
    expected = txn.version
    fields.setdefault("updated_at", timezone.now())

    updated = Transaction.objects.filter(pk=txn.pk, version=expected).update(
        version=F("version") + 1,
        **fields,
    )
    if updated != 1:
        raise SettlementConflictError(
            f"Transaction {txn.reference} changed concurrently (expected version {expected})."
        )

    for name, value in fields.items():
        setattr(txn, name, value)
    txn.version = expected + 1


def run_with_retry(operation: Callable[[], T], *, label: str) -> T:
    """
    Run `operation` (which must open its own transaction.atomic block and
    re-read state) until it succeeds or the attempt limit is reached.
    """
    attempts = max_attempts()
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except SettlementConflictError:
            if attempt >= attempts:
                logger.warning("%s: conflict persisted after %s attempts", label, attempts)
                raise
            logger.warning("%s: conflict on attempt %s/%s, retrying", label, attempt, attempts)

    raise SettlementConflictError(f"{label}: no attempts made")
