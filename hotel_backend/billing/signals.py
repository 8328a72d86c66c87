"""
BILLING CHANGE FEED

transaction_changed is sent AFTER COMMIT for every create / amend / settle /
delete. Open views (websocket fan-out, caches, audit sinks) subscribe here
instead of polling.

kwargs sent: transaction_id, reference, action, status
"""

from __future__ import annotations

import logging

from django.db import transaction as db_transaction
from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

transaction_changed = Signal()


def emit_transaction_changed(txn, action: str) -> None:
    payload = {
        "transaction_id": txn.pk,
        "reference": txn.reference,
        "action": action,
        "status": txn.status,
    }

    def _send():
        transaction_changed.send(sender=type(txn), **payload)

    db_transaction.on_commit(_send)


@receiver(transaction_changed)
def log_transaction_change(sender, transaction_id, reference, action, status, **kwargs):
    logger.debug("transaction %s %s (status=%s)", reference, action, status)
