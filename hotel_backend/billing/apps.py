"""
PATH: billing/apps.py

BILLING APP

Transactions (POS sales, room folios, proforma invoices), their line items,
tax snapshots and append-only payment records, plus the settlement
calculator, payment ledger, receipts and reports built on them.
"""

from django.apps import AppConfig


class BillingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "billing"
    verbose_name = "Billing"

    def ready(self):
        # Register change-feed receivers.
        from billing import signals  # noqa: F401
