# billing/models/transaction_tax.py

from decimal import Decimal

from django.db import models


class TransactionTax(models.Model):
    """
    Per-tax amount snapshot, written each time a transaction's totals are
    recomputed. Rule identity is copied (not a FK) so later edits or deletes of
    a TaxRule never rewrite history.
    """

    transaction = models.ForeignKey(
        "billing.Transaction",
        on_delete=models.CASCADE,
        related_name="tax_lines",
    )

    tax_rule_id = models.PositiveIntegerField(null=True, blank=True)
    name = models.CharField(max_length=80)
    kind = models.CharField(max_length=20)
    rate = models.DecimalField(max_digits=6, decimal_places=4)
    amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    visible_on_receipt = models.BooleanField(default=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self):
        return f"{self.name} {self.amount}"
