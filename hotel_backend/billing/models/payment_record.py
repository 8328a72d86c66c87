# billing/models/payment_record.py

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class PaymentRecord(models.Model):
    """
    One payment leg against a transaction.

    GUARANTEES:
    - amount > 0
    - append-only: rows are never updated; corrections are new rows
    - deleted only when the parent transaction is hard-deleted (cascade)
    """

    METHOD_CARD = "CARD"
    METHOD_CASH = "CASH"
    METHOD_TRANSFER = "TRANSFER"
    METHOD_POS = "POS"

    METHOD_CHOICES = [
        (METHOD_CARD, "Card"),
        (METHOD_CASH, "Cash"),
        (METHOD_TRANSFER, "Transfer"),
        (METHOD_POS, "POS terminal"),
    ]

    METHODS = {m for m, _ in METHOD_CHOICES}

    transaction = models.ForeignKey(
        "billing.Transaction",
        on_delete=models.CASCADE,
        related_name="payments",
    )

    method = models.CharField(max_length=10, choices=METHOD_CHOICES)
    amount = models.DecimalField(max_digits=14, decimal_places=2)

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["created_at", "method"], name="billing_payment_day_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Payment records are append-only.")
        if self.amount is None or Decimal(self.amount) <= Decimal("0"):
            raise ValidationError("Payment amount must be greater than zero.")
        if self.method not in self.METHODS:
            raise ValidationError(f"Unknown payment method: {self.method}")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Payment records are append-only.")

    def __str__(self):
        return f"{self.method} {self.amount}"
