# billing/models/transaction_item.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class TransactionItem(models.Model):
    """
    One line on a transaction.

    Invariant: line_total == quantity * unit_price whenever the row is saved.
    Room lines fold nights into unit_price (rate x nights), so the invariant
    holds for multi-night stays too.
    """

    KIND_ROOM = "ROOM"
    KIND_MENU = "MENU"
    KIND_CUSTOM = "CUSTOM"

    KIND_CHOICES = [
        (KIND_ROOM, "Room"),
        (KIND_MENU, "Menu item"),
        (KIND_CUSTOM, "Custom"),
    ]

    transaction = models.ForeignKey(
        "billing.Transaction",
        on_delete=models.CASCADE,
        related_name="items",
    )

    kind = models.CharField(max_length=10, choices=KIND_CHOICES, default=KIND_CUSTOM)
    description = models.CharField(max_length=255)

    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    line_total = models.DecimalField(max_digits=14, decimal_places=2)

    room = models.ForeignKey(
        "inventory.Room",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transaction_items",
    )
    menu_item = models.ForeignKey(
        "inventory.MenuItem",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transaction_items",
    )

    # room stay (per line)
    check_in = models.DateField(null=True, blank=True)
    check_out = models.DateField(null=True, blank=True)
    nights = models.PositiveIntegerField(null=True, blank=True)
    list_rate = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Undiscounted nightly rate (proforma rows)",
    )

    # proforma food rows
    duration = models.CharField(max_length=80, blank=True, default="")
    comment = models.CharField(max_length=255, blank=True, default="")

    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position", "created_at", "id"]

    def compute_line_total(self) -> Decimal:
        return (Decimal(self.quantity or 0) * Decimal(self.unit_price or 0)).quantize(Decimal("0.01"))

    def save(self, *args, **kwargs):
        expected = self.compute_line_total()
        if self.line_total is None:
            self.line_total = expected
        elif Decimal(self.line_total) != expected:
            raise ValidationError(
                f"line_total {self.line_total} does not equal quantity x unit_price ({expected})."
            )
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.description} x{self.quantity}"
