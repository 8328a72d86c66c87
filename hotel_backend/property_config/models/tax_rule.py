from __future__ import annotations

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class TaxRule(models.Model):
    """
    Flat percentage charge applied to the settlement base.

    Rates are fractions (0.075 = 7.5%). Multiple rules are summed,
    never compounded. Order is insertion order (position, then created_at).
    """

    KIND_VAT = "VAT"
    KIND_SERVICE_CHARGE = "SERVICE_CHARGE"
    KIND_OTHER = "OTHER"

    KIND_CHOICES = [
        (KIND_VAT, "VAT"),
        (KIND_SERVICE_CHARGE, "Service charge"),
        (KIND_OTHER, "Other"),
    ]

    name = models.CharField(max_length=80)
    rate = models.DecimalField(
        max_digits=6,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1"))],
    )
    kind = models.CharField(max_length=20, choices=KIND_CHOICES, default=KIND_VAT)
    visible_on_receipt = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)
    position = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["position", "created_at", "id"]

    def save(self, *args, **kwargs):
        # New rules go to the end unless a position was chosen.
        if self._state.adding and not self.position:
            last = TaxRule.objects.order_by("-position").values_list("position", flat=True).first()
            self.position = (last or 0) + 1
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.rate})"
