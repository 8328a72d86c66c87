from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class MenuItem(models.Model):
    """
    Sellable outlet item.

    track_stock=False items (e.g. made-to-order dishes) are sold without
    touching sold_count.
    """

    name = models.CharField(max_length=160)
    category = models.CharField(max_length=80, blank=True, default="")
    unit = models.ForeignKey(
        "property_config.Unit",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="menu_items",
    )

    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    track_stock = models.BooleanField(default=True)
    initial_stock = models.PositiveIntegerField(default=0)
    sold_count = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["category", "name"]
        constraints = [
            models.UniqueConstraint(fields=["unit", "name"], name="inventory_menuitem_unit_name_uniq"),
        ]

    @property
    def remaining(self) -> int:
        return int(self.initial_stock) - int(self.sold_count)

    @property
    def revenue(self) -> Decimal:
        return Decimal(self.sold_count) * (self.price or Decimal("0.00"))

    def __str__(self):
        return self.name
