# billing/models/transaction.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL

ZERO = Decimal("0.00")


class Transaction(models.Model):
    """
    The persisted unit of revenue: walk-in POS sale, room folio or proforma.

    GUARANTEES:
    - Money fields are derived: total is recomputed from the current items
      and discount on every write, never edited directly
    - paid_amount only grows (PaymentRecord is append-only)
    - balance = max(0, total - paid); status derived from total vs paid
    - Every balance-affecting write bumps `version` through a conditional
      UPDATE (compare-and-swap); see billing.services.payment_ledger

    SNAPSHOT:
    - is_tax_inclusive + TransactionTax rows record the pricing mode and the
      per-tax amounts in force when totals were last computed
    """

    TYPE_POS = "POS"
    TYPE_FOLIO = "FOLIO"
    TYPE_PROFORMA = "PROFORMA"

    TYPE_CHOICES = [
        (TYPE_POS, "POS sale"),
        (TYPE_FOLIO, "Room folio"),
        (TYPE_PROFORMA, "Proforma invoice"),
    ]

    REFERENCE_PREFIX = {
        TYPE_POS: "POS",
        TYPE_FOLIO: "RES",
        TYPE_PROFORMA: "PRO",
    }

    STATUS_UNPAID = "UNPAID"
    STATUS_PARTIAL = "PARTIAL"
    STATUS_PAID = "PAID"

    STATUS_CHOICES = [
        (STATUS_UNPAID, "Unpaid"),
        (STATUS_PARTIAL, "Partially paid"),
        (STATUS_PAID, "Paid"),
    ]

    WALK_IN_GUEST = "Walk-In Customer"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    reference = models.CharField(
        max_length=32,
        unique=True,
        blank=True,
        help_text="System-generated reference (POS-/RES-/PRO- prefix)",
    )

    type = models.CharField(max_length=10, choices=TYPE_CHOICES)

    unit = models.ForeignKey(
        "property_config.Unit",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )

    # ---------------- guest ----------------
    guest_name = models.CharField(max_length=160)
    identity_type = models.CharField(max_length=60, blank=True, default="")
    id_number = models.CharField(max_length=80, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=40, blank=True, default="")

    # ---------------- proforma header ----------------
    organisation = models.CharField(max_length=160, blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")
    event = models.CharField(max_length=160, blank=True, default="")
    event_period = models.CharField(max_length=120, blank=True, default="")
    prepared_by = models.CharField(max_length=120, blank=True, default="")

    # envelope of the room lines' stays (display only; availability is per line)
    check_in = models.DateField(null=True, blank=True)
    check_out = models.DateField(null=True, blank=True)

    # ---------------- money ----------------
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    gross_subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    base_value = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    tax_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=ZERO,
        help_text="VAT bucket (VAT + any non service-charge rule)",
    )
    service_charge = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_UNPAID)
    settlement_method = models.CharField(
        max_length=10,
        blank=True,
        default="",
        help_text="Method of the most recent payment",
    )

    is_tax_inclusive = models.BooleanField(default=False)

    version = models.PositiveIntegerField(default=0)

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    cashier_name = models.CharField(max_length=160, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="billing_txn_created_idx"),
            models.Index(fields=["type", "status"], name="billing_txn_type_status_idx"),
            models.Index(fields=["created_by", "created_at"], name="billing_txn_owner_idx"),
        ]

    @classmethod
    def generate_reference(cls, txn_type: str) -> str:
        prefix = cls.REFERENCE_PREFIX.get(txn_type, "TXN")
        return f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

    def save(self, *args, **kwargs):
        if not self.reference:
            self.reference = self.generate_reference(self.type)
        super().save(*args, **kwargs)

    @property
    def is_invoice(self) -> bool:
        return self.type == self.TYPE_PROFORMA

    def __str__(self):
        return f"{self.reference} ({self.type}) {self.guest_name}"
