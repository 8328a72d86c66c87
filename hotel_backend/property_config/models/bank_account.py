from django.db import models


class BankAccount(models.Model):
    """
    Settlement instructions printed on receipts.

    UNIT accounts belong to one revenue unit (dockets, folios).
    INVOICE accounts are printed on proforma invoices.
    """

    PURPOSE_UNIT = "UNIT"
    PURPOSE_INVOICE = "INVOICE"

    PURPOSE_CHOICES = [
        (PURPOSE_UNIT, "Unit"),
        (PURPOSE_INVOICE, "Invoice"),
    ]

    bank = models.CharField(max_length=120)
    account_number = models.CharField(max_length=30)
    account_name = models.CharField(max_length=160)

    purpose = models.CharField(max_length=10, choices=PURPOSE_CHOICES, default=PURPOSE_UNIT)
    unit = models.ForeignKey(
        "property_config.Unit",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="bank_accounts",
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.bank} {self.account_number}"
