import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("property_config", "0001_initial"),
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        help_text="System-generated reference (POS-/RES-/PRO- prefix)",
                        max_length=32,
                        unique=True,
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[("POS", "POS sale"), ("FOLIO", "Room folio"), ("PROFORMA", "Proforma invoice")],
                        max_length=10,
                    ),
                ),
                ("guest_name", models.CharField(max_length=160)),
                ("identity_type", models.CharField(blank=True, default="", max_length=60)),
                ("id_number", models.CharField(blank=True, default="", max_length=80)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=40)),
                ("organisation", models.CharField(blank=True, default="", max_length=160)),
                ("address", models.CharField(blank=True, default="", max_length=255)),
                ("event", models.CharField(blank=True, default="", max_length=160)),
                ("event_period", models.CharField(blank=True, default="", max_length=120)),
                ("prepared_by", models.CharField(blank=True, default="", max_length=120)),
                ("check_in", models.DateField(blank=True, null=True)),
                ("check_out", models.DateField(blank=True, null=True)),
                ("discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("gross_subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("base_value", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                (
                    "tax_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="VAT bucket (VAT + any non service-charge rule)",
                        max_digits=14,
                    ),
                ),
                ("service_charge", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("paid_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                (
                    "status",
                    models.CharField(
                        choices=[("UNPAID", "Unpaid"), ("PARTIAL", "Partially paid"), ("PAID", "Paid")],
                        default="UNPAID",
                        max_length=10,
                    ),
                ),
                (
                    "settlement_method",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Method of the most recent payment",
                        max_length=10,
                    ),
                ),
                ("is_tax_inclusive", models.BooleanField(default=False)),
                ("version", models.PositiveIntegerField(default=0)),
                ("cashier_name", models.CharField(blank=True, default="", max_length=160)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "unit",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="property_config.unit",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_at"], name="billing_txn_created_idx"),
                    models.Index(fields=["type", "status"], name="billing_txn_type_status_idx"),
                    models.Index(fields=["created_by", "created_at"], name="billing_txn_owner_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[("ROOM", "Room"), ("MENU", "Menu item"), ("CUSTOM", "Custom")],
                        default="CUSTOM",
                        max_length=10,
                    ),
                ),
                ("description", models.CharField(max_length=255)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=14)),
                ("line_total", models.DecimalField(decimal_places=2, max_digits=14)),
                ("check_in", models.DateField(blank=True, null=True)),
                ("check_out", models.DateField(blank=True, null=True)),
                ("nights", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "list_rate",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Undiscounted nightly rate (proforma rows)",
                        max_digits=14,
                        null=True,
                    ),
                ),
                ("duration", models.CharField(blank=True, default="", max_length=80)),
                ("comment", models.CharField(blank=True, default="", max_length=255)),
                ("position", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "menu_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transaction_items",
                        to="inventory.menuitem",
                    ),
                ),
                (
                    "room",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transaction_items",
                        to="inventory.room",
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="billing.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["position", "created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="TransactionTax",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tax_rule_id", models.PositiveIntegerField(blank=True, null=True)),
                ("name", models.CharField(max_length=80)),
                ("kind", models.CharField(max_length=20)),
                ("rate", models.DecimalField(decimal_places=4, max_digits=6)),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("visible_on_receipt", models.BooleanField(default=True)),
                ("position", models.PositiveIntegerField(default=0)),
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tax_lines",
                        to="billing.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["position", "id"],
            },
        ),
        migrations.CreateModel(
            name="PaymentRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "method",
                    models.CharField(
                        choices=[("CARD", "Card"), ("CASH", "Cash"), ("TRANSFER", "Transfer"), ("POS", "POS terminal")],
                        max_length=10,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "recorded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="billing.transaction",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["created_at", "method"], name="billing_payment_day_idx"),
                ],
            },
        ),
    ]
