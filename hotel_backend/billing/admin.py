# billing/admin.py

from django.contrib import admin

from billing.models import PaymentRecord, Transaction, TransactionItem, TransactionTax


# ======================================================
# INLINES (read-only: money is derived by the services)
# ======================================================


class TransactionItemInline(admin.TabularInline):
    model = TransactionItem
    extra = 0
    can_delete = False
    fields = ("kind", "description", "quantity", "unit_price", "line_total", "check_in", "check_out")
    readonly_fields = fields


class TransactionTaxInline(admin.TabularInline):
    model = TransactionTax
    extra = 0
    can_delete = False
    fields = ("name", "kind", "rate", "amount", "visible_on_receipt")
    readonly_fields = fields


class PaymentRecordInline(admin.TabularInline):
    model = PaymentRecord
    extra = 0
    can_delete = False
    fields = ("method", "amount", "recorded_by", "created_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


# ======================================================
# TRANSACTION ADMIN
# ======================================================


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = (
        "reference",
        "type",
        "guest_name",
        "unit",
        "total_amount",
        "paid_amount",
        "balance",
        "status",
        "created_at",
    )
    list_filter = ("type", "status", "unit", "created_at")
    search_fields = ("reference", "guest_name", "organisation")
    readonly_fields = (
        "reference",
        "type",
        "gross_subtotal",
        "base_value",
        "tax_amount",
        "service_charge",
        "total_amount",
        "paid_amount",
        "balance",
        "status",
        "settlement_method",
        "is_tax_inclusive",
        "version",
        "created_by",
        "cashier_name",
        "created_at",
        "updated_at",
    )
    inlines = [TransactionItemInline, TransactionTaxInline, PaymentRecordInline]

    def has_add_permission(self, request):
        return False
