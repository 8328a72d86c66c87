from django.contrib import admin

from property_config.models import BankAccount, PropertySettings, TaxRule, Unit


@admin.register(TaxRule)
class TaxRuleAdmin(admin.ModelAdmin):
    list_display = ("name", "rate", "kind", "visible_on_receipt", "is_active", "position")
    list_filter = ("kind", "is_active", "visible_on_receipt")
    ordering = ("position", "created_at")


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active")
    search_fields = ("code", "name")


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ("bank", "account_number", "account_name", "purpose", "unit", "is_active")
    list_filter = ("purpose", "unit", "is_active")


@admin.register(PropertySettings)
class PropertySettingsAdmin(admin.ModelAdmin):
    list_display = ("property_name", "is_tax_inclusive", "updated_at", "updated_by")
    readonly_fields = ("updated_at", "updated_by")

    def has_add_permission(self, request):
        return not PropertySettings.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False
