from rest_framework import serializers

from property_config.models import BankAccount, PropertySettings, TaxRule, Unit


class TaxRuleSerializer(serializers.ModelSerializer):
    class Meta:
        model = TaxRule
        fields = [
            "id",
            "name",
            "rate",
            "kind",
            "visible_on_receipt",
            "is_active",
            "position",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]
        extra_kwargs = {"position": {"required": False}}


class UnitSerializer(serializers.ModelSerializer):
    class Meta:
        model = Unit
        fields = ["id", "code", "name", "is_active"]
        read_only_fields = ["id"]


class BankAccountSerializer(serializers.ModelSerializer):
    unit_code = serializers.CharField(source="unit.code", read_only=True, default=None)

    class Meta:
        model = BankAccount
        fields = [
            "id",
            "bank",
            "account_number",
            "account_name",
            "purpose",
            "unit",
            "unit_code",
            "is_active",
        ]
        read_only_fields = ["id", "unit_code"]

    def validate(self, attrs):
        purpose = attrs.get("purpose", getattr(self.instance, "purpose", BankAccount.PURPOSE_UNIT))
        unit = attrs.get("unit", getattr(self.instance, "unit", None))

        if purpose == BankAccount.PURPOSE_UNIT and unit is None:
            raise serializers.ValidationError({"unit": "Unit bank accounts need a unit."})
        if purpose == BankAccount.PURPOSE_INVOICE and unit is not None:
            raise serializers.ValidationError({"unit": "Invoice bank accounts are not tied to a unit."})
        return attrs


class PropertySettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = PropertySettings
        fields = ["is_tax_inclusive", "property_name", "property_address", "updated_at"]
        read_only_fields = ["updated_at"]
