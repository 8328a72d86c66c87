# billing/api/serializers.py

"""
BILLING SERIALIZERS

Input serializers document ONLY what the client may send: line items,
guest details and payments. Money totals are never accepted from the client;
the service layer computes them.

Read serializers are read-only views of a stored transaction.
"""

from rest_framework import serializers

from billing.models import PaymentRecord, Transaction, TransactionItem, TransactionTax
from inventory.models import MenuItem, Room
from property_config.models import Unit

MONEY = {"max_digits": 14, "decimal_places": 2}


# ==========================================================
# INPUT: PAYMENTS
# ==========================================================


class PaymentInputSerializer(serializers.Serializer):
    """
    One payment leg. Zero-amount legs are dropped by the ledger;
    negative amounts are rejected there with INVALID_PAYMENT.
    """

    method = serializers.ChoiceField(choices=PaymentRecord.METHOD_CHOICES)
    amount = serializers.DecimalField(**MONEY)


# ==========================================================
# INPUT: LINE ITEMS
# ==========================================================


class SaleItemInputSerializer(serializers.Serializer):
    menu_item = serializers.PrimaryKeyRelatedField(
        queryset=MenuItem.objects.filter(is_active=True),
        required=False,
        allow_null=True,
    )
    description = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1, default=1)
    unit_price = serializers.DecimalField(required=False, allow_null=True, **MONEY)


class RoomLineInputSerializer(serializers.Serializer):
    room = serializers.PrimaryKeyRelatedField(queryset=Room.objects.filter(is_active=True))
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    quantity = serializers.IntegerField(min_value=1, default=1, help_text="Number of rooms")
    rate = serializers.DecimalField(
        required=False,
        allow_null=True,
        help_text="Nightly rate override; defaults to the room price",
        **MONEY,
    )


class ProformaRoomRowInputSerializer(serializers.Serializer):
    id = serializers.IntegerField(required=False, allow_null=True)
    room = serializers.PrimaryKeyRelatedField(
        queryset=Room.objects.all(), required=False, allow_null=True
    )
    description = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1, default=1)
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)
    days = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    unit_rate = serializers.DecimalField(required=False, allow_null=True, **MONEY)
    discounted_rate = serializers.DecimalField(required=False, allow_null=True, **MONEY)


class ProformaFoodRowInputSerializer(serializers.Serializer):
    id = serializers.IntegerField(required=False, allow_null=True)
    menu_item = serializers.PrimaryKeyRelatedField(
        queryset=MenuItem.objects.all(), required=False, allow_null=True
    )
    description = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1, default=1)
    rate = serializers.DecimalField(required=False, allow_null=True, **MONEY)
    duration = serializers.CharField(required=False, allow_blank=True, default="")
    comment = serializers.CharField(required=False, allow_blank=True, default="")


# ==========================================================
# INPUT: GUEST / CUSTOMER
# ==========================================================


class GuestInputSerializer(serializers.Serializer):
    # presence of guest_name is enforced by the service (MISSING_GUEST_DETAILS)
    guest_name = serializers.CharField(required=False, allow_blank=True)
    identity_type = serializers.CharField(required=False, allow_blank=True)
    id_number = serializers.CharField(required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True)


class CustomerInputSerializer(GuestInputSerializer):
    organisation = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    event = serializers.CharField(required=False, allow_blank=True)
    event_period = serializers.CharField(required=False, allow_blank=True)
    prepared_by = serializers.CharField(required=False, allow_blank=True)


# ==========================================================
# INPUT: COMMANDS
# ==========================================================


class PosSaleInputSerializer(serializers.Serializer):
    unit = serializers.PrimaryKeyRelatedField(queryset=Unit.objects.filter(is_active=True))
    items = SaleItemInputSerializer(many=True, allow_empty=True)
    payments = PaymentInputSerializer(many=True, required=False, default=list)
    discount = serializers.DecimalField(required=False, default=0, **MONEY)
    guest_name = serializers.CharField(required=False, allow_blank=True, default="")


class FolioInputSerializer(serializers.Serializer):
    guest = GuestInputSerializer()
    rooms = RoomLineInputSerializer(many=True, allow_empty=True)
    extras = SaleItemInputSerializer(many=True, required=False, default=list)
    payments = PaymentInputSerializer(many=True, required=False, default=list)
    discount = serializers.DecimalField(required=False, default=0, **MONEY)
    unit = serializers.PrimaryKeyRelatedField(
        queryset=Unit.objects.filter(is_active=True), required=False, allow_null=True
    )


class ProformaInputSerializer(serializers.Serializer):
    customer = CustomerInputSerializer()
    room_rows = ProformaRoomRowInputSerializer(many=True, required=False, default=list)
    food_rows = ProformaFoodRowInputSerializer(many=True, required=False, default=list)
    payments = PaymentInputSerializer(many=True, required=False, default=list)
    unit = serializers.PrimaryKeyRelatedField(
        queryset=Unit.objects.filter(is_active=True), required=False, allow_null=True
    )


class ProformaUpdateInputSerializer(serializers.Serializer):
    customer = CustomerInputSerializer(required=False)
    room_rows = ProformaRoomRowInputSerializer(many=True, required=False, default=list)
    food_rows = ProformaFoodRowInputSerializer(many=True, required=False, default=list)
    payments = PaymentInputSerializer(many=True, required=False, default=list)


class AmendInputSerializer(serializers.Serializer):
    add_items = SaleItemInputSerializer(many=True, required=False, default=list)
    add_rooms = RoomLineInputSerializer(many=True, required=False, default=list)
    discount = serializers.DecimalField(required=False, allow_null=True, default=None, **MONEY)
    guest = CustomerInputSerializer(required=False)


class SettleInputSerializer(serializers.Serializer):
    payments = PaymentInputSerializer(many=True, allow_empty=False)


# ==========================================================
# READ
# ==========================================================


class TransactionItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = TransactionItem
        fields = [
            "id",
            "kind",
            "description",
            "quantity",
            "unit_price",
            "line_total",
            "room",
            "menu_item",
            "check_in",
            "check_out",
            "nights",
            "list_rate",
            "duration",
            "comment",
            "position",
        ]
        read_only_fields = fields


class TransactionTaxSerializer(serializers.ModelSerializer):
    class Meta:
        model = TransactionTax
        fields = ["tax_rule_id", "name", "kind", "rate", "amount", "visible_on_receipt"]
        read_only_fields = fields


class PaymentRecordSerializer(serializers.ModelSerializer):
    recorded_by_email = serializers.EmailField(source="recorded_by.email", read_only=True, default=None)

    class Meta:
        model = PaymentRecord
        fields = ["id", "method", "amount", "recorded_by_email", "created_at"]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    """
    Transaction read model (history, detail, responses of every command).
    """

    unit_code = serializers.CharField(source="unit.code", read_only=True, default=None)
    unit_name = serializers.CharField(source="unit.name", read_only=True, default=None)
    created_by_email = serializers.EmailField(source="created_by.email", read_only=True, default=None)

    items = TransactionItemSerializer(many=True, read_only=True)
    tax_lines = TransactionTaxSerializer(many=True, read_only=True)
    payments = PaymentRecordSerializer(many=True, read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "reference",
            "type",
            "unit",
            "unit_code",
            "unit_name",
            "guest_name",
            "identity_type",
            "id_number",
            "email",
            "phone",
            "organisation",
            "address",
            "event",
            "event_period",
            "prepared_by",
            "check_in",
            "check_out",
            "discount",
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
            "cashier_name",
            "created_by_email",
            "created_at",
            "updated_at",
            "items",
            "tax_lines",
            "payments",
        ]
        read_only_fields = fields


class DailyReportQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    unit = serializers.PrimaryKeyRelatedField(queryset=Unit.objects.all(), required=False)
