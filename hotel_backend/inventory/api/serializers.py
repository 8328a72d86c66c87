from rest_framework import serializers

from inventory.models import MenuItem, Room


class RoomSerializer(serializers.ModelSerializer):
    class Meta:
        model = Room
        fields = [
            "id",
            "name",
            "room_type",
            "price",
            "total_inventory",
            "booked_count",
            "is_active",
            "updated_at",
        ]
        # counters move only through atomic increments
        read_only_fields = ["id", "booked_count", "updated_at"]


class MenuItemSerializer(serializers.ModelSerializer):
    remaining = serializers.IntegerField(read_only=True)
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    unit_name = serializers.CharField(source="unit.name", read_only=True, default=None)

    class Meta:
        model = MenuItem
        fields = [
            "id",
            "name",
            "category",
            "unit",
            "unit_name",
            "price",
            "track_stock",
            "initial_stock",
            "sold_count",
            "remaining",
            "revenue",
            "is_active",
            "updated_at",
        ]
        read_only_fields = ["id", "sold_count", "remaining", "revenue", "unit_name", "updated_at"]


class AvailabilityQuerySerializer(serializers.Serializer):
    check_in = serializers.DateField()
    check_out = serializers.DateField()

    def validate(self, attrs):
        if attrs["check_out"] <= attrs["check_in"]:
            raise serializers.ValidationError("check_out must be after check_in.")
        return attrs
