"""
INVENTORY API

- Rooms: list/detail for every operator, edits for inventory.edit
- Room availability for a date range (per room type)
- Menu items: same split, plus a CSV stock report
"""

from __future__ import annotations

from django.db.models import Q
from django.http import HttpResponse
from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import SAFE_METHODS, IsAuthenticated
from rest_framework.response import Response

from inventory.api.serializers import (
    AvailabilityQuerySerializer,
    MenuItemSerializer,
    RoomSerializer,
)
from inventory.models import MenuItem, Room
from inventory.services import export_inventory_csv, room_availability
from permissions.roles import (
    CAP_FOLIO_MANAGE,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    CAP_PROFORMA_MANAGE,
    HasAnyCapability,
    HasCapability,
)


class InventoryPermissionMixin:
    def get_required_capability(self):
        if self.request.method in SAFE_METHODS:
            return CAP_INVENTORY_VIEW
        return CAP_INVENTORY_EDIT

    def get_permissions(self):
        return [IsAuthenticated(), HasCapability()]


class RoomViewSet(InventoryPermissionMixin, viewsets.ModelViewSet):
    serializer_class = RoomSerializer
    filterset_fields = ["room_type", "is_active"]
    # availability is read by the booking screens as well as inventory views
    required_any_capabilities = {CAP_INVENTORY_VIEW, CAP_FOLIO_MANAGE, CAP_PROFORMA_MANAGE}

    def get_permissions(self):
        if self.action == "availability":
            return [IsAuthenticated(), HasAnyCapability()]
        return super().get_permissions()

    def get_queryset(self):
        qs = Room.objects.all().order_by("price", "name")
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(room_type__icontains=q))
        return qs

    @extend_schema(
        parameters=[
            OpenApiParameter("check_in", str, description="YYYY-MM-DD"),
            OpenApiParameter("check_out", str, description="YYYY-MM-DD"),
        ],
        responses={200: dict},
    )
    @action(detail=False, methods=["get"], url_path="availability")
    def availability(self, request):
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        check_in = query.validated_data["check_in"]
        check_out = query.validated_data["check_out"]

        rows = [
            {
                "room_id": room.id,
                "name": room.name,
                "room_type": room.room_type,
                "price": f"{room.price:.2f}",
                "total_inventory": room.total_inventory,
                "available": room_availability(room, check_in, check_out),
            }
            for room in Room.objects.filter(is_active=True).order_by("price", "name")
        ]

        return Response(
            {
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
                "rooms": rows,
            }
        )


class MenuItemViewSet(InventoryPermissionMixin, viewsets.ModelViewSet):
    serializer_class = MenuItemSerializer
    filterset_fields = ["category", "unit", "track_stock", "is_active"]

    def get_queryset(self):
        qs = MenuItem.objects.select_related("unit").order_by("category", "name")
        q = (self.request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(name__icontains=q) | Q(category__icontains=q))
        return qs

    @extend_schema(responses={(200, "text/csv"): str})
    @action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        content = export_inventory_csv(self.filter_queryset(self.get_queryset()))
        stamp = timezone.localdate().isoformat()

        response = HttpResponse(content, content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="inventory-{stamp}.csv"'
        return response
