"""
PROPERTY CONFIGURATION API

Read: any authenticated operator (POS/folio screens need the tax table and units).
Write: config.manage (admins).
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.permissions import SAFE_METHODS, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import CAP_CONFIG_MANAGE, HasCapability
from property_config.api.serializers import (
    BankAccountSerializer,
    PropertySettingsSerializer,
    TaxRuleSerializer,
    UnitSerializer,
)
from property_config.models import BankAccount, PropertySettings, TaxRule, Unit

logger = logging.getLogger(__name__)


class ConfigWritePermissionMixin:
    required_capability = CAP_CONFIG_MANAGE

    def get_permissions(self):
        if self.request.method in SAFE_METHODS:
            return [IsAuthenticated()]
        return [IsAuthenticated(), HasCapability()]


class TaxRuleViewSet(ConfigWritePermissionMixin, viewsets.ModelViewSet):
    serializer_class = TaxRuleSerializer
    pagination_class = None
    filterset_fields = ["kind", "is_active"]

    def get_queryset(self):
        return TaxRule.objects.all().order_by("position", "created_at", "id")

    def perform_create(self, serializer):
        rule = serializer.save()
        logger.info("tax rule created: %s rate=%s by %s", rule.name, rule.rate, self.request.user.email)

    def perform_update(self, serializer):
        rule = serializer.save()
        logger.info("tax rule updated: %s rate=%s by %s", rule.name, rule.rate, self.request.user.email)

    def perform_destroy(self, instance):
        logger.info("tax rule deleted: %s by %s", instance.name, self.request.user.email)
        instance.delete()


class UnitViewSet(ConfigWritePermissionMixin, viewsets.ModelViewSet):
    serializer_class = UnitSerializer
    pagination_class = None
    queryset = Unit.objects.all().order_by("name")


class BankAccountViewSet(ConfigWritePermissionMixin, viewsets.ModelViewSet):
    serializer_class = BankAccountSerializer
    pagination_class = None
    filterset_fields = ["purpose", "unit", "is_active"]
    queryset = BankAccount.objects.select_related("unit").all()


class PropertySettingsView(ConfigWritePermissionMixin, APIView):
    serializer_class = PropertySettingsSerializer

    @extend_schema(responses={200: PropertySettingsSerializer})
    def get(self, request):
        return Response(PropertySettingsSerializer(PropertySettings.load()).data)

    @extend_schema(request=PropertySettingsSerializer, responses={200: PropertySettingsSerializer})
    def patch(self, request):
        obj = PropertySettings.load()
        serializer = PropertySettingsSerializer(obj, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        obj = serializer.save(updated_by=request.user)

        logger.info(
            "property settings updated: inclusive=%s by %s",
            obj.is_tax_inclusive,
            request.user.email,
        )
        return Response(PropertySettingsSerializer(obj).data)
