# billing/api/views.py

"""
======================================================
PATH: billing/api/views.py
======================================================
BILLING API (STAFF + ADMIN)

Transactions:
    GET    /api/billing/transactions/                  history (visibility-scoped)
    GET    /api/billing/transactions/<uuid>/           detail
    POST   /api/billing/transactions/pos/              walk-in POS sale
    POST   /api/billing/transactions/folios/           room folio
    POST   /api/billing/transactions/proformas/        proforma invoice
    POST   /api/billing/transactions/<uuid>/settle/    append payments
    POST   /api/billing/transactions/<uuid>/amend/     add charges / discount / guest
    PUT    /api/billing/transactions/<uuid>/proforma/  replace proforma rows
    GET    /api/billing/transactions/<uuid>/receipt/   print payload
    GET    /api/billing/transactions/export/           CSV
    DELETE /api/billing/transactions/<uuid>/           hard delete (admin)

Reports:
    GET    /api/billing/reports/daily/?date=YYYY-MM-DD&unit=<id>

Security:
- IsAuthenticated + IsVerifiedOperator + HasCapability (per action)
- Staff only ever see (and act on) their own transactions

Errors:
    {"error": {"code": "...", "message": "..."}}
    400 validation, 404 unknown id, 409 conflict, 503 transient DB failure
======================================================
"""

from __future__ import annotations

import logging

from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError
from django.db.models import Q
from django.http import HttpResponse
from django.utils import timezone
from django.utils.dateparse import parse_date
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from billing.api.serializers import (
    AmendInputSerializer,
    DailyReportQuerySerializer,
    FolioInputSerializer,
    PosSaleInputSerializer,
    ProformaInputSerializer,
    ProformaUpdateInputSerializer,
    SettleInputSerializer,
    TransactionSerializer,
)
from billing.models import Transaction
from billing.services.exceptions import BillingValidationError, SettlementConflictError
from billing.services.payment_ledger import settle_transaction
from billing.services.receipt_service import build_receipt
from billing.services.reports import daily_sales_report, export_transactions_csv
from billing.services.transaction_lifecycle import TransactionLifecycleError
from billing.services.transaction_service import (
    amend_transaction,
    create_folio,
    create_pos_sale,
    create_proforma,
    delete_transaction,
    transactions_visible_to,
    update_proforma,
)
from permissions.roles import (
    CAP_BILLING_DELETE,
    CAP_BILLING_SETTLE,
    CAP_FOLIO_MANAGE,
    CAP_POS_SELL,
    CAP_PROFORMA_MANAGE,
    CAP_REPORTS_VIEW,
    HasCapability,
    IsVerifiedOperator,
)

logger = logging.getLogger(__name__)


def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


class BillingErrorMixin:
    """
    Maps service-layer failures onto the error envelope.
    Everything else (DRF validation, auth, 403) keeps DRF's default handling.
    """

    def handle_exception(self, exc):
        if isinstance(exc, BillingValidationError):
            return error_response(code=exc.code, message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)

        if isinstance(exc, SettlementConflictError):
            return error_response(code=exc.code, message=str(exc), http_status=status.HTTP_409_CONFLICT)

        if isinstance(exc, TransactionLifecycleError):
            return error_response(
                code="INVALID_STATUS_TRANSITION",
                message=str(exc),
                http_status=status.HTTP_409_CONFLICT,
            )

        if isinstance(exc, ObjectDoesNotExist):
            return error_response(
                code="NOT_FOUND",
                message="Transaction not found.",
                http_status=status.HTTP_404_NOT_FOUND,
            )

        if isinstance(exc, DatabaseError):
            logger.exception("transient database error on %s", self.request.path)
            return error_response(
                code="TRANSIENT_ERROR",
                message="The database is temporarily unavailable. Please retry.",
                http_status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return super().handle_exception(exc)


# ==========================================================
# TRANSACTIONS
# ==========================================================


class TransactionViewSet(
    BillingErrorMixin,
    mixins.DestroyModelMixin,
    viewsets.ReadOnlyModelViewSet,
):
    serializer_class = TransactionSerializer

    action_capabilities = {
        "list": CAP_REPORTS_VIEW,
        "retrieve": CAP_REPORTS_VIEW,
        "receipt": CAP_REPORTS_VIEW,
        "export": CAP_REPORTS_VIEW,
        "new_pos_sale": CAP_POS_SELL,
        "new_folio": CAP_FOLIO_MANAGE,
        "new_proforma": CAP_PROFORMA_MANAGE,
        "replace_proforma_rows": CAP_PROFORMA_MANAGE,
        "settle": CAP_BILLING_SETTLE,
        "amend": CAP_BILLING_SETTLE,
        "destroy": CAP_BILLING_DELETE,
    }

    def get_permissions(self):
        return [IsAuthenticated(), IsVerifiedOperator(), HasCapability()]

    def get_required_capability(self):
        return self.action_capabilities.get(self.action)

    # ======================================================
    # QUERYSET
    # ======================================================

    def get_queryset(self):
        qs = transactions_visible_to(self.request.user).prefetch_related(
            "items", "tax_lines", "payments__recorded_by"
        )

        params = self.request.query_params

        txn_type = (params.get("type") or "").strip().upper()
        if txn_type:
            qs = qs.filter(type=txn_type)

        status_val = (params.get("status") or "").strip().upper()
        if status_val:
            qs = qs.filter(status=status_val)

        unit = (params.get("unit") or "").strip()
        if unit:
            unit_q = Q(unit__code__iexact=unit)
            if unit.isdigit():
                unit_q |= Q(unit_id=int(unit))
            qs = qs.filter(unit_q)

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(
                Q(reference__icontains=q)
                | Q(guest_name__icontains=q)
                | Q(organisation__icontains=q)
            )

        date_from = parse_date((params.get("date_from") or "").strip())
        if date_from:
            qs = qs.filter(created_at__date__gte=date_from)

        date_to = parse_date((params.get("date_to") or "").strip())
        if date_to:
            qs = qs.filter(created_at__date__lte=date_to)

        return qs.order_by("-created_at")

    def _respond(self, txn: Transaction, http_status=status.HTTP_200_OK):
        txn = self.get_queryset().get(pk=txn.pk)
        return Response(TransactionSerializer(txn).data, status=http_status)

    # ======================================================
    # CREATE
    # ======================================================

    @extend_schema(request=PosSaleInputSerializer, responses={201: TransactionSerializer})
    @action(detail=False, methods=["post"], url_path="pos")
    def new_pos_sale(self, request):
        ser = PosSaleInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = create_pos_sale(
            user=request.user,
            unit=data["unit"],
            items=data["items"],
            payments=data["payments"],
            discount=data["discount"],
            guest_name=data["guest_name"],
        )
        return self._respond(txn, status.HTTP_201_CREATED)

    @extend_schema(request=FolioInputSerializer, responses={201: TransactionSerializer})
    @action(detail=False, methods=["post"], url_path="folios")
    def new_folio(self, request):
        ser = FolioInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = create_folio(
            user=request.user,
            guest=data["guest"],
            rooms=data["rooms"],
            extras=data["extras"],
            payments=data["payments"],
            discount=data["discount"],
            unit=data.get("unit"),
        )
        return self._respond(txn, status.HTTP_201_CREATED)

    @extend_schema(request=ProformaInputSerializer, responses={201: TransactionSerializer})
    @action(detail=False, methods=["post"], url_path="proformas")
    def new_proforma(self, request):
        ser = ProformaInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = create_proforma(
            user=request.user,
            customer=data["customer"],
            room_rows=data["room_rows"],
            food_rows=data["food_rows"],
            payments=data["payments"],
            unit=data.get("unit"),
        )
        return self._respond(txn, status.HTTP_201_CREATED)

    # ======================================================
    # CHANGE EXISTING (compare-and-swap in the services)
    # ======================================================

    @extend_schema(request=SettleInputSerializer, responses={200: TransactionSerializer})
    @action(detail=True, methods=["post"], url_path="settle")
    def settle(self, request, pk=None):
        txn = self.get_object()

        ser = SettleInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        txn = settle_transaction(
            transaction_id=txn.pk,
            payments=ser.validated_data["payments"],
            user=request.user,
        )
        return self._respond(txn)

    @extend_schema(request=AmendInputSerializer, responses={200: TransactionSerializer})
    @action(detail=True, methods=["post"], url_path="amend")
    def amend(self, request, pk=None):
        txn = self.get_object()

        ser = AmendInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = amend_transaction(
            transaction_id=txn.pk,
            user=request.user,
            add_items=data["add_items"],
            add_rooms=data["add_rooms"],
            discount=data["discount"],
            guest=data.get("guest"),
        )
        return self._respond(txn)

    @extend_schema(request=ProformaUpdateInputSerializer, responses={200: TransactionSerializer})
    @action(detail=True, methods=["put"], url_path="proforma")
    def replace_proforma_rows(self, request, pk=None):
        txn = self.get_object()
        if txn.type != Transaction.TYPE_PROFORMA:
            return error_response(
                code="VALIDATION_ERROR",
                message="Only proforma invoices can be edited row by row.",
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        ser = ProformaUpdateInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        txn = update_proforma(
            transaction_id=txn.pk,
            user=request.user,
            customer=data.get("customer"),
            room_rows=data["room_rows"],
            food_rows=data["food_rows"],
            payments=data["payments"],
        )
        return self._respond(txn)

    def destroy(self, request, *args, **kwargs):
        txn = self.get_object()
        reference = delete_transaction(transaction_id=txn.pk, user=request.user)
        return Response({"reference": reference, "deleted": True}, status=status.HTTP_200_OK)

    # ======================================================
    # READ-ONLY EXTRAS
    # ======================================================

    @extend_schema(responses={200: dict})
    @action(detail=True, methods=["get"], url_path="receipt")
    def receipt(self, request, pk=None):
        return Response(build_receipt(self.get_object()))

    @extend_schema(
        parameters=[
            OpenApiParameter("type", str),
            OpenApiParameter("status", str),
            OpenApiParameter("unit", str),
            OpenApiParameter("q", str),
            OpenApiParameter("date_from", str, description="YYYY-MM-DD"),
            OpenApiParameter("date_to", str, description="YYYY-MM-DD"),
        ],
        responses={(200, "text/csv"): str},
    )
    @action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        content = export_transactions_csv(self.get_queryset())
        stamp = timezone.localdate().isoformat()

        response = HttpResponse(content, content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="transactions-{stamp}.csv"'
        return response


# ==========================================================
# REPORTS
# ==========================================================


class DailySalesReportView(BillingErrorMixin, APIView):
    """
    Daily revenue summary. Staff get their own transactions; admins get all.
    """

    required_capability = CAP_REPORTS_VIEW

    def get_permissions(self):
        return [IsAuthenticated(), IsVerifiedOperator(), HasCapability()]

    @extend_schema(
        parameters=[
            OpenApiParameter("date", str, description="YYYY-MM-DD (default: today)"),
            OpenApiParameter("unit", int, description="Unit id"),
        ],
        responses={200: dict},
    )
    def get(self, request):
        query = DailyReportQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        day = query.validated_data.get("date") or timezone.localdate()
        unit = query.validated_data.get("unit")

        return Response(daily_sales_report(day, unit=unit, user=request.user))
