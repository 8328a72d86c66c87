"""
BILLING REPORTS + CSV EXPORT

Contract:
- Day boundaries use the property time zone (settings.TIME_ZONE).
- Money values are 2dp strings (JSON-safe, no float drift).
- Read-only: no mutations.

Definitions:
- Transactions for the day: created_at in [start, end)
- Payments by method: PaymentRecord.created_at in [start, end), regardless of
  when the transaction itself was created
- by_unit: folios are grouped under "FOLIO" (rooms are not a unit's revenue)
"""

from __future__ import annotations

import csv
import io
from datetime import date as date_cls, datetime, timedelta
from decimal import Decimal

from django.db.models import Count, Sum
from django.utils import timezone

from billing.models import PaymentRecord, Transaction
from billing.services.money import money_str
from billing.services.transaction_service import transactions_visible_to

ZERO = Decimal("0.00")

FOLIO_BUCKET = "FOLIO"

TRANSACTION_CSV_HEADER = [
    "Reference",
    "Date",
    "Time",
    "Type",
    "Guest",
    "Unit",
    "Settlement Method",
    "Gross",
    "Discount",
    "VAT",
    "Service Charge",
    "Total",
    "Paid",
    "Balance",
    "Status",
]


def day_bounds(day: date_cls) -> tuple[datetime, datetime]:
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime(day.year, day.month, day.day), tz)
    return start, start + timedelta(days=1)


def _sum(qs, field: str) -> Decimal:
    return qs.aggregate(v=Sum(field))["v"] or ZERO


def _unit_bucket(txn_type: str, unit_code) -> str:
    if txn_type == Transaction.TYPE_FOLIO:
        return FOLIO_BUCKET
    return unit_code or "UNASSIGNED"


def transactions_for_day(day: date_cls, *, base_qs=None, unit=None):
    start, end = day_bounds(day)
    qs = base_qs if base_qs is not None else Transaction.objects.all()
    qs = qs.filter(created_at__gte=start, created_at__lt=end)
    if unit is not None:
        qs = qs.filter(unit=unit)
    return qs


def daily_sales_report(day: date_cls, unit=None, user=None) -> dict:
    """
    One-day revenue summary.

    With a user, only the transactions that user may see are counted (staff
    see their own); payments are scoped to the same transactions.
    """
    start, end = day_bounds(day)
    base_qs = transactions_visible_to(user) if user is not None else None
    qs = transactions_for_day(day, base_qs=base_qs, unit=unit)

    total = _sum(qs, "total_amount")
    paid = _sum(qs, "paid_amount")

    by_unit: dict[str, dict] = {}
    rows = qs.order_by().values("type", "unit__code").annotate(
        count=Count("id"), total=Sum("total_amount"), paid=Sum("paid_amount")
    )
    for r in rows:
        bucket = by_unit.setdefault(
            _unit_bucket(r["type"], r["unit__code"]),
            {"count": 0, "total": ZERO, "paid": ZERO},
        )
        bucket["count"] += r["count"]
        bucket["total"] += r["total"] or ZERO
        bucket["paid"] += r["paid"] or ZERO

    by_type = {
        r["type"]: {"count": r["count"], "total": money_str(r["total"] or ZERO)}
        for r in qs.order_by().values("type").annotate(count=Count("id"), total=Sum("total_amount"))
    }

    payments = PaymentRecord.objects.filter(created_at__gte=start, created_at__lt=end)
    if base_qs is not None or unit is not None:
        scope = base_qs if base_qs is not None else Transaction.objects.all()
        if unit is not None:
            scope = scope.filter(unit=unit)
        payments = payments.filter(transaction__in=scope)

    by_method = {m: "0.00" for m in sorted(PaymentRecord.METHODS)}
    for r in payments.order_by().values("method").annotate(total=Sum("amount")):
        by_method[r["method"]] = money_str(r["total"] or ZERO)

    return {
        "date": day.isoformat(),
        "unit": unit.code if unit is not None else None,
        "transactions_count": qs.count(),
        "gross": money_str(_sum(qs, "gross_subtotal")),
        "net": money_str(_sum(qs, "base_value")),
        "vat": money_str(_sum(qs, "tax_amount")),
        "service_charge": money_str(_sum(qs, "service_charge")),
        "discount": money_str(_sum(qs, "discount")),
        "total": money_str(total),
        "paid": money_str(paid),
        "outstanding": money_str(_sum(qs, "balance")),
        "by_method": by_method,
        "by_unit": {
            key: {
                "count": v["count"],
                "total": money_str(v["total"]),
                "paid": money_str(v["paid"]),
            }
            for key, v in sorted(by_unit.items())
        },
        "by_type": by_type,
    }


def export_transactions_csv(queryset) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(TRANSACTION_CSV_HEADER)

    for txn in queryset.select_related("unit").order_by("created_at"):
        created = timezone.localtime(txn.created_at)
        writer.writerow(
            [
                txn.reference,
                created.date().isoformat(),
                created.strftime("%H:%M"),
                txn.type,
                txn.guest_name,
                txn.unit.name if txn.unit_id else "",
                txn.settlement_method,
                money_str(txn.gross_subtotal),
                money_str(txn.discount),
                money_str(txn.tax_amount),
                money_str(txn.service_charge),
                money_str(txn.total_amount),
                money_str(txn.paid_amount),
                money_str(txn.balance),
                txn.status,
            ]
        )

    return buf.getvalue()
