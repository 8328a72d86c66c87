"""
RECEIPT PAYLOAD BUILDER

Produces the structured document a printer / PDF renderer lays out:
- POS sales -> thermal "DOCKET"
- folios and proformas -> full-page "A4"

Tax rows are recomputed through the settlement calculator from a config
snapshot. By default that snapshot is the one stored on the transaction
(its tax lines + pricing mode), so a reprint matches the original even after
an admin edits the tax table. Only taxes marked visible_on_receipt are listed.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.utils import timezone

from billing.models import Transaction
from billing.services.money import money_str, to_money
from billing.services.settlement_calculator import compute_with_config
from billing.services.transaction_lifecycle import derive_balance, derive_status
from property_config.services import (
    SettlementConfig,
    TaxRuleSnapshot,
    bank_accounts_for,
    build_settlement_config,
    get_property_settings,
)

LAYOUT_DOCKET = "DOCKET"
LAYOUT_A4 = "A4"

TITLES = {
    Transaction.TYPE_POS: "SALES DOCKET",
    Transaction.TYPE_FOLIO: "GUEST FOLIO",
    Transaction.TYPE_PROFORMA: "PROFORMA INVOICE",
}


def config_from_transaction(txn: Transaction) -> SettlementConfig:
    return build_settlement_config(
        (
            TaxRuleSnapshot(
                id=line.tax_rule_id,
                name=line.name,
                rate=Decimal(line.rate),
                kind=line.kind,
                visible_on_receipt=line.visible_on_receipt,
            )
            for line in txn.tax_lines.all()
        ),
        is_tax_inclusive=txn.is_tax_inclusive,
    )


def _item_row(item) -> dict:
    row = {
        "description": item.description,
        "quantity": item.quantity,
        "unit_price": money_str(item.unit_price),
        "line_total": money_str(item.line_total),
    }
    if item.nights:
        row["nights"] = item.nights
    if item.check_in and item.check_out:
        row["check_in"] = item.check_in.isoformat()
        row["check_out"] = item.check_out.isoformat()
    if item.list_rate is not None:
        row["list_rate"] = money_str(item.list_rate)
    if item.duration:
        row["duration"] = item.duration
    if item.comment:
        row["comment"] = item.comment
    return row


def _visible_taxes(config: SettlementConfig, settlement) -> list[dict]:
    # tax_lines come back in rule order
    visible = set(config.visible_rules)
    return [
        {
            "name": line.name,
            "rate": str(line.rate),
            "amount": money_str(line.amount),
        }
        for rule, line in zip(config.tax_rules, settlement.tax_lines)
        if rule in visible
    ]


def build_receipt(
    txn: Transaction,
    *,
    config: Optional[SettlementConfig] = None,
    banks=None,
) -> dict:
    config = config or config_from_transaction(txn)
    items = list(txn.items.all())

    settlement = compute_with_config(items, txn.discount, config)
    total = to_money(settlement.total_amount)
    paid = to_money(txn.paid_amount)

    if banks is None:
        banks = bank_accounts_for(txn.unit, invoice=txn.is_invoice)

    property_row = get_property_settings()
    created_local = timezone.localtime(txn.created_at) if txn.created_at else None

    receipt = {
        "layout": LAYOUT_DOCKET if txn.type == Transaction.TYPE_POS else LAYOUT_A4,
        "title": TITLES.get(txn.type, "RECEIPT"),
        "property": {
            "name": property_row.property_name or getattr(settings, "PROPERTY_NAME", ""),
            "address": property_row.property_address or getattr(settings, "PROPERTY_ADDRESS", ""),
        },
        "reference": txn.reference,
        "type": txn.type,
        "unit": txn.unit.name if txn.unit_id else None,
        "date": created_local.date().isoformat() if created_local else None,
        "time": created_local.strftime("%H:%M") if created_local else None,
        "cashier": txn.cashier_name,
        "guest": {
            "name": txn.guest_name,
            "identity_type": txn.identity_type,
            "id_number": txn.id_number,
            "email": txn.email,
            "phone": txn.phone,
        },
        "items": [_item_row(i) for i in items],
        "subtotal": money_str(settlement.gross_subtotal),
        "discount": money_str(settlement.discount),
        "pricing_mode": "inclusive" if settlement.inclusive else "exclusive",
        "base_value": money_str(settlement.base_value),
        "taxes": _visible_taxes(config, settlement),
        "total": money_str(total),
        "paid": money_str(paid),
        "balance": money_str(derive_balance(total, paid)),
        "status": derive_status(total, paid),
        "payments": [
            {
                "method": p.method,
                "amount": money_str(p.amount),
                "timestamp": p.created_at.isoformat() if p.created_at else None,
            }
            for p in txn.payments.all()
        ],
        "bank_accounts": [
            {
                "bank": b.bank,
                "account_number": b.account_number,
                "account_name": b.account_name,
            }
            for b in banks
        ],
    }

    if txn.type == Transaction.TYPE_FOLIO:
        receipt["stay"] = {
            "check_in": txn.check_in.isoformat() if txn.check_in else None,
            "check_out": txn.check_out.isoformat() if txn.check_out else None,
        }

    if txn.type == Transaction.TYPE_PROFORMA:
        receipt["customer"] = {
            "organisation": txn.organisation,
            "address": txn.address,
            "event": txn.event,
            "event_period": txn.event_period,
            "prepared_by": txn.prepared_by,
        }

    return receipt
