"""
SETTLEMENT CALCULATOR (PURE)

The one place totals are derived. Every call site (POS sale, folio create,
folio amendment, proforma create/update, receipt rendering) calls
compute_settlement() with an explicit tax-rule list and pricing mode.

Algorithm:
1. gross_subtotal     = sum(line_total)
2. net_after_discount = max(0, gross_subtotal - discount)   (flat amount)
3. sum_rates          = sum(rule.rate)                      (flat, not compounded)
4. inclusive: total = net; base = total / (1 + sum_rates); tax_i = base * rate_i
   exclusive: base = net; tax_i = base * rate_i; total = base + sum(tax_i)
5. SERVICE_CHARGE rules fill the service-charge bucket; every other kind
   (VAT, OTHER, anything unrecognised) fills the VAT bucket

Numeric rules:
- Decimal throughout, no quantization here. Rounding to 2dp happens only
  when values are persisted (billing.services.money.to_money).
- No input validation: negative quantities/prices must be rejected upstream.
- No I/O, no hidden state: identical inputs give identical outputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

ZERO = Decimal("0")

KIND_VAT = "VAT"
KIND_SERVICE_CHARGE = "SERVICE_CHARGE"


@dataclass(frozen=True)
class TaxLine:
    rule_id: Optional[int]
    name: str
    kind: str
    rate: Decimal
    amount: Decimal
    visible_on_receipt: bool = True

    @property
    def bucket(self) -> str:
        return KIND_SERVICE_CHARGE if self.kind == KIND_SERVICE_CHARGE else KIND_VAT


@dataclass(frozen=True)
class Settlement:
    gross_subtotal: Decimal
    discount: Decimal
    net_after_discount: Decimal
    base_value: Decimal
    total_amount: Decimal
    inclusive: bool
    tax_lines: tuple[TaxLine, ...] = field(default_factory=tuple)

    @property
    def per_tax(self) -> dict:
        return {line.rule_id: line.amount for line in self.tax_lines}

    @property
    def vat_amount(self) -> Decimal:
        return sum((l.amount for l in self.tax_lines if l.bucket == KIND_VAT), ZERO)

    @property
    def service_charge_amount(self) -> Decimal:
        return sum(
            (l.amount for l in self.tax_lines if l.bucket == KIND_SERVICE_CHARGE), ZERO
        )

    @property
    def tax_total(self) -> Decimal:
        return sum((l.amount for l in self.tax_lines), ZERO)


def _dec(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _field(obj: Any, name: str, default=None):
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def line_total_of(item: Any) -> Decimal:
    """
    Line value of a cart row: explicit line_total when present,
    otherwise quantity x unit_price.
    """
    explicit = _field(item, "line_total")
    if explicit is not None and explicit != "":
        return _dec(explicit)
    return _dec(_field(item, "quantity", 0)) * _dec(_field(item, "unit_price", 0))


def compute_settlement(
    line_items: Iterable[Any],
    discount: Any,
    tax_rules: Iterable[Any],
    inclusive: bool,
) -> Settlement:
    gross = sum((line_total_of(i) for i in line_items), ZERO)
    disc = _dec(discount)
    net = gross - disc
    if net < ZERO:
        net = ZERO

    rules = list(tax_rules)
    sum_rates = sum((_dec(_field(r, "rate")) for r in rules), ZERO)

    if inclusive:
        total = net
        base = total / (Decimal(1) + sum_rates)
    else:
        base = net

    lines = tuple(
        TaxLine(
            rule_id=_field(r, "id"),
            name=_field(r, "name", "") or "",
            kind=_field(r, "kind", KIND_VAT) or KIND_VAT,
            rate=_dec(_field(r, "rate")),
            amount=base * _dec(_field(r, "rate")),
            visible_on_receipt=bool(_field(r, "visible_on_receipt", True)),
        )
        for r in rules
    )

    if not inclusive:
        total = base + sum((l.amount for l in lines), ZERO)

    return Settlement(
        gross_subtotal=gross,
        discount=disc,
        net_after_discount=net,
        base_value=base,
        total_amount=total,
        inclusive=bool(inclusive),
        tax_lines=lines,
    )


def compute_with_config(line_items: Iterable[Any], discount: Any, config) -> Settlement:
    """Convenience wrapper taking a property_config SettlementConfig snapshot."""
    return compute_settlement(line_items, discount, config.tax_rules, config.is_tax_inclusive)
