"""
PATH: property_config/services/snapshot.py

SETTLEMENT CONFIG SNAPSHOT

Purpose:
- Capture tax rules + pricing mode ONCE, at the moment a calculation starts,
  and pass them explicitly to the settlement calculator.

Hard rules:
- Snapshots are immutable (frozen dataclasses, tuples).
- Nothing downstream re-reads TaxRule/PropertySettings mid-calculation, so an
  admin editing settings cannot change a cart that is already being priced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from django.utils import timezone

from property_config.models import PropertySettings, TaxRule


@dataclass(frozen=True)
class TaxRuleSnapshot:
    id: Optional[int]
    name: str
    rate: Decimal
    kind: str
    visible_on_receipt: bool = True


@dataclass(frozen=True)
class SettlementConfig:
    tax_rules: tuple[TaxRuleSnapshot, ...] = ()
    is_tax_inclusive: bool = False
    captured_at: datetime = field(default_factory=timezone.now)

    @property
    def visible_rules(self) -> tuple[TaxRuleSnapshot, ...]:
        return tuple(r for r in self.tax_rules if r.visible_on_receipt)


def snapshot_rule(rule: TaxRule) -> TaxRuleSnapshot:
    return TaxRuleSnapshot(
        id=rule.pk,
        name=rule.name,
        rate=Decimal(str(rule.rate)),
        kind=rule.kind,
        visible_on_receipt=bool(rule.visible_on_receipt),
    )


def get_property_settings() -> PropertySettings:
    return PropertySettings.load()


def build_settlement_config(
    rules: Iterable[TaxRuleSnapshot], *, is_tax_inclusive: bool
) -> SettlementConfig:
    return SettlementConfig(tax_rules=tuple(rules), is_tax_inclusive=bool(is_tax_inclusive))


def capture_settlement_config() -> SettlementConfig:
    """Read active tax rules (in order) and the pricing mode right now."""
    rules = TaxRule.objects.filter(is_active=True).order_by("position", "created_at", "id")
    settings_row = get_property_settings()

    return build_settlement_config(
        (snapshot_rule(r) for r in rules),
        is_tax_inclusive=settings_row.is_tax_inclusive,
    )
