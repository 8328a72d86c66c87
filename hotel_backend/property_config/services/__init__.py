from .banks import bank_accounts_for
from .snapshot import (
    SettlementConfig,
    TaxRuleSnapshot,
    build_settlement_config,
    capture_settlement_config,
    get_property_settings,
    snapshot_rule,
)

__all__ = [
    "SettlementConfig",
    "TaxRuleSnapshot",
    "bank_accounts_for",
    "build_settlement_config",
    "capture_settlement_config",
    "get_property_settings",
    "snapshot_rule",
]
