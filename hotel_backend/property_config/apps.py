"""
PATH: property_config/apps.py

PROPERTY CONFIGURATION APP

Owns the settings every settlement reads:
- ordered tax rules (VAT / service charge / other)
- pricing mode (tax-inclusive or exclusive)
- revenue units and the bank accounts printed for them

Calculations never read these live; they receive a SettlementConfig snapshot.
"""

from django.apps import AppConfig


class PropertyConfigConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "property_config"
    verbose_name = "Property configuration"
