from .bank_account import BankAccount
from .property_settings import PropertySettings
from .tax_rule import TaxRule
from .unit import Unit

__all__ = ["BankAccount", "PropertySettings", "TaxRule", "Unit"]
