from __future__ import annotations

from property_config.models import BankAccount


def bank_accounts_for(unit=None, *, invoice: bool = False) -> list[BankAccount]:
    """
    Bank instructions for a receipt.

    - invoice=True (proforma): the INVOICE accounts
    - otherwise: the accounts of the transaction's unit, if any
    """
    qs = BankAccount.objects.filter(is_active=True)

    if invoice:
        return list(qs.filter(purpose=BankAccount.PURPOSE_INVOICE))

    if unit is None:
        return []

    return list(qs.filter(purpose=BankAccount.PURPOSE_UNIT, unit=unit))
