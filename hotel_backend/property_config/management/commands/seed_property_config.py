# property_config/management/commands/seed_property_config.py

from __future__ import annotations

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from property_config.models import BankAccount, PropertySettings, TaxRule, Unit

DEFAULT_TAX_RULES = [
    ("VAT", Decimal("0.0750"), TaxRule.KIND_VAT),
    ("Service Charge", Decimal("0.1000"), TaxRule.KIND_SERVICE_CHARGE),
]

DEFAULT_UNITS = [
    ("ZENZA", "Zenza"),
    ("WHISPERS", "Whispers"),
]

UNIT_BANKS = {
    "ZENZA": ("Moniepoint", "5226968546", "Tide Hotels and Resorts LTD - Zenza"),
    "WHISPERS": ("Suntrust Bank", "9990000647", "Tidé Hotels and Resorts"),
}

INVOICE_BANKS = [
    ("Zenith Bank", "1311027935", "Tidé Hotels and Resort"),
    ("Moniepoint", "5169200615", "Tidé Hotels and Resorts"),
]


class Command(BaseCommand):
    help = "Seed tax rules, pricing mode, revenue units and bank accounts (idempotent)."

    @transaction.atomic
    def handle(self, *args, **options):
        PropertySettings.load()

        for position, (name, rate, kind) in enumerate(DEFAULT_TAX_RULES, start=1):
            _, created = TaxRule.objects.get_or_create(
                name=name,
                defaults={"rate": rate, "kind": kind, "position": position},
            )
            self.stdout.write(f"{'created' if created else 'exists '}: tax rule {name}")

        for code, name in DEFAULT_UNITS:
            unit, created = Unit.objects.get_or_create(code=code, defaults={"name": name})
            self.stdout.write(f"{'created' if created else 'exists '}: unit {code}")

            bank, number, account_name = UNIT_BANKS[code]
            BankAccount.objects.get_or_create(
                unit=unit,
                account_number=number,
                defaults={
                    "bank": bank,
                    "account_name": account_name,
                    "purpose": BankAccount.PURPOSE_UNIT,
                },
            )

        for bank, number, account_name in INVOICE_BANKS:
            BankAccount.objects.get_or_create(
                purpose=BankAccount.PURPOSE_INVOICE,
                account_number=number,
                defaults={"bank": bank, "account_name": account_name},
            )

        self.stdout.write(self.style.SUCCESS("Property configuration seeded."))
