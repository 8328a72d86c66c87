"""Shared fixtures for billing tests."""

from decimal import Decimal

from django.contrib.auth import get_user_model

from inventory.models import MenuItem, Room
from property_config.models import BankAccount, PropertySettings, TaxRule, Unit

User = get_user_model()


def make_user(email="frontdesk@example.com", role="staff", verified=True):
    return User.objects.create_user(
        email=email,
        password="pass",
        role=role,
        email_verified=verified,
    )


def make_tax_rules(*, inclusive=False):
    vat = TaxRule.objects.create(name="VAT", rate=Decimal("0.075"), kind=TaxRule.KIND_VAT)
    sc = TaxRule.objects.create(
        name="Service Charge", rate=Decimal("0.10"), kind=TaxRule.KIND_SERVICE_CHARGE
    )
    settings_row = PropertySettings.load()
    settings_row.is_tax_inclusive = inclusive
    settings_row.save()
    return vat, sc


def make_unit(code="ZENZA", name="Zenza Restaurant"):
    return Unit.objects.create(code=code, name=name)


def make_room(name="Deluxe", price="10000", inventory=2):
    return Room.objects.create(
        name=name,
        room_type="Standard",
        price=Decimal(price),
        total_inventory=inventory,
    )


def make_menu_item(name="Jollof Rice", price="5000", unit=None, track_stock=True, stock=50):
    return MenuItem.objects.create(
        name=name,
        category="Food",
        unit=unit,
        price=Decimal(price),
        track_stock=track_stock,
        initial_stock=stock,
    )


def make_unit_bank(unit, bank="Moniepoint", number="0000000001"):
    return BankAccount.objects.create(
        bank=bank,
        account_number=number,
        account_name=f"{unit.name} Ltd",
        purpose=BankAccount.PURPOSE_UNIT,
        unit=unit,
    )


def make_invoice_bank(bank="Zenith Bank", number="1000000001"):
    return BankAccount.objects.create(
        bank=bank,
        account_number=number,
        account_name="Hotel Invoices",
        purpose=BankAccount.PURPOSE_INVOICE,
    )
