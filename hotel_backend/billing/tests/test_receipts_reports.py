import csv
import io
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from billing.models import Transaction
from billing.services.payment_ledger import settle_transaction
from billing.services.receipt_service import LAYOUT_A4, LAYOUT_DOCKET, build_receipt
from billing.services.reports import (
    FOLIO_BUCKET,
    TRANSACTION_CSV_HEADER,
    daily_sales_report,
    export_transactions_csv,
)
from billing.services.transaction_service import create_folio, create_pos_sale, create_proforma
from billing.tests.helpers import (
    make_invoice_bank,
    make_room,
    make_tax_rules,
    make_unit,
    make_unit_bank,
    make_user,
)
from property_config.models import PropertySettings, TaxRule
from property_config.services import TaxRuleSnapshot, build_settlement_config


class ReceiptTests(TestCase):
    """
    GUARANTEES:
    - DOCKET layout for POS, A4 otherwise
    - Only taxes marked visible_on_receipt are printed
    - Unit banks for POS/folio, invoice banks for proformas
    - Reprints use the stored tax snapshot, not the live tax table
    """

    def setUp(self):
        self.vat, self.sc = make_tax_rules()
        self.sc.visible_on_receipt = False
        self.sc.save()

        self.user = make_user()
        self.zenza = make_unit()
        self.whispers = make_unit(code="WHISPERS", name="Whispers Lounge")
        self.zenza_bank = make_unit_bank(self.zenza)
        make_unit_bank(self.whispers, bank="Opay", number="0000000002")
        self.invoice_bank = make_invoice_bank()

        self.sale = create_pos_sale(
            user=self.user,
            unit=self.zenza,
            items=[{"description": "Pepper soup", "quantity": 2, "unit_price": "10000"}],
            payments=[{"method": "CARD", "amount": "10000"}],
        )

    def test_pos_receipt_is_a_docket_with_visible_taxes_only(self):
        receipt = build_receipt(self.sale)

        self.assertEqual(receipt["layout"], LAYOUT_DOCKET)
        self.assertEqual(receipt["reference"], self.sale.reference)
        self.assertEqual(receipt["subtotal"], "20000.00")
        self.assertEqual(receipt["taxes"], [{"name": "VAT", "rate": "0.0750", "amount": "1500.00"}])
        self.assertEqual(receipt["total"], "23500.00")
        self.assertEqual(receipt["paid"], "10000.00")
        self.assertEqual(receipt["balance"], "13500.00")
        self.assertEqual(receipt["status"], Transaction.STATUS_PARTIAL)
        self.assertEqual(len(receipt["payments"]), 1)
        self.assertEqual(receipt["cashier"], self.user.display_name)

    def test_explicit_config_decides_which_taxes_print(self):
        config = build_settlement_config(
            [
                TaxRuleSnapshot(
                    id=self.vat.pk,
                    name="VAT",
                    rate=Decimal("0.075"),
                    kind="VAT",
                    visible_on_receipt=False,
                ),
                TaxRuleSnapshot(
                    id=self.sc.pk, name="Service Charge", rate=Decimal("0.10"), kind="SERVICE_CHARGE"
                ),
            ],
            is_tax_inclusive=False,
        )

        receipt = build_receipt(self.sale, config=config)

        self.assertEqual([r.name for r in config.visible_rules], ["Service Charge"])
        self.assertEqual(receipt["taxes"], [{"name": "Service Charge", "rate": "0.10", "amount": "2000.00"}])
        self.assertEqual(receipt["total"], "23500.00")

    def test_pos_receipt_lists_only_the_units_banks(self):
        receipt = build_receipt(self.sale)

        self.assertEqual(
            receipt["bank_accounts"],
            [
                {
                    "bank": self.zenza_bank.bank,
                    "account_number": self.zenza_bank.account_number,
                    "account_name": self.zenza_bank.account_name,
                }
            ],
        )

    def test_proforma_receipt_uses_invoice_banks(self):
        proforma = create_proforma(
            user=self.user,
            customer={"guest_name": "Chidi", "organisation": "Acme"},
            food_rows=[{"description": "Buffet", "quantity": 10, "rate": "1000"}],
        )
        receipt = build_receipt(proforma)

        self.assertEqual(receipt["layout"], LAYOUT_A4)
        self.assertEqual([b["bank"] for b in receipt["bank_accounts"]], [self.invoice_bank.bank])
        self.assertEqual(receipt["customer"]["organisation"], "Acme")

    def test_folio_receipt_has_stay(self):
        room = make_room()
        folio = create_folio(
            user=self.user,
            guest={"guest_name": "Ada"},
            rooms=[{"room": room, "check_in": "2026-02-01", "check_out": "2026-02-03"}],
        )
        receipt = build_receipt(folio)

        self.assertEqual(receipt["layout"], LAYOUT_A4)
        self.assertEqual(receipt["stay"], {"check_in": "2026-02-01", "check_out": "2026-02-03"})
        self.assertEqual(receipt["items"][0]["nights"], 2)

    def test_reprint_ignores_later_tax_changes(self):
        TaxRule.objects.filter(pk=self.vat.pk).update(rate=Decimal("0.2"))
        settings_row = PropertySettings.load()
        settings_row.is_tax_inclusive = True
        settings_row.save()

        receipt = build_receipt(self.sale)

        self.assertEqual(receipt["pricing_mode"], "exclusive")
        self.assertEqual(receipt["taxes"][0]["amount"], "1500.00")
        self.assertEqual(receipt["total"], "23500.00")

    def test_header_carries_property_identity(self):
        settings_row = PropertySettings.load()
        settings_row.property_name = "Test Hotel"
        settings_row.property_address = "1 Marina"
        settings_row.save()

        receipt = build_receipt(self.sale)
        self.assertEqual(receipt["property"], {"name": "Test Hotel", "address": "1 Marina"})


class DailyReportTests(TestCase):
    def setUp(self):
        make_tax_rules()
        self.staff = make_user()
        self.admin = make_user(email="admin@example.com", role="admin")
        self.zenza = make_unit()
        self.room = make_room()

        self.sale = create_pos_sale(
            user=self.staff,
            unit=self.zenza,
            items=[{"description": "Grill", "quantity": 2, "unit_price": "10000"}],
            payments=[{"method": "CARD", "amount": "10000"}],
        )
        self.folio = create_folio(
            user=self.admin,
            guest={"guest_name": "Ada"},
            rooms=[{"room": self.room, "check_in": "2026-03-01", "check_out": "2026-03-02"}],
            unit=self.zenza,
        )
        settle_transaction(
            transaction_id=self.folio.pk,
            payments=[{"method": "CASH", "amount": "11750"}],
        )

    def test_admin_report_covers_everything(self):
        report = daily_sales_report(timezone.localdate(), user=self.admin)

        self.assertEqual(report["transactions_count"], 2)
        self.assertEqual(report["gross"], "30000.00")
        self.assertEqual(report["net"], "30000.00")
        self.assertEqual(report["vat"], "2250.00")
        self.assertEqual(report["service_charge"], "3000.00")
        self.assertEqual(report["total"], "35250.00")
        self.assertEqual(report["paid"], "21750.00")
        self.assertEqual(report["outstanding"], "13500.00")
        self.assertEqual(report["by_method"]["CARD"], "10000.00")
        self.assertEqual(report["by_method"]["CASH"], "11750.00")
        self.assertEqual(report["by_method"]["TRANSFER"], "0.00")
        self.assertEqual(set(report["by_unit"]), {"ZENZA", FOLIO_BUCKET})
        self.assertEqual(report["by_unit"][FOLIO_BUCKET]["total"], "11750.00")
        self.assertEqual(report["by_type"]["POS"]["count"], 1)

    def test_staff_report_is_scoped_to_own_transactions(self):
        report = daily_sales_report(timezone.localdate(), user=self.staff)

        self.assertEqual(report["transactions_count"], 1)
        self.assertEqual(report["total"], "23500.00")
        self.assertEqual(report["by_method"]["CASH"], "0.00")

    def test_other_days_are_empty(self):
        report = daily_sales_report(timezone.localdate() - timedelta(days=1), user=self.admin)

        self.assertEqual(report["transactions_count"], 0)
        self.assertEqual(report["total"], "0.00")


class TransactionCsvTests(TestCase):
    def test_columns_and_rows(self):
        user = make_user()
        unit = make_unit()
        txn = create_pos_sale(
            user=user,
            unit=unit,
            items=[{"description": "Tea", "quantity": 1, "unit_price": "500"}],
            payments=[{"method": "POS", "amount": "500"}],
        )

        rows = list(csv.reader(io.StringIO(export_transactions_csv(Transaction.objects.all()))))

        self.assertEqual(
            rows[0],
            [
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
            ],
        )
        self.assertEqual(rows[0], TRANSACTION_CSV_HEADER)
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[1][0], txn.reference)
        self.assertEqual(rows[1][3:7], ["POS", Transaction.WALK_IN_GUEST, unit.name, "POS"])
        self.assertEqual(rows[1][11:], ["500.00", "500.00", "0.00", "PAID"])
