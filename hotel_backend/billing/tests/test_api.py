from decimal import Decimal
from unittest import mock

from django.db import OperationalError
from django.test import TestCase
from rest_framework.test import APIClient

from billing.models import Transaction
from billing.services.exceptions import SettlementConflictError
from billing.services.transaction_service import create_pos_sale
from billing.tests.helpers import (
    make_menu_item,
    make_room,
    make_tax_rules,
    make_unit,
    make_unit_bank,
    make_user,
)

BASE = "/api/billing/transactions/"


class BillingApiTests(TestCase):
    """
    GUARANTEES:
    - Only verified operators reach billing endpoints
    - Domain errors use the {"error": {"code", "message"}} envelope
    - Staff see only their own transactions; delete is admin-only
    """

    def setUp(self):
        make_tax_rules()
        self.client = APIClient()

        self.staff = make_user()
        self.other_staff = make_user(email="whispers@example.com")
        self.admin = make_user(email="admin@example.com", role="admin")
        self.unverified = make_user(email="new@example.com", verified=False)

        self.unit = make_unit()
        make_unit_bank(self.unit)
        self.rice = make_menu_item(unit=self.unit)
        self.room = make_room()

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------

    def _as(self, user):
        self.client.force_authenticate(user=user)

    def _sale(self, user=None, **overrides):
        payload = {
            "unit": self.unit.pk,
            "items": [{"menu_item": self.rice.pk, "quantity": 2}],
            "payments": [],
        }
        payload.update(overrides)
        self._as(user or self.staff)
        return self.client.post(f"{BASE}pos/", payload, format="json")

    # --------------------------------------------------
    # ACCESS
    # --------------------------------------------------

    def test_anonymous_denied(self):
        res = self.client.get(BASE)
        self.assertEqual(res.status_code, 401)

    def test_unverified_operator_denied(self):
        self._as(self.unverified)
        res = self.client.get(BASE)
        self.assertEqual(res.status_code, 403)

    # --------------------------------------------------
    # CREATE
    # --------------------------------------------------

    def test_create_pos_sale(self):
        res = self._sale(payments=[{"method": "CASH", "amount": "5000"}])

        self.assertEqual(res.status_code, 201, res.data)
        self.assertTrue(res.data["reference"].startswith("POS-"))
        self.assertEqual(Decimal(res.data["total_amount"]), Decimal("11750.00"))
        self.assertEqual(res.data["status"], "PARTIAL")
        self.assertEqual(len(res.data["items"]), 1)
        self.assertEqual(len(res.data["payments"]), 1)

    def test_client_cannot_send_totals(self):
        res = self._sale(total_amount="1.00")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(Decimal(res.data["total_amount"]), Decimal("11750.00"))

    def test_empty_cart_uses_error_envelope(self):
        res = self._sale(items=[])

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "EMPTY_CART")

    def test_create_folio(self):
        self._as(self.staff)
        res = self.client.post(
            f"{BASE}folios/",
            {
                "guest": {"guest_name": "Ada Obi", "email": "ada@example.com"},
                "rooms": [{"room": self.room.pk, "check_in": "2026-04-01", "check_out": "2026-04-03"}],
            },
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["type"], "FOLIO")
        self.assertEqual(Decimal(res.data["gross_subtotal"]), Decimal("20000.00"))

    def test_folio_without_guest_name(self):
        self._as(self.staff)
        res = self.client.post(
            f"{BASE}folios/",
            {
                "guest": {"phone": "0800"},
                "rooms": [{"room": self.room.pk, "check_in": "2026-04-01", "check_out": "2026-04-03"}],
            },
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "MISSING_GUEST_DETAILS")

    def test_create_and_update_proforma(self):
        self._as(self.staff)
        res = self.client.post(
            f"{BASE}proformas/",
            {
                "customer": {"guest_name": "Chidi", "organisation": "Acme"},
                "food_rows": [{"description": "Buffet", "quantity": 10, "rate": "1000"}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        row_id = res.data["items"][0]["id"]

        res = self.client.put(
            f"{BASE}{res.data['id']}/proforma/",
            {
                "food_rows": [
                    {"id": row_id, "description": "Buffet", "quantity": 10, "rate": "1000"},
                    {"description": "Drinks", "quantity": 5, "rate": "500"},
                ]
            },
            format="json",
        )

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(len(res.data["items"]), 2)
        self.assertEqual(res.data["items"][0]["id"], row_id)

    def test_proforma_edit_rejected_for_pos(self):
        sale = self._sale().data
        res = self.client.put(f"{BASE}{sale['id']}/proforma/", {"food_rows": []}, format="json")
        self.assertEqual(res.status_code, 400)

    # --------------------------------------------------
    # SETTLE / AMEND
    # --------------------------------------------------

    def test_settle_and_overpay(self):
        sale = self._sale().data

        res = self.client.post(
            f"{BASE}{sale['id']}/settle/",
            {"payments": [{"method": "CARD", "amount": "11750"}]},
            format="json",
        )
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "PAID")

        res = self.client.post(
            f"{BASE}{sale['id']}/settle/",
            {"payments": [{"method": "CASH", "amount": "1"}]},
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "OVERPAYMENT")

    def test_settle_conflict_returns_409(self):
        sale = self._sale().data

        with mock.patch(
            "billing.services.payment_ledger.cas_update",
            side_effect=SettlementConflictError("busy"),
        ):
            res = self.client.post(
                f"{BASE}{sale['id']}/settle/",
                {"payments": [{"method": "CASH", "amount": "100"}]},
                format="json",
            )

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "SETTLEMENT_CONFLICT")

    def test_transient_database_error_returns_503(self):
        sale = self._sale().data

        with mock.patch(
            "billing.api.views.settle_transaction",
            side_effect=OperationalError("database is locked"),
        ):
            res = self.client.post(
                f"{BASE}{sale['id']}/settle/",
                {"payments": [{"method": "CASH", "amount": "100"}]},
                format="json",
            )

        self.assertEqual(res.status_code, 503)
        self.assertEqual(res.data["error"]["code"], "TRANSIENT_ERROR")

    def test_amend_adds_charge(self):
        sale = self._sale().data

        res = self.client.post(
            f"{BASE}{sale['id']}/amend/",
            {"add_items": [{"description": "Dessert", "quantity": 1, "unit_price": "1000"}]},
            format="json",
        )

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(Decimal(res.data["total_amount"]), Decimal("12925.00"))
        self.assertEqual(res.data["version"], 1)

    # --------------------------------------------------
    # VISIBILITY / DELETE
    # --------------------------------------------------

    def test_staff_list_only_their_own(self):
        self._sale(user=self.staff)
        self._sale(user=self.other_staff)

        self._as(self.staff)
        res = self.client.get(BASE)
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)

        self._as(self.admin)
        res = self.client.get(BASE)
        self.assertEqual(res.data["count"], 2)

    def test_staff_cannot_open_another_staff_transaction(self):
        other = self._sale(user=self.other_staff).data

        self._as(self.staff)
        res = self.client.get(f"{BASE}{other['id']}/")
        self.assertEqual(res.status_code, 404)

    def test_delete_is_admin_only(self):
        sale = self._sale().data

        self._as(self.staff)
        res = self.client.delete(f"{BASE}{sale['id']}/")
        self.assertEqual(res.status_code, 403)

        self._as(self.admin)
        res = self.client.delete(f"{BASE}{sale['id']}/")
        self.assertEqual(res.status_code, 200)
        self.assertFalse(Transaction.objects.filter(pk=sale["id"]).exists())

    def test_list_filters(self):
        self._sale()
        create_pos_sale(
            user=self.staff,
            unit=self.unit,
            items=[{"description": "Tea", "quantity": 1, "unit_price": "100"}],
            payments=[{"method": "CASH", "amount": "117.50"}],
        )

        self._as(self.staff)
        res = self.client.get(BASE, {"status": "paid"})
        self.assertEqual(res.data["count"], 1)

        res = self.client.get(BASE, {"unit": "zenza", "type": "pos"})
        self.assertEqual(res.data["count"], 2)

    # --------------------------------------------------
    # RECEIPT / EXPORT / REPORT
    # --------------------------------------------------

    def test_receipt(self):
        sale = self._sale().data
        res = self.client.get(f"{BASE}{sale['id']}/receipt/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["layout"], "DOCKET")
        self.assertEqual(len(res.data["bank_accounts"]), 1)

    def test_export_csv(self):
        self._sale()
        res = self.client.get(f"{BASE}export/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res["Content-Type"], "text/csv")
        lines = res.content.decode().strip().splitlines()
        self.assertTrue(lines[0].startswith("Reference,Date,Time,Type,Guest,Unit"))
        self.assertEqual(len(lines), 2)

    def test_daily_report(self):
        self._sale(payments=[{"method": "CARD", "amount": "11750"}])

        res = self.client.get("/api/billing/reports/daily/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["transactions_count"], 1)
        self.assertEqual(res.data["by_method"]["CARD"], "11750.00")
