from datetime import date
from decimal import Decimal
from unittest import mock

from django.core.exceptions import PermissionDenied
from django.test import TestCase

from billing.models import PaymentRecord, Transaction, TransactionItem
from billing.services import transaction_service
from billing.services.concurrency import cas_update
from billing.services.exceptions import (
    BillingValidationError,
    EmptyCartError,
    MissingGuestDetailsError,
    OverpaymentError,
    RoomUnavailableError,
    SettlementConflictError,
)
from billing.services.payment_ledger import settle_transaction
from billing.services.transaction_service import (
    amend_transaction,
    create_folio,
    create_pos_sale,
    create_proforma,
    delete_transaction,
    transactions_visible_to,
    update_proforma,
)
from billing.signals import transaction_changed
from billing.tests.helpers import (
    make_menu_item,
    make_room,
    make_tax_rules,
    make_unit,
    make_user,
)
from inventory.models import Room

JAN_1 = date(2026, 1, 1)
JAN_2 = date(2026, 1, 2)
JAN_3 = date(2026, 1, 3)
JAN_4 = date(2026, 1, 4)
JAN_5 = date(2026, 1, 5)


class PosSaleTests(TestCase):
    """
    GUARANTEES:
    - Totals are computed server-side from items + captured config
    - Walk-in guest name by default
    - Tracked menu items increment sold_count once per line
    - Validation failures write nothing
    """

    def setUp(self):
        make_tax_rules()
        self.user = make_user()
        self.unit = make_unit()
        self.rice = make_menu_item(unit=self.unit)

    def test_creates_sale_with_computed_totals(self):
        txn = create_pos_sale(
            user=self.user,
            unit=self.unit,
            items=[{"menu_item": self.rice.pk, "quantity": 2}],
            payments=[{"method": "CASH", "amount": "11750"}],
        )

        self.assertTrue(txn.reference.startswith("POS-"))
        self.assertEqual(len(txn.reference), len("POS-") + 8)
        self.assertEqual(txn.guest_name, Transaction.WALK_IN_GUEST)
        self.assertEqual(txn.gross_subtotal, Decimal("10000.00"))
        self.assertEqual(txn.tax_amount, Decimal("750.00"))
        self.assertEqual(txn.service_charge, Decimal("1000.00"))
        self.assertEqual(txn.total_amount, Decimal("11750.00"))
        self.assertEqual(txn.status, Transaction.STATUS_PAID)
        self.assertEqual(txn.settlement_method, "CASH")
        self.assertEqual(txn.tax_lines.count(), 2)
        self.assertEqual(txn.items.get().description, "Jollof Rice")

    def test_tracked_menu_item_increments_sold_count(self):
        create_pos_sale(user=self.user, unit=self.unit, items=[{"menu_item": self.rice, "quantity": 3}])

        self.rice.refresh_from_db()
        self.assertEqual(self.rice.sold_count, 3)

    def test_untracked_menu_item_is_not_counted(self):
        drink = make_menu_item(name="Chapman", price="3000", unit=self.unit, track_stock=False)
        create_pos_sale(user=self.user, unit=self.unit, items=[{"menu_item": drink, "quantity": 3}])

        drink.refresh_from_db()
        self.assertEqual(drink.sold_count, 0)

    def test_unit_is_required(self):
        with self.assertRaises(BillingValidationError):
            create_pos_sale(user=self.user, unit=None, items=[{"menu_item": self.rice}])

    def test_empty_cart_rejected(self):
        with self.assertRaises(EmptyCartError):
            create_pos_sale(user=self.user, unit=self.unit, items=[])

    def test_custom_item_needs_positive_price(self):
        with self.assertRaises(BillingValidationError):
            create_pos_sale(
                user=self.user,
                unit=self.unit,
                items=[{"description": "Corkage", "quantity": 1, "unit_price": "0"}],
            )

    def test_initial_overpayment_rejected_before_write(self):
        with self.assertRaises(OverpaymentError):
            create_pos_sale(
                user=self.user,
                unit=self.unit,
                items=[{"menu_item": self.rice, "quantity": 1}],
                payments=[{"method": "CASH", "amount": "999999"}],
            )

        self.assertEqual(Transaction.objects.count(), 0)
        self.rice.refresh_from_db()
        self.assertEqual(self.rice.sold_count, 0)

    def test_change_signal_sent_after_commit(self):
        received = []

        def listener(sender, **kwargs):
            received.append(kwargs)

        transaction_changed.connect(listener)
        self.addCleanup(transaction_changed.disconnect, listener)

        with self.captureOnCommitCallbacks(execute=True):
            txn = create_pos_sale(user=self.user, unit=self.unit, items=[{"menu_item": self.rice}])

        self.assertEqual(len(received), 1)
        self.assertEqual(received[0]["reference"], txn.reference)
        self.assertEqual(received[0]["action"], "created")


class FolioTests(TestCase):
    """
    GUARANTEES:
    - unit_price = rate x nights, quantity = rooms
    - availability is checked per line with the line's own dates
    - booked_count incremented for every room line
    """

    def setUp(self):
        make_tax_rules()
        self.user = make_user()
        self.room = make_room(price="10000", inventory=2)
        self.guest = {"guest_name": "Ada Obi", "phone": "0800"}

    def _folio(self, rooms, **kwargs):
        return create_folio(user=self.user, guest=self.guest, rooms=rooms, **kwargs)

    def test_room_line_prices_nights(self):
        txn = self._folio([{"room": self.room.pk, "check_in": JAN_1, "check_out": JAN_3}])

        item = txn.items.get()
        self.assertTrue(txn.reference.startswith("RES-"))
        self.assertEqual(item.nights, 2)
        self.assertEqual(item.unit_price, Decimal("20000.00"))
        self.assertEqual(item.line_total, Decimal("20000.00"))
        self.assertEqual(txn.total_amount, Decimal("23500.00"))
        self.assertEqual((txn.check_in, txn.check_out), (JAN_1, JAN_3))

        self.room.refresh_from_db()
        self.assertEqual(self.room.booked_count, 1)

    def test_guest_name_required(self):
        with self.assertRaises(MissingGuestDetailsError):
            create_folio(
                user=self.user,
                guest={"guest_name": " "},
                rooms=[{"room": self.room, "check_in": JAN_1, "check_out": JAN_2}],
            )

    def test_at_least_one_room(self):
        with self.assertRaises(EmptyCartError):
            self._folio([])

    def test_check_out_must_follow_check_in(self):
        with self.assertRaises(BillingValidationError):
            self._folio([{"room": self.room, "check_in": JAN_2, "check_out": JAN_2}])

    def test_overlapping_stay_is_rejected(self):
        self._folio([{"room": self.room, "check_in": JAN_1, "check_out": JAN_3, "quantity": 2}])

        with self.assertRaises(RoomUnavailableError):
            self._folio([{"room": self.room, "check_in": JAN_2, "check_out": JAN_4}])

    def test_back_to_back_stays_do_not_overlap(self):
        self._folio([{"room": self.room, "check_in": JAN_1, "check_out": JAN_3, "quantity": 2}])
        txn = self._folio([{"room": self.room, "check_in": JAN_3, "check_out": JAN_5, "quantity": 2}])

        self.assertEqual(txn.items.count(), 1)

    def test_lines_are_checked_against_their_own_dates(self):
        # stay envelope is JAN_1..JAN_5 but the rooms are free from JAN_2 to JAN_4
        self._folio(
            [
                {"room": self.room, "check_in": JAN_1, "check_out": JAN_2, "quantity": 2},
                {"room": self.room, "check_in": JAN_4, "check_out": JAN_5, "quantity": 2},
            ]
        )

        txn = self._folio([{"room": self.room, "check_in": JAN_2, "check_out": JAN_4, "quantity": 2}])
        self.assertEqual(txn.items.get().nights, 2)

    def test_lines_in_the_same_request_claim_rooms(self):
        with self.assertRaises(RoomUnavailableError):
            self._folio(
                [
                    {"room": self.room, "check_in": JAN_1, "check_out": JAN_3, "quantity": 2},
                    {"room": self.room, "check_in": JAN_2, "check_out": JAN_4},
                ]
            )

        self.room.refresh_from_db()
        self.assertEqual(self.room.booked_count, 0)

    def test_room_rows_are_locked_before_overlaps_are_summed(self):
        events = []
        lock = Room.objects.select_for_update
        check = transaction_service.is_room_available

        def locking(*args, **kwargs):
            events.append("lock")
            return lock(*args, **kwargs)

        def checking(room, *args, **kwargs):
            events.append(("check", room.total_inventory))
            return check(room, *args, **kwargs)

        with mock.patch.object(Room.objects, "select_for_update", side_effect=locking), mock.patch(
            "billing.services.transaction_service.is_room_available", side_effect=checking
        ):
            self._folio([{"room": self.room, "check_in": JAN_1, "check_out": JAN_3}])

        self.assertEqual(events, ["lock", ("check", 2)])

    def test_availability_uses_the_locked_row_not_the_callers_copy(self):
        # another operator's booking and an inventory cut land after this copy was read
        stale = Room.objects.get(pk=self.room.pk)
        self._folio([{"room": self.room, "check_in": JAN_1, "check_out": JAN_3}])
        Room.objects.filter(pk=self.room.pk).update(total_inventory=1)

        with self.assertRaises(RoomUnavailableError):
            self._folio([{"room": stale, "check_in": JAN_1, "check_out": JAN_3}])

        self.assertEqual(Transaction.objects.filter(type=Transaction.TYPE_FOLIO).count(), 1)
        self.room.refresh_from_db()
        self.assertEqual(self.room.booked_count, 1)

    def test_extras_are_charged_on_the_folio(self):
        txn = self._folio(
            [{"room": self.room, "check_in": JAN_1, "check_out": JAN_2}],
            extras=[{"description": "Laundry", "quantity": 1, "unit_price": "2000"}],
        )
        self.assertEqual(txn.gross_subtotal, Decimal("12000.00"))


class ProformaTests(TestCase):
    """
    GUARANTEES:
    - room row total = qty x days x (discounted_rate or unit_rate)
    - update keeps existing rows; ONLY new rows increment counters
    """

    def setUp(self):
        self.user = make_user()
        self.room = make_room(price="10000", inventory=5)
        self.rice = make_menu_item()
        self.customer = {"guest_name": "Chidi Okeke", "organisation": "Acme Ltd", "event": "Retreat"}

    def _create(self):
        return create_proforma(
            user=self.user,
            customer=self.customer,
            room_rows=[
                {
                    "room": self.room,
                    "quantity": 2,
                    "start_date": JAN_1,
                    "end_date": JAN_4,
                    "unit_rate": "10000",
                    "discounted_rate": "8000",
                }
            ],
            food_rows=[{"menu_item": self.rice, "quantity": 10, "rate": "4000", "duration": "2 days"}],
        )

    def test_rows_are_priced(self):
        txn = self._create()

        room_row, food_row = list(txn.items.all())
        self.assertTrue(txn.reference.startswith("PRO-"))
        self.assertEqual(room_row.line_total, Decimal("48000.00"))
        self.assertEqual(room_row.list_rate, Decimal("10000.00"))
        self.assertEqual(food_row.line_total, Decimal("40000.00"))
        self.assertEqual(txn.total_amount, Decimal("88000.00"))
        self.assertEqual(txn.prepared_by, self.user.display_name)

    def test_days_fall_back_when_dates_missing(self):
        txn = create_proforma(
            user=self.user,
            customer=self.customer,
            room_rows=[{"description": "Hall", "quantity": 1, "days": 3, "unit_rate": "1000"}],
        )
        self.assertEqual(txn.total_amount, Decimal("3000.00"))

    def test_organisation_required(self):
        with self.assertRaises(MissingGuestDetailsError):
            create_proforma(
                user=self.user,
                customer={"guest_name": "Chidi"},
                food_rows=[{"description": "Buffet", "rate": "1000"}],
            )

    def test_at_least_one_row(self):
        with self.assertRaises(EmptyCartError):
            create_proforma(user=self.user, customer=self.customer)

    def test_update_increments_counters_only_for_new_rows(self):
        txn = self._create()
        self.room.refresh_from_db()
        self.rice.refresh_from_db()
        self.assertEqual(self.room.booked_count, 2)
        self.assertEqual(self.rice.sold_count, 10)

        room_row, food_row = list(txn.items.all())

        txn = update_proforma(
            transaction_id=txn.pk,
            user=self.user,
            room_rows=[
                {
                    "id": room_row.pk,
                    "room": self.room,
                    "quantity": 2,
                    "start_date": JAN_1,
                    "end_date": JAN_4,
                    "unit_rate": "10000",
                    "discounted_rate": "8000",
                }
            ],
            food_rows=[
                {"id": food_row.pk, "menu_item": self.rice, "quantity": 10, "rate": "4000"},
                {"menu_item": self.rice, "quantity": 5, "rate": "4000"},
            ],
        )

        self.room.refresh_from_db()
        self.rice.refresh_from_db()
        self.assertEqual(self.room.booked_count, 2)
        self.assertEqual(self.rice.sold_count, 15)
        self.assertEqual(txn.items.count(), 3)
        self.assertEqual(txn.total_amount, Decimal("108000.00"))
        self.assertEqual(txn.version, 1)

    def test_removed_rows_are_deleted_without_decrement(self):
        txn = self._create()
        room_row, _ = list(txn.items.all())

        txn = update_proforma(
            transaction_id=txn.pk,
            user=self.user,
            room_rows=[
                {"id": room_row.pk, "room": self.room, "quantity": 2, "days": 3, "unit_rate": "8000"}
            ],
        )

        self.rice.refresh_from_db()
        self.assertEqual(txn.items.count(), 1)
        self.assertEqual(self.rice.sold_count, 10)
        self.assertEqual(txn.total_amount, Decimal("48000.00"))

    def test_update_carries_paid_and_accepts_payments(self):
        txn = self._create()
        settle_transaction(transaction_id=txn.pk, payments=[{"method": "TRANSFER", "amount": "50000"}])

        txn = update_proforma(
            transaction_id=txn.pk,
            user=self.user,
            food_rows=[{"description": "Cocktail", "quantity": 1, "rate": "60000"}],
            payments=[{"method": "CASH", "amount": "10000"}],
        )

        self.assertEqual(txn.paid_amount, Decimal("60000.00"))
        self.assertEqual(txn.status, Transaction.STATUS_PAID)
        self.assertEqual(txn.settlement_method, "CASH")
        self.assertEqual(txn.payments.count(), 2)

    def test_foreign_row_id_rejected(self):
        txn = self._create()
        with self.assertRaises(BillingValidationError):
            update_proforma(
                transaction_id=txn.pk,
                user=self.user,
                food_rows=[{"id": 999999, "description": "X", "rate": "1"}],
            )


class AmendTests(TestCase):
    """
    GUARANTEES:
    - total recomputed from the FULL item list; paid unchanged
    - a PAID transaction can regress (logged, not blocked)
    - compare-and-swap conflicts are retried
    """

    def setUp(self):
        self.user = make_user()
        self.unit = make_unit()
        self.txn = create_pos_sale(
            user=self.user,
            unit=self.unit,
            items=[{"description": "Banquet", "quantity": 1, "unit_price": "23500"}],
            payments=[{"method": "CARD", "amount": "10000"}],
        )

    def test_new_charge_recomputes_total(self):
        self.assertEqual(self.txn.balance, Decimal("13500.00"))
        self.assertEqual(self.txn.status, Transaction.STATUS_PARTIAL)

        txn = amend_transaction(
            transaction_id=self.txn.pk,
            user=self.user,
            add_items=[{"description": "Cake", "quantity": 1, "unit_price": "5000"}],
        )

        self.assertEqual(txn.total_amount, Decimal("28500.00"))
        self.assertEqual(txn.paid_amount, Decimal("10000.00"))
        self.assertEqual(txn.balance, Decimal("18500.00"))
        self.assertEqual(txn.status, Transaction.STATUS_PARTIAL)
        self.assertEqual(txn.items.count(), 2)

    def test_paid_transaction_reopens_as_partial(self):
        settle_transaction(transaction_id=self.txn.pk, payments=[{"method": "CASH", "amount": "13500"}])

        with self.assertLogs("billing.services.transaction_service", level="WARNING") as logs:
            txn = amend_transaction(
                transaction_id=self.txn.pk,
                user=self.user,
                add_items=[{"description": "Cake", "quantity": 1, "unit_price": "5000"}],
            )

        self.assertEqual(txn.status, Transaction.STATUS_PARTIAL)
        self.assertEqual(txn.paid_amount, Decimal("23500.00"))
        self.assertEqual(txn.balance, Decimal("5000.00"))
        self.assertTrue(any("PAID -> PARTIAL" in line for line in logs.output))

    def test_discount_and_guest_edit(self):
        txn = amend_transaction(
            transaction_id=self.txn.pk,
            user=self.user,
            discount="3500",
            guest={"guest_name": "Mrs Bello", "phone": "0803"},
        )

        self.assertEqual(txn.discount, Decimal("3500.00"))
        self.assertEqual(txn.total_amount, Decimal("20000.00"))
        self.assertEqual(txn.guest_name, "Mrs Bello")
        self.assertEqual(txn.phone, "0803")

    def test_nothing_to_amend(self):
        with self.assertRaises(BillingValidationError):
            amend_transaction(transaction_id=self.txn.pk, user=self.user)

    def test_counters_only_for_added_items(self):
        rice = make_menu_item(unit=self.unit)
        amend_transaction(
            transaction_id=self.txn.pk,
            user=self.user,
            add_items=[{"menu_item": rice, "quantity": 2}],
        )
        amend_transaction(transaction_id=self.txn.pk, user=self.user, discount="100")

        rice.refresh_from_db()
        self.assertEqual(rice.sold_count, 2)

    def test_conflict_retried_then_applied_once(self):
        calls = {"n": 0}

        def flaky(txn, **fields):
            calls["n"] += 1
            if calls["n"] == 1:
                raise SettlementConflictError("simulated")
            return cas_update(txn, **fields)

        with mock.patch("billing.services.transaction_service.cas_update", side_effect=flaky):
            txn = amend_transaction(
                transaction_id=self.txn.pk,
                user=self.user,
                add_items=[{"description": "Cake", "quantity": 1, "unit_price": "5000"}],
            )

        self.assertEqual(calls["n"], 2)
        self.assertEqual(txn.items.count(), 2)
        self.assertEqual(txn.version, 1)

    def test_added_room_line_is_availability_checked(self):
        room = make_room(inventory=1)
        create_folio(
            user=self.user,
            guest={"guest_name": "Other"},
            rooms=[{"room": room, "check_in": JAN_1, "check_out": JAN_3}],
        )

        with self.assertRaises(RoomUnavailableError):
            amend_transaction(
                transaction_id=self.txn.pk,
                user=self.user,
                add_rooms=[{"room": room, "check_in": JAN_2, "check_out": JAN_3}],
            )

    def test_added_room_line_is_checked_under_a_row_lock(self):
        room = make_room(name="Classic", inventory=1)

        with mock.patch.object(
            Room.objects, "select_for_update", wraps=Room.objects.select_for_update
        ) as lock:
            amend_transaction(
                transaction_id=self.txn.pk,
                user=self.user,
                add_rooms=[{"room": room, "check_in": JAN_1, "check_out": JAN_2}],
            )

        lock.assert_called_once_with()


class DeleteAndVisibilityTests(TestCase):
    def setUp(self):
        self.staff = make_user()
        self.other = make_user(email="zenza@example.com")
        self.admin = make_user(email="admin@example.com", role="admin")
        self.unit = make_unit()
        self.txn = create_pos_sale(
            user=self.staff,
            unit=self.unit,
            items=[{"description": "Soup", "quantity": 1, "unit_price": "1000"}],
            payments=[{"method": "CASH", "amount": "500"}],
        )
        create_pos_sale(
            user=self.other,
            unit=self.unit,
            items=[{"description": "Tea", "quantity": 1, "unit_price": "500"}],
        )

    def test_staff_cannot_delete(self):
        with self.assertRaises(PermissionDenied):
            delete_transaction(transaction_id=self.txn.pk, user=self.staff)
        self.assertTrue(Transaction.objects.filter(pk=self.txn.pk).exists())

    def test_admin_hard_deletes_with_children(self):
        reference = delete_transaction(transaction_id=self.txn.pk, user=self.admin)

        self.assertEqual(reference, self.txn.reference)
        self.assertFalse(Transaction.objects.filter(pk=self.txn.pk).exists())
        self.assertFalse(TransactionItem.objects.filter(transaction_id=self.txn.pk).exists())
        self.assertFalse(PaymentRecord.objects.filter(transaction_id=self.txn.pk).exists())

    def test_staff_see_only_their_own(self):
        self.assertEqual(transactions_visible_to(self.staff).count(), 1)
        self.assertEqual(transactions_visible_to(self.admin).count(), 2)
