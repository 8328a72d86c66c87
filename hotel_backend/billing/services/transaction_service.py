# billing/services/transaction_service.py

"""
TRANSACTION SERVICE (APPLICATION SERVICE)

Purpose:
- Create POS sales, room folios and proforma invoices.
- Amend transactions (new charges, discount, guest details).
- Replace proforma rows.
- Hard-delete transactions (privileged).

Hard rules:
- Totals come from settlement_calculator with a SettlementConfig snapshot
  captured once per operation; the frontend never supplies money totals.
- Every validation error is raised BEFORE the first write.
- Writes that touch an existing transaction's money go through cas_update()
  and are retried on conflict (see billing.services.concurrency).
- Inventory counters are incremented in the SAME atomic block, once per
  newly added item that references a room or stock-tracked menu item.
- paid_amount is never reduced here; amendments can reopen a PAID
  transaction (status regression is logged, not blocked).
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Mapping, Optional

from django.core.exceptions import PermissionDenied
from django.db import transaction as db_transaction
from django.utils.dateparse import parse_date

from billing.models import Transaction, TransactionItem, TransactionTax
from billing.services.concurrency import cas_update, run_with_retry
from billing.services.exceptions import (
    BillingValidationError,
    EmptyCartError,
    MissingGuestDetailsError,
    RoomUnavailableError,
)
from billing.services.money import to_money
from billing.services.payment_ledger import (
    LedgerState,
    apply_payments,
    normalize_payments,
    record_payments,
)
from billing.services.settlement_calculator import Settlement, compute_with_config
from billing.services.transaction_lifecycle import (
    derive_balance,
    derive_status,
    describe_regression,
    is_regression,
)
from billing.signals import emit_transaction_changed
from inventory.models import MenuItem, Room
from inventory.services import apply_counter_increments, is_room_available
from permissions.roles import CAP_BILLING_DELETE, CAP_REPORTS_VIEW_ALL, user_has_capability
from property_config.services import SettlementConfig, capture_settlement_config

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

GUEST_FIELDS = ("guest_name", "identity_type", "id_number", "email", "phone")
PROFORMA_FIELDS = ("organisation", "address", "event", "event_period", "prepared_by")
EDITABLE_HEADER_FIELDS = GUEST_FIELDS + PROFORMA_FIELDS


# ============================================================
# INPUT NORMALIZATION
# ============================================================


def _field(obj: Any, name: str, default=None):
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _text(value) -> str:
    return (str(value) if value is not None else "").strip()


def _to_int_qty(value, *, label: str) -> int:
    if value is None or value == "":
        return 1

    if isinstance(value, bool):
        raise BillingValidationError(f"{label} must be a whole number")

    if isinstance(value, int):
        qty = value
    elif isinstance(value, str) and value.strip().isdigit():
        qty = int(value.strip())
    else:
        raise BillingValidationError(f"{label} must be a whole number")

    if qty <= 0:
        raise BillingValidationError(f"{label} must be greater than zero")
    return qty


def _to_amount(value, *, label: str, allow_zero: bool = True) -> Decimal:
    try:
        amount = to_money(value)
    except (InvalidOperation, ValueError, TypeError):
        raise BillingValidationError(f"{label} is not a valid amount")

    if amount < ZERO or (not allow_zero and amount == ZERO):
        qualifier = "zero or more" if allow_zero else "greater than zero"
        raise BillingValidationError(f"{label} must be {qualifier}")
    return amount


def _to_date(value, *, label: str) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value))
    if parsed is None:
        raise BillingValidationError(f"{label} must be a date (YYYY-MM-DD)")
    return parsed


def _resolve(model, row, key: str, *, label: str):
    obj = _field(row, key)
    if obj is not None and not isinstance(obj, (int, str)):
        return obj

    pk = obj if obj is not None else _field(row, f"{key}_id")
    if pk in (None, ""):
        return None

    try:
        return model.objects.get(pk=pk)
    except (model.DoesNotExist, ValueError):
        raise BillingValidationError(f"{label}: {model.__name__} {pk} not found")


def _nights(check_in: date, check_out: date) -> int:
    return max(1, (check_out - check_in).days)


def _finish_item(item: TransactionItem) -> TransactionItem:
    item.line_total = item.compute_line_total()
    return item


# ============================================================
# LINE ITEM BUILDERS (unsaved TransactionItem instances)
# ============================================================


def build_sale_item(row, idx: int) -> TransactionItem:
    """
    POS / incidental line: {description?, quantity, unit_price?, menu_item?}.
    A menu item supplies default description and price.
    """
    label = f"items[{idx}]"
    menu_item = _resolve(MenuItem, row, "menu_item", label=label)

    description = _text(_field(row, "description")) or (menu_item.name if menu_item else "")
    if not description:
        raise BillingValidationError(f"{label}.description is required")

    raw_price = _field(row, "unit_price")
    if raw_price in (None, "") and menu_item is not None:
        raw_price = menu_item.price

    return _finish_item(
        TransactionItem(
            kind=TransactionItem.KIND_MENU if menu_item else TransactionItem.KIND_CUSTOM,
            description=description,
            quantity=_to_int_qty(_field(row, "quantity"), label=f"{label}.quantity"),
            unit_price=_to_amount(raw_price, label=f"{label}.unit_price", allow_zero=False),
            menu_item=menu_item,
        )
    )


def build_room_item(row, idx: int) -> TransactionItem:
    """
    Folio room line: {room, check_in, check_out, quantity?, rate?}.
    unit_price = nightly rate x nights, quantity = number of rooms.
    """
    label = f"rooms[{idx}]"
    room = _resolve(Room, row, "room", label=label)
    if room is None:
        raise BillingValidationError(f"{label}.room is required")

    check_in = _to_date(_field(row, "check_in"), label=f"{label}.check_in")
    check_out = _to_date(_field(row, "check_out"), label=f"{label}.check_out")
    if check_in is None or check_out is None:
        raise BillingValidationError(f"{label}: check-in and check-out dates are required")
    if check_out <= check_in:
        raise BillingValidationError(f"{label}: check-out must be after check-in")

    raw_rate = _field(row, "rate")
    rate = _to_amount(room.price if raw_rate in (None, "") else raw_rate, label=f"{label}.rate")
    nights = _nights(check_in, check_out)

    return _finish_item(
        TransactionItem(
            kind=TransactionItem.KIND_ROOM,
            description=f"{room.name} ({room.room_type})" if room.room_type else room.name,
            quantity=_to_int_qty(_field(row, "quantity"), label=f"{label}.quantity"),
            unit_price=to_money(rate * nights),
            room=room,
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            list_rate=rate,
        )
    )


def build_proforma_room_row(row, idx: int) -> TransactionItem:
    """
    Proforma accommodation row:
    total = qty x days x (discounted_rate or unit_rate), days = max(1, end - start).
    """
    label = f"room_rows[{idx}]"
    room = _resolve(Room, row, "room", label=label)

    description = _text(_field(row, "description")) or (room.name if room else "")
    if not description:
        raise BillingValidationError(f"{label}.description is required")

    start = _to_date(_field(row, "start_date"), label=f"{label}.start_date")
    end = _to_date(_field(row, "end_date"), label=f"{label}.end_date")
    if start and end:
        if end < start:
            raise BillingValidationError(f"{label}: end date is before start date")
        days = _nights(start, end)
    else:
        days = _to_int_qty(_field(row, "days"), label=f"{label}.days")

    raw_unit_rate = _field(row, "unit_rate")
    if raw_unit_rate in (None, "") and room is not None:
        raw_unit_rate = room.price
    unit_rate = _to_amount(raw_unit_rate, label=f"{label}.unit_rate")
    discounted = _to_amount(_field(row, "discounted_rate"), label=f"{label}.discounted_rate")
    effective = discounted if discounted > ZERO else unit_rate

    return _finish_item(
        TransactionItem(
            kind=TransactionItem.KIND_ROOM,
            description=description,
            quantity=_to_int_qty(_field(row, "quantity"), label=f"{label}.quantity"),
            unit_price=to_money(effective * days),
            room=room,
            check_in=start,
            check_out=end,
            nights=days,
            list_rate=unit_rate,
        )
    )


def build_proforma_food_row(row, idx: int) -> TransactionItem:
    """Proforma food & beverage row: total = qty x rate."""
    label = f"food_rows[{idx}]"
    menu_item = _resolve(MenuItem, row, "menu_item", label=label)

    description = _text(_field(row, "description")) or (menu_item.name if menu_item else "")
    if not description:
        raise BillingValidationError(f"{label}.description is required")

    raw_rate = _field(row, "rate")
    if raw_rate in (None, "") and menu_item is not None:
        raw_rate = menu_item.price

    return _finish_item(
        TransactionItem(
            kind=TransactionItem.KIND_MENU if menu_item else TransactionItem.KIND_CUSTOM,
            description=description,
            quantity=_to_int_qty(_field(row, "quantity"), label=f"{label}.quantity"),
            unit_price=_to_amount(raw_rate, label=f"{label}.rate"),
            menu_item=menu_item,
            duration=_text(_field(row, "duration")),
            comment=_text(_field(row, "comment")),
        )
    )


# ============================================================
# SHARED STEPS
# ============================================================


def _operator_name(user) -> str:
    if user is None:
        return ""
    return getattr(user, "display_name", "") or getattr(user, "email", "")


def _lock_rooms(room_items: list[TransactionItem]) -> dict:
    """
    SELECT ... FOR UPDATE on every room type the request books, in pk order.
    Callers hold transaction.atomic; overlaps are summed only under the lock.
    """
    room_ids = sorted({item.room_id for item in room_items if item.room_id})
    if not room_ids:
        return {}
    rooms = Room.objects.select_for_update().filter(pk__in=room_ids).order_by("pk")
    return {room.pk: room for room in rooms}


def _check_room_availability(room_items: Iterable[TransactionItem], *, exclude_transaction_id=None) -> None:
    """
    Per-line overlap check: each room line is tested with its own dates.
    Lines earlier in the same request that overlap count as already claimed.
    """
    room_items = list(room_items)
    locked = _lock_rooms(room_items)

    claimed: list[TransactionItem] = []
    for item in room_items:
        if not item.room_id or not item.check_in or not item.check_out:
            continue

        room = locked[item.room_id]
        pending = sum(
            prior.quantity
            for prior in claimed
            if prior.room_id == item.room_id
            and prior.check_in < item.check_out
            and prior.check_out > item.check_in
        )
        if not is_room_available(
            room,
            item.check_in,
            item.check_out,
            item.quantity,
            exclude_transaction_id=exclude_transaction_id,
            pending=pending,
        ):
            raise RoomUnavailableError(
                f"{room.name} is not available from {item.check_in} to {item.check_out}"
            )
        claimed.append(item)


def _stay_envelope(items: Iterable[TransactionItem]) -> tuple[Optional[date], Optional[date]]:
    ins = [i.check_in for i in items if i.kind == TransactionItem.KIND_ROOM and i.check_in]
    outs = [i.check_out for i in items if i.kind == TransactionItem.KIND_ROOM and i.check_out]
    return (min(ins) if ins else None, max(outs) if outs else None)


def _money_fields(settlement: Settlement, paid: Decimal) -> dict:
    total = to_money(settlement.total_amount)
    return {
        "gross_subtotal": to_money(settlement.gross_subtotal),
        "base_value": to_money(settlement.base_value),
        "tax_amount": to_money(settlement.vat_amount),
        "service_charge": to_money(settlement.service_charge_amount),
        "total_amount": total,
        "balance": to_money(derive_balance(total, paid)),
        "status": derive_status(total, paid),
        "is_tax_inclusive": settlement.inclusive,
    }


def _write_tax_lines(txn: Transaction, settlement: Settlement) -> None:
    TransactionTax.objects.filter(transaction=txn).delete()
    TransactionTax.objects.bulk_create(
        [
            TransactionTax(
                transaction=txn,
                tax_rule_id=line.rule_id,
                name=line.name,
                kind=line.kind,
                rate=line.rate,
                amount=to_money(line.amount),
                visible_on_receipt=line.visible_on_receipt,
                position=pos,
            )
            for pos, line in enumerate(settlement.tax_lines)
        ]
    )


def _save_items(txn: Transaction, items: Iterable[TransactionItem], *, start: int = 0) -> None:
    for pos, item in enumerate(items, start=start):
        item.transaction = txn
        item.position = pos
        item.save()


def _log_regression(txn: Transaction, before_status: str) -> None:
    if is_regression(before_status, txn.status):
        logger.warning(
            describe_regression(
                reference=txn.reference,
                from_status=before_status,
                to_status=txn.status,
            )
        )


# ============================================================
# CREATE
# ============================================================


def _create(
    *,
    txn: Transaction,
    items: list[TransactionItem],
    payments,
    user,
    config: Optional[SettlementConfig],
    before_write: Optional[Callable[[], None]] = None,
) -> Transaction:
    config = config or capture_settlement_config()
    entries = normalize_payments(payments)

    settlement = compute_with_config(items, txn.discount, config)
    fields = _money_fields(settlement, ZERO)

    # initial payments obey the same overpayment rule as later settlements
    ledger = apply_payments(LedgerState(total_amount=fields["total_amount"]), entries)

    for name, value in fields.items():
        setattr(txn, name, value)
    txn.paid_amount = to_money(ledger.paid_amount)
    txn.balance = to_money(ledger.balance)
    txn.status = ledger.status
    txn.settlement_method = ledger.last_method
    txn.check_in, txn.check_out = _stay_envelope(items)
    txn.created_by = user
    txn.cashier_name = _operator_name(user)

    with db_transaction.atomic():
        if before_write is not None:
            before_write()

        txn.save()
        _save_items(txn, items)
        _write_tax_lines(txn, settlement)
        apply_counter_increments(items)
        record_payments(txn, entries, user=user)

    logger.info(
        "created %s %s: items=%s total=%s paid=%s status=%s by %s",
        txn.type,
        txn.reference,
        len(items),
        txn.total_amount,
        txn.paid_amount,
        txn.status,
        txn.cashier_name,
    )
    emit_transaction_changed(txn, "created")
    return txn


def create_pos_sale(
    *,
    user,
    unit,
    items,
    payments=None,
    discount=0,
    guest_name: str = "",
    config: Optional[SettlementConfig] = None,
) -> Transaction:
    if unit is None:
        raise BillingValidationError("Select a revenue unit for this sale.")

    rows = list(items or [])
    if not rows:
        raise EmptyCartError("Cart is empty.")

    built = [build_sale_item(row, idx) for idx, row in enumerate(rows)]

    txn = Transaction(
        type=Transaction.TYPE_POS,
        unit=unit,
        guest_name=_text(guest_name) or Transaction.WALK_IN_GUEST,
        discount=_to_amount(discount, label="discount"),
    )
    return _create(txn=txn, items=built, payments=payments, user=user, config=config)


def create_folio(
    *,
    user,
    guest: Mapping,
    rooms,
    extras=(),
    payments=None,
    discount=0,
    unit=None,
    config: Optional[SettlementConfig] = None,
) -> Transaction:
    guest_name = _text(_field(guest, "guest_name"))
    if not guest_name:
        raise MissingGuestDetailsError("Guest name is required.")

    room_rows = list(rooms or [])
    if not room_rows:
        raise EmptyCartError("Add at least one room to the folio.")

    room_items = [build_room_item(row, idx) for idx, row in enumerate(room_rows)]
    extra_items = [build_sale_item(row, idx) for idx, row in enumerate(extras or [])]

    txn = Transaction(
        type=Transaction.TYPE_FOLIO,
        unit=unit,
        discount=_to_amount(discount, label="discount"),
        **{name: _text(_field(guest, name)) for name in GUEST_FIELDS},
    )

    return _create(
        txn=txn,
        items=room_items + extra_items,
        payments=payments,
        user=user,
        config=config,
        before_write=lambda: _check_room_availability(room_items),
    )


def _proforma_header(customer: Mapping, user) -> dict:
    header = {name: _text(_field(customer, name)) for name in EDITABLE_HEADER_FIELDS}
    if not header["guest_name"] or not header["organisation"]:
        raise MissingGuestDetailsError("Guest name and organisation are required.")
    header["prepared_by"] = header["prepared_by"] or _operator_name(user)
    return header


def _build_proforma_rows(room_rows, food_rows) -> list[TransactionItem]:
    items = [build_proforma_room_row(row, idx) for idx, row in enumerate(room_rows or [])]
    items += [build_proforma_food_row(row, idx) for idx, row in enumerate(food_rows or [])]
    if not items:
        raise EmptyCartError("Add at least one accommodation or food row.")
    return items


def create_proforma(
    *,
    user,
    customer: Mapping,
    room_rows=(),
    food_rows=(),
    payments=None,
    unit=None,
    config: Optional[SettlementConfig] = None,
) -> Transaction:
    header = _proforma_header(customer, user)
    items = _build_proforma_rows(room_rows, food_rows)

    txn = Transaction(type=Transaction.TYPE_PROFORMA, unit=unit, **header)
    return _create(txn=txn, items=items, payments=payments, user=user, config=config)


# ============================================================
# AMEND (compare-and-swap + retry)
# ============================================================


def amend_transaction(
    *,
    transaction_id,
    user,
    add_items=(),
    add_rooms=(),
    discount=None,
    guest: Optional[Mapping] = None,
    config: Optional[SettlementConfig] = None,
) -> Transaction:
    """
    Add charges, change discount and/or edit guest details.
    Totals are recomputed from the FULL item list; paid stays as it is.
    """
    config = config or capture_settlement_config()

    new_discount = None if discount is None else _to_amount(discount, label="discount")

    header_updates = {}
    for name, value in (guest or {}).items():
        if name in EDITABLE_HEADER_FIELDS:
            header_updates[name] = _text(value)
    if "guest_name" in header_updates and not header_updates["guest_name"]:
        raise MissingGuestDetailsError("Guest name cannot be blank.")

    add_items = list(add_items or [])
    add_rooms = list(add_rooms or [])
    if not (add_items or add_rooms or new_discount is not None or header_updates):
        raise BillingValidationError("Nothing to amend.")

    def attempt() -> tuple[Transaction, str]:
        with db_transaction.atomic():
            txn = Transaction.objects.get(pk=transaction_id)
            before_status = txn.status

            new_items = [build_room_item(row, idx) for idx, row in enumerate(add_rooms)]
            new_items += [build_sale_item(row, idx) for idx, row in enumerate(add_items)]
            _check_room_availability(
                [i for i in new_items if i.kind == TransactionItem.KIND_ROOM]
            )

            existing = list(txn.items.all())
            all_items = existing + new_items
            disc = txn.discount if new_discount is None else new_discount

            settlement = compute_with_config(all_items, disc, config)
            fields = _money_fields(settlement, Decimal(txn.paid_amount))
            fields["discount"] = disc
            fields["check_in"], fields["check_out"] = _stay_envelope(all_items)
            fields.update(header_updates)

            cas_update(txn, **fields)

            _save_items(txn, new_items, start=len(existing))
            _write_tax_lines(txn, settlement)
            apply_counter_increments(new_items)

        return txn, before_status

    txn, before_status = run_with_retry(attempt, label=f"amend {transaction_id}")

    logger.info(
        "amended %s: total=%s paid=%s balance=%s status=%s by %s",
        txn.reference,
        txn.total_amount,
        txn.paid_amount,
        txn.balance,
        txn.status,
        _operator_name(user),
    )
    _log_regression(txn, before_status)
    emit_transaction_changed(txn, "amended")
    return txn


def update_proforma(
    *,
    transaction_id,
    user,
    customer: Optional[Mapping] = None,
    room_rows=(),
    food_rows=(),
    payments=None,
    config: Optional[SettlementConfig] = None,
) -> Transaction:
    """
    Replace a proforma's rows.

    Rows carrying an existing item `id` are updated in place; rows without an
    id are new and are the ONLY ones that increment inventory counters.
    Rows missing from the payload are removed (counters are not decremented).
    Paid is carried over; extra payments go through the ledger.
    """
    config = config or capture_settlement_config()
    entries = normalize_payments(payments)

    room_rows = list(room_rows or [])
    food_rows = list(food_rows or [])

    def attempt() -> tuple[Transaction, str]:
        with db_transaction.atomic():
            txn = Transaction.objects.get(pk=transaction_id, type=Transaction.TYPE_PROFORMA)
            before_status = txn.status

            header = {}
            if customer is not None:
                merged = {name: getattr(txn, name) for name in EDITABLE_HEADER_FIELDS}
                merged.update({k: v for k, v in customer.items() if k in EDITABLE_HEADER_FIELDS})
                header = _proforma_header(merged, user)

            items = _build_proforma_rows(room_rows, food_rows)
            submitted_ids = [_field(r, "id") for r in room_rows] + [_field(r, "id") for r in food_rows]

            existing = {str(i.pk): i for i in txn.items.all()}
            kept_ids = set()
            new_items = []
            for item, item_id in zip(items, submitted_ids):
                if item_id in (None, ""):
                    new_items.append(item)
                    continue
                key = str(item_id)
                if key not in existing or key in kept_ids:
                    raise BillingValidationError(f"Row {item_id} does not belong to this proforma.")
                item.pk = existing[key].pk
                item.created_at = existing[key].created_at
                item._state.adding = False
                kept_ids.add(key)

            settlement = compute_with_config(items, txn.discount, config)
            total = to_money(settlement.total_amount)
            ledger = apply_payments(
                LedgerState(total_amount=total, paid_amount=Decimal(txn.paid_amount)),
                entries,
            )

            fields = _money_fields(settlement, ledger.paid_amount)
            fields["paid_amount"] = to_money(ledger.paid_amount)
            fields["check_in"], fields["check_out"] = _stay_envelope(items)
            if ledger.last_method:
                fields["settlement_method"] = ledger.last_method
            fields.update(header)

            cas_update(txn, **fields)

            removed = [i.pk for key, i in existing.items() if key not in kept_ids]
            if removed:
                TransactionItem.objects.filter(pk__in=removed).delete()
            _save_items(txn, items)
            _write_tax_lines(txn, settlement)
            apply_counter_increments(new_items)
            record_payments(txn, entries, user=user)

        return txn, before_status

    txn, before_status = run_with_retry(attempt, label=f"update proforma {transaction_id}")

    logger.info(
        "updated proforma %s: rows=%s total=%s paid=%s status=%s",
        txn.reference,
        len(room_rows) + len(food_rows),
        txn.total_amount,
        txn.paid_amount,
        txn.status,
    )
    _log_regression(txn, before_status)
    emit_transaction_changed(txn, "updated")
    return txn


# ============================================================
# DELETE (privileged, hard delete)
# ============================================================


def delete_transaction(*, transaction_id, user) -> str:
    if not user_has_capability(user, CAP_BILLING_DELETE):
        raise PermissionDenied("You do not have permission to delete transactions.")

    with db_transaction.atomic():
        txn = Transaction.objects.get(pk=transaction_id)
        reference = txn.reference
        emit_transaction_changed(txn, "deleted")
        txn.delete()

    logger.warning("deleted %s by %s", reference, _operator_name(user))
    return reference


# ============================================================
# VISIBILITY
# ============================================================


def transactions_visible_to(user):
    """Admins see every transaction; staff see the ones they created."""
    qs = Transaction.objects.select_related("unit", "created_by")
    if user_has_capability(user, CAP_REPORTS_VIEW_ALL):
        return qs
    return qs.filter(created_by=user)
