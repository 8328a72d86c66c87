"""
PATH: inventory/services/counters.py

INVENTORY COUNTERS

Purpose:
- Atomic increment-by-N of Room.booked_count and MenuItem.sold_count.

Hard rules:
- Increments are F() expressions: the DB does the read-add-write, so two
  concurrent sales never lose an update.
- Callers run these INSIDE their transaction.atomic block so the counter and
  the transaction write commit (or roll back) together.
- One increment per newly added item reference. Items that already existed
  on the transaction before an edit must not be passed in again.
"""

from __future__ import annotations

import logging
from typing import Iterable

from django.db import transaction
from django.db.models import F

from inventory.models import MenuItem, Room

logger = logging.getLogger(__name__)


class CounterError(Exception):
    pass


def _require_atomic() -> None:
    if not transaction.get_connection().in_atomic_block:
        raise CounterError("Counter increments must run inside transaction.atomic().")


def increment_room_booked(room_id, quantity: int) -> None:
    _require_atomic()
    quantity = int(quantity)
    if quantity <= 0:
        return
    updated = Room.objects.filter(pk=room_id).update(booked_count=F("booked_count") + quantity)
    if not updated:
        raise CounterError(f"Room {room_id} not found.")


def increment_menu_item_sold(menu_item_id, quantity: int) -> bool:
    """
    Returns False when the item is not stock-tracked (nothing to count).
    """
    _require_atomic()
    quantity = int(quantity)
    if quantity <= 0:
        return False
    updated = MenuItem.objects.filter(pk=menu_item_id, track_stock=True).update(
        sold_count=F("sold_count") + quantity
    )
    return bool(updated)


def apply_counter_increments(new_items: Iterable) -> int:
    """
    Issue one increment per new line item that references a room or a
    stock-tracked menu item. Returns the number of increments issued.
    """
    issued = 0
    for item in new_items:
        room_id = getattr(item, "room_id", None)
        menu_item_id = getattr(item, "menu_item_id", None)

        if room_id:
            increment_room_booked(room_id, item.quantity)
            issued += 1
        elif menu_item_id:
            if increment_menu_item_sold(menu_item_id, item.quantity):
                issued += 1

    if issued:
        logger.info("inventory counters incremented: %s item(s)", issued)
    return issued
