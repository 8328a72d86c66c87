"""
PATH: inventory/services/availability.py

ROOM AVAILABILITY (date-overlap)

A room type has total_inventory physical rooms. For a requested stay
[check_in, check_out) the available count is:

    total_inventory - sum(quantity of folio room lines whose OWN stay overlaps)

Each line item carries its own dates; a folio with two rooms on different
dates is checked per line, never against a single transaction-level period.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from django.db.models import Sum

from inventory.models import Room

FOLIO_TYPE = "FOLIO"


def overlapping_booked_quantity(
    room: Room,
    check_in: date,
    check_out: date,
    *,
    exclude_transaction_id=None,
) -> int:
    qs = room.transaction_items.filter(
        transaction__type=FOLIO_TYPE,
        check_in__lt=check_out,
        check_out__gt=check_in,
    )
    if exclude_transaction_id is not None:
        qs = qs.exclude(transaction_id=exclude_transaction_id)

    return int(qs.aggregate(total=Sum("quantity"))["total"] or 0)


def room_availability(
    room: Room,
    check_in: date,
    check_out: date,
    *,
    exclude_transaction_id=None,
) -> int:
    booked = overlapping_booked_quantity(
        room, check_in, check_out, exclude_transaction_id=exclude_transaction_id
    )
    return max(0, int(room.total_inventory) - booked)


def is_room_available(
    room: Room,
    check_in: date,
    check_out: date,
    quantity: int = 1,
    *,
    exclude_transaction_id=None,
    pending: Optional[int] = 0,
) -> bool:
    """
    pending: rooms of the same type already claimed by earlier lines of the
    request being validated (same dates overlap) and not yet persisted.
    """
    available = room_availability(
        room, check_in, check_out, exclude_transaction_id=exclude_transaction_id
    )
    return available - int(pending or 0) >= int(quantity)
