from .availability import is_room_available, overlapping_booked_quantity, room_availability
from .counters import (
    CounterError,
    apply_counter_increments,
    increment_menu_item_sold,
    increment_room_booked,
)
from .export import INVENTORY_CSV_HEADER, export_inventory_csv

__all__ = [
    "CounterError",
    "INVENTORY_CSV_HEADER",
    "apply_counter_increments",
    "export_inventory_csv",
    "increment_menu_item_sold",
    "increment_room_booked",
    "is_room_available",
    "overlapping_booked_quantity",
    "room_availability",
]
