from __future__ import annotations

import csv
import io
from typing import Iterable

from inventory.models import MenuItem

INVENTORY_CSV_HEADER = [
    "Name",
    "Category",
    "Unit",
    "Initial Stock",
    "Sold",
    "Remaining",
    "Price",
    "Revenue",
]


def export_inventory_csv(items: Iterable[MenuItem]) -> str:
    """One row per stock-tracked item; revenue = sold x price."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(INVENTORY_CSV_HEADER)

    for item in items:
        if not item.track_stock:
            continue
        writer.writerow(
            [
                item.name,
                item.category,
                item.unit.name if item.unit_id else "",
                item.initial_stock,
                item.sold_count,
                item.remaining,
                f"{item.price:.2f}",
                f"{item.revenue:.2f}",
            ]
        )

    return buffer.getvalue()
