"""
PATH: inventory/apps.py

INVENTORY APP

Rooms (booked counters + date-overlap availability) and menu items
(sold counters against an initial stock). Counters only ever move through
atomic F() increments issued by billing in the same DB transaction as the
transaction write.
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Inventory"
