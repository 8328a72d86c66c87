from .menu_item import MenuItem
from .room import Room

__all__ = ["MenuItem", "Room"]
