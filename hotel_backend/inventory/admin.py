from django.contrib import admin

from inventory.models import MenuItem, Room


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("name", "room_type", "price", "total_inventory", "booked_count", "is_active")
    list_filter = ("room_type", "is_active")
    search_fields = ("name",)
    readonly_fields = ("booked_count",)


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "unit", "price", "initial_stock", "sold_count", "track_stock")
    list_filter = ("category", "unit", "track_stock", "is_active")
    search_fields = ("name", "category")
    readonly_fields = ("sold_count",)
