from django.urls import include, path
from rest_framework.routers import DefaultRouter

from inventory.api.views import MenuItemViewSet, RoomViewSet

app_name = "inventory"

router = DefaultRouter()
router.register(r"rooms", RoomViewSet, basename="room")
router.register(r"menu-items", MenuItemViewSet, basename="menu-item")

urlpatterns = [
    path("", include(router.urls)),
]
