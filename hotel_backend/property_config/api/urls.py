from django.urls import include, path
from rest_framework.routers import DefaultRouter

from property_config.api.views import (
    BankAccountViewSet,
    PropertySettingsView,
    TaxRuleViewSet,
    UnitViewSet,
)

app_name = "property_config"

router = DefaultRouter()
router.register(r"tax-rules", TaxRuleViewSet, basename="tax-rule")
router.register(r"units", UnitViewSet, basename="unit")
router.register(r"bank-accounts", BankAccountViewSet, basename="bank-account")

urlpatterns = [
    # explicit paths BEFORE router
    path("settings/", PropertySettingsView.as_view(), name="property-settings"),
    path("", include(router.urls)),
]
