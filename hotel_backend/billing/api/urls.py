# billing/api/urls.py

"""
BILLING API URLS

Explicit non-PK routes MUST be registered BEFORE router URLs.

Mounted at /api/billing/ by backend/urls.py.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from billing.api.views import DailySalesReportView, TransactionViewSet

app_name = "billing"

router = DefaultRouter()
router.register(r"transactions", TransactionViewSet, basename="transactions")

urlpatterns = [
    path("reports/daily/", DailySalesReportView.as_view(), name="reports-daily"),
    path("", include(router.urls)),
]
