# inventory/urls.py

"""
INVENTORY URLS

Mounted under /api/inventory/:
    batches/    stock/    expired/    medicines/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from inventory.views import BatchViewSet, ExpiredStockViewSet, MedicineViewSet, StockViewSet

router = DefaultRouter()

router.register(r"batches", BatchViewSet, basename="batches")
router.register(r"stock", StockViewSet, basename="stock")
router.register(r"expired", ExpiredStockViewSet, basename="expired")
router.register(r"medicines", MedicineViewSet, basename="medicines")

urlpatterns = [
    path("", include(router.urls)),
]
