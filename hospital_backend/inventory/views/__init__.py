# inventory/views/__init__.py

"""
Inventory views package exports.
"""

from .batch import BatchViewSet
from .expired import ExpiredStockViewSet
from .medicine import MedicineViewSet
from .stock import StockViewSet

__all__ = [
    "BatchViewSet",
    "ExpiredStockViewSet",
    "MedicineViewSet",
    "StockViewSet",
]
