# inventory/serializers/__init__.py

from .batch import (
    BatchCreateSerializer,
    BatchMedicineInputSerializer,
    BatchMedicineSerializer,
    BatchSerializer,
    BatchUpdateSerializer,
)
from .discard import DiscardAllSerializer, DiscardLineSerializer, DiscardRecordSerializer
from .medicine import BulkMedicineSerializer, MedicineSerializer

__all__ = [
    "BatchCreateSerializer",
    "BatchMedicineInputSerializer",
    "BatchMedicineSerializer",
    "BatchSerializer",
    "BatchUpdateSerializer",
    "BulkMedicineSerializer",
    "DiscardAllSerializer",
    "DiscardLineSerializer",
    "DiscardRecordSerializer",
    "MedicineSerializer",
]
