from .batch import Batch, BatchMedicine
from .discard_record import DEFAULT_DISCARD_REASON, DiscardRecord
from .medicine import Medicine

__all__ = [
    "Batch",
    "BatchMedicine",
    "DiscardRecord",
    "DEFAULT_DISCARD_REASON",
    "Medicine",
]
