# inventory/services/exceptions.py

"""
INVENTORY SERVICE ERRORS

Centralized domain errors for inventory services.
Each error carries a stable machine code and the HTTP status the API
boundary renders it with (see backend/exceptions.py).
"""

from __future__ import annotations


class InventoryServiceError(Exception):
    """Base exception for all inventory service failures."""

    code = "INVENTORY_ERROR"
    http_status = 400

    def __init__(self, message: str = "", *, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InvalidInputError(InventoryServiceError):
    """Raised when a field is missing or malformed."""

    code = "VALIDATION_ERROR"


class PriceMismatchError(InventoryServiceError):
    """Raised when line totals plus miscellaneous amount do not reconcile with the overall price."""

    code = "PRICE_MISMATCH"

    def __init__(self, message: str, *, computed_total, declared_total):
        super().__init__(
            message,
            details={
                "computed_total": f"{computed_total:.2f}",
                "declared_total": f"{declared_total:.2f}",
            },
        )
        self.computed_total = computed_total
        self.declared_total = declared_total


class DuplicateBatchError(InventoryServiceError):
    """Raised when a batch number is already taken."""

    code = "DUPLICATE_BATCH"
    http_status = 409


class DuplicateMedicineError(InventoryServiceError):
    """Raised when a medicine appears twice in one batch, or twice in the catalog."""

    code = "DUPLICATE_MEDICINE"
    http_status = 409


class NotFoundError(InventoryServiceError):
    """Raised when a batch, line, medicine or log target does not exist."""

    code = "NOT_FOUND"
    http_status = 404


class NotDraftError(InventoryServiceError):
    """Raised when finalizing a batch that is already final."""

    code = "NOT_DRAFT"
    http_status = 409


class IllegalDraftReversionError(InventoryServiceError):
    """Raised when a finalized batch is asked to become a draft again."""

    code = "ILLEGAL_DRAFT_REVERSION"
    http_status = 409


class NotExpiredError(InventoryServiceError):
    """Raised when discarding a line that has not expired yet."""

    code = "NOT_EXPIRED"


class InsufficientQuantityError(InventoryServiceError):
    """Raised when a discard asks for more units than the line holds."""

    code = "INSUFFICIENT_QUANTITY"


class NothingToDiscardError(InventoryServiceError):
    """Raised when no finalized batch holds expired stock of the requested medicine."""

    code = "NOTHING_TO_DISCARD"
    http_status = 404
