# patients/services/exceptions.py

from inventory.services.exceptions import InventoryServiceError


class DuplicatePatientError(InventoryServiceError):
    """Raised when another patient already holds the email or CNIC."""

    code = "DUPLICATE_PATIENT"
    http_status = 409
