# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
# They describe what the staff member does in the hospital pharmacy.
ROLE_ADMIN = "admin"
ROLE_PHARMACIST_INVENTORY = "pharmacist_inventory"
ROLE_PHARMACIST_INVENTORY_STAFF = "pharmacist_inventory_staff"
ROLE_PHARMACIST_DISPENSER = "pharmacist_dispenser"
ROLE_RECEPTION = "reception"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_PHARMACIST_INVENTORY,
    ROLE_PHARMACIST_INVENTORY_STAFF,
    ROLE_PHARMACIST_DISPENSER,
    ROLE_RECEPTION,
}

ROLE_CHOICES = [
    (ROLE_ADMIN, "Admin"),
    (ROLE_PHARMACIST_INVENTORY, "Pharmacist (Inventory)"),
    (ROLE_PHARMACIST_INVENTORY_STAFF, "Pharmacist (Inventory Staff)"),
    (ROLE_PHARMACIST_DISPENSER, "Pharmacist (Dispenser)"),
    (ROLE_RECEPTION, "Reception"),
]


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views protect capabilities, not raw roles.
CAP_INVENTORY_VIEW = "inventory.view"
CAP_INVENTORY_EDIT = "inventory.edit"          # create / draft / finalize / update batches
CAP_INVENTORY_DISCARD = "inventory.discard"    # remove expired stock
CAP_INVENTORY_DELETE = "inventory.delete"      # hard delete a batch

CAP_MEDICINES_VIEW = "medicines.view"
CAP_MEDICINES_EDIT = "medicines.edit"

CAP_AUDIT_VIEW = "audit.view"

CAP_PATIENTS_VIEW = "patients.view"
CAP_PATIENTS_EDIT = "patients.edit"          # register / update patient records
CAP_PATIENTS_DELETE = "patients.delete"

ALL_CAPABILITIES = {
    CAP_INVENTORY_VIEW,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_DISCARD,
    CAP_INVENTORY_DELETE,
    CAP_MEDICINES_VIEW,
    CAP_MEDICINES_EDIT,
    CAP_AUDIT_VIEW,
    CAP_PATIENTS_VIEW,
    CAP_PATIENTS_EDIT,
    CAP_PATIENTS_DELETE,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_PHARMACIST_INVENTORY: {
        CAP_INVENTORY_VIEW,
        CAP_INVENTORY_EDIT,
        CAP_INVENTORY_DISCARD,
        CAP_INVENTORY_DELETE,
        CAP_MEDICINES_VIEW,
        CAP_MEDICINES_EDIT,
        CAP_AUDIT_VIEW,
    },
    ROLE_PHARMACIST_INVENTORY_STAFF: {
        CAP_INVENTORY_VIEW,
        CAP_MEDICINES_VIEW,
        CAP_MEDICINES_EDIT,
        CAP_AUDIT_VIEW,
    },
    ROLE_PHARMACIST_DISPENSER: {
        CAP_MEDICINES_VIEW,
        CAP_PATIENTS_VIEW,
    },
    ROLE_RECEPTION: {
        CAP_PATIENTS_VIEW,
        CAP_PATIENTS_EDIT,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def capabilities_for(user) -> set[str]:
    """
    Capabilities granted by the user's role. Superusers get everything.
    """
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_INVENTORY_DISCARD
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default
            return False

        return required in capabilities_for(user)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a list.

    Usage:
        view.required_any_capabilities = {CAP_INVENTORY_VIEW, CAP_MEDICINES_VIEW}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = capabilities_for(user)
        return any(cap in caps for cap in set(required))
