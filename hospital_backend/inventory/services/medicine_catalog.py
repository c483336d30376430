# inventory/services/medicine_catalog.py

"""
MEDICINE CATALOG (APPLICATION SERVICE)

- medicine_id is assigned max + 1 (1 on an empty catalog)
- (name, strength, category) is unique, compared case-insensitively
- bulk import reports each row as created / duplicate / failed
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from django.db import IntegrityError, transaction

from inventory.models import Medicine

from .exceptions import DuplicateMedicineError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("name", "description", "category", "strength", "manufacturer")

# Bulk import field rules: (label, max length, optional)
BULK_FIELD_RULES = {
    "name": ("Medicine name", 50, False),
    "strength": ("Strength", 10, False),
    "category": ("Category", 10, False),
    "manufacturer": ("Manufacturer", 20, False),
    "description": ("Description", 40, True),
}
BULK_ALLOWED = re.compile(r"^[a-zA-Z0-9 ]*$")


@dataclass
class BulkImportResult:
    created: list[dict] = field(default_factory=list)
    duplicates: list[dict] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    @property
    def counts(self) -> dict:
        return {
            "total": len(self.created) + len(self.duplicates) + len(self.failed),
            "created": len(self.created),
            "duplicates": len(self.duplicates),
            "failed": len(self.failed),
        }


# -------------------------------------------------
# HELPERS
# -------------------------------------------------
def _clean(data: Mapping) -> dict:
    return {f: str(data.get(f) or "").strip() for f in TEXT_FIELDS if f in data}


def _find_duplicate(*, name: str, strength: str, category: str, exclude_pk=None):
    qs = Medicine.objects.filter(
        name__iexact=name,
        strength__iexact=strength,
        category__iexact=category,
    )
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.first()


def _get(medicine_id) -> Medicine:
    try:
        return Medicine.objects.select_for_update().get(medicine_id=int(medicine_id))
    except (Medicine.DoesNotExist, TypeError, ValueError):
        raise NotFoundError("Medicine not found", details={"medicine_id": medicine_id})


def next_medicine_id() -> int:
    """Must run inside a transaction; locks the current highest row."""
    last = Medicine.objects.select_for_update().order_by("-medicine_id").first()
    return last.medicine_id + 1 if last else 1


# -------------------------------------------------
# CRUD
# -------------------------------------------------
@transaction.atomic
def create_medicine(*, data: Mapping) -> Medicine:
    values = _clean(data)
    if not values.get("name"):
        raise InvalidInputError("Medicine name is required", details={"field": "name"})

    existing = _find_duplicate(
        name=values["name"],
        strength=values.get("strength", ""),
        category=values.get("category", ""),
    )
    if existing:
        logger.warning("Duplicate medicine rejected", extra={"medicine_name": values["name"]})
        raise DuplicateMedicineError(
            "Medicine with same name, strength and category already exists",
            details={"medicine_id": existing.medicine_id},
        )

    is_active = data.get("is_active", True)

    try:
        with transaction.atomic():
            medicine = Medicine.objects.create(
                medicine_id=next_medicine_id(),
                is_active=bool(is_active),
                **values,
            )
    except IntegrityError as exc:
        raise DuplicateMedicineError("Medicine ID collision, please retry") from exc

    logger.info(
        "Medicine created",
        extra={"medicine_id": medicine.medicine_id, "medicine_name": medicine.name},
    )
    return medicine


@transaction.atomic
def update_medicine(*, medicine_id, data: Mapping) -> Medicine:
    medicine = _get(medicine_id)
    values = _clean(data)

    if "name" in values and not values["name"]:
        raise InvalidInputError("Medicine name cannot be empty", details={"field": "name"})

    for k, v in values.items():
        setattr(medicine, k, v)
    if "is_active" in data:
        medicine.is_active = bool(data["is_active"])

    existing = _find_duplicate(
        name=medicine.name,
        strength=medicine.strength,
        category=medicine.category,
        exclude_pk=medicine.pk,
    )
    if existing:
        logger.warning("Duplicate medicine rename rejected", extra={"medicine_id": medicine.medicine_id})
        raise DuplicateMedicineError(
            "Medicine with same name, strength and category already exists",
            details={"medicine_id": existing.medicine_id},
        )

    medicine.save()
    logger.info("Medicine updated", extra={"medicine_id": medicine.medicine_id})
    return medicine


@transaction.atomic
def delete_medicine(*, medicine_id) -> None:
    medicine = _get(medicine_id)
    medicine.delete()
    logger.info("Medicine deleted", extra={"medicine_id": int(medicine_id)})


# -------------------------------------------------
# BULK
# -------------------------------------------------
def _bulk_errors(row: Mapping) -> list[str]:
    errors = []
    for key, (label, max_length, optional) in BULK_FIELD_RULES.items():
        raw = row.get(key)
        value = raw.strip() if isinstance(raw, str) else ""
        if not value:
            if not optional:
                errors.append(f"{label} is required")
            continue
        if not BULK_ALLOWED.match(value):
            errors.append(f"{label} can only contain alphabets, digits and spaces")
        elif len(value) > max_length:
            errors.append(f"{label} cannot exceed {max_length} characters")
    return errors


def bulk_create_medicines(*, rows) -> BulkImportResult:
    """
    Each row is created in its own savepoint; bad rows never block good ones.
    """
    if not isinstance(rows, (list, tuple)) or not rows:
        raise InvalidInputError(
            "Medicines array is required and cannot be empty", details={"field": "medicines"}
        )

    result = BulkImportResult()
    seen: dict[tuple, int] = {}

    for index, row in enumerate(rows):
        line_number = index + 1
        if not isinstance(row, Mapping):
            result.failed.append({"line_number": line_number, "error": "Row must be an object"})
            continue

        values = _clean({f: row.get(f) for f in TEXT_FIELDS})
        base = {**values, "line_number": line_number}

        errors = _bulk_errors(row)
        if errors:
            result.failed.append({**base, "error": ", ".join(errors)})
            continue

        key = (values["name"].lower(), values["strength"].lower(), values["category"].lower())
        if key in seen:
            result.duplicates.append(
                {**base, "error": f"Duplicate entry found within file (first occurrence at line {seen[key]})"}
            )
            continue
        seen[key] = line_number

        try:
            medicine = create_medicine(data=values)
        except DuplicateMedicineError:
            result.duplicates.append(
                {**base, "error": "Medicine with same name, strength and category already exists"}
            )
            continue

        result.created.append({**base, "medicine_id": medicine.medicine_id})

    logger.info(
        "Medicine bulk import finished",
        extra={f"bulk_{k}": v for k, v in result.counts.items()},
    )
    return result


# -------------------------------------------------
# DROPDOWN
# -------------------------------------------------
def dropdown() -> list[dict]:
    """Active medicines by name, with medicine_id 1 pinned first."""
    medicines = list(Medicine.objects.filter(is_active=True).order_by("name"))
    medicines.sort(key=lambda m: 0 if m.medicine_id == 1 else 1)
    return [
        {"id": str(m.id), "medicine_id": m.medicine_id, "name": m.display_name}
        for m in medicines
    ]
