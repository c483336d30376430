# patients/services/registry.py

"""
PATIENT REGISTRY (APPLICATION SERVICE)

- registration needs every field except medical_history
- email and CNIC are unique; email is compared case-insensitively
- date of birth is not in the future and at most 150 years back
- updates validate only the fields they carry
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Mapping
from datetime import date, datetime

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils.dateparse import parse_date

from inventory.services.exceptions import InvalidInputError, NotFoundError
from inventory.services.expiry import today
from inventory.services.pagination import Page, paginate
from inventory.services.validation import parse_text
from patients.models import CHIEF_COMPLAINT_MAX_LENGTH, CNIC_FORMAT_MESSAGE, CNIC_PATTERN, Patient

from .exceptions import DuplicatePatientError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "name",
    "email",
    "gender",
    "date_of_birth",
    "contact_number",
    "address",
    "cnic",
    "chief_complaint",
)

# field -> max length
TEXT_FIELDS = {
    "name": 255,
    "email": 254,
    "gender": 10,
    "contact_number": 32,
    "address": 500,
    "cnic": 15,
    "medical_history": 5000,
}

MAX_AGE_YEARS = 150
CNIC_RE = re.compile(CNIC_PATTERN)


# -------------------------------------------------
# HELPERS
# -------------------------------------------------
def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_date_of_birth(value) -> date:
    if isinstance(value, datetime):
        born = value.date()
    elif isinstance(value, date):
        born = value
    else:
        try:
            born = parse_date(str(value).strip()[:10])
        except ValueError:
            born = None
    if born is None:
        raise InvalidInputError("date_of_birth must be a date (YYYY-MM-DD)", details={"field": "date_of_birth"})

    ref = today()
    if born > ref:
        raise InvalidInputError("Date of birth cannot be in the future", details={"field": "date_of_birth"})
    if (ref - born).days / 365.25 > MAX_AGE_YEARS:
        raise InvalidInputError("Invalid date of birth", details={"field": "date_of_birth"})
    return born


def _clean(data: Mapping) -> dict:
    """
    Validate and normalize the fields present in `data`.
    """
    values = {}
    for field_name, max_length in TEXT_FIELDS.items():
        if field_name in data:
            values[field_name] = parse_text(data[field_name], field_name=field_name, max_length=max_length)

    if "chief_complaint" in data:
        complaint = "" if data["chief_complaint"] is None else str(data["chief_complaint"]).strip()
        if len(complaint) > CHIEF_COMPLAINT_MAX_LENGTH:
            raise InvalidInputError(
                f"Chief complaint cannot exceed {CHIEF_COMPLAINT_MAX_LENGTH} characters",
                details={"field": "chief_complaint"},
            )
        values["chief_complaint"] = complaint

    if "email" in values:
        values["email"] = values["email"].lower()
        try:
            validate_email(values["email"])
        except ValidationError:
            raise InvalidInputError("Please enter a valid email address", details={"field": "email"})

    if "cnic" in values and not CNIC_RE.match(values["cnic"]):
        raise InvalidInputError(CNIC_FORMAT_MESSAGE, details={"field": "cnic"})

    if "gender" in values:
        values["gender"] = values["gender"].lower()
        if values["gender"] not in Patient.Gender.values:
            raise InvalidInputError("Gender must be male, female, or other", details={"field": "gender"})

    if "date_of_birth" in data:
        values["date_of_birth"] = _parse_date_of_birth(data["date_of_birth"])

    return values


def _check_unique(*, email: str | None, cnic: str | None, exclude_pk=None, prefix: str = "Patient") -> None:
    others = Patient.objects.all()
    if exclude_pk is not None:
        others = others.exclude(pk=exclude_pk)

    if email and others.filter(email__iexact=email).exists():
        logger.warning("Duplicate patient email rejected", extra={"patient_email": email})
        raise DuplicatePatientError(f"{prefix} with this email already exists", details={"field": "email"})
    if cnic and others.filter(cnic=cnic).exists():
        logger.warning("Duplicate patient CNIC rejected", extra={"patient_cnic": cnic})
        raise DuplicatePatientError(f"{prefix} with this CNIC already exists", details={"field": "cnic"})


def _get(patient_id, *, for_update: bool = False) -> Patient:
    qs = Patient.objects.select_related("registered_by")
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=uuid.UUID(str(patient_id)))
    except (Patient.DoesNotExist, ValueError):
        raise NotFoundError("Patient not found", details={"patient_id": str(patient_id)})


# -------------------------------------------------
# READ
# -------------------------------------------------
def get_patient(patient_id) -> Patient:
    return _get(patient_id)


def list_patients(*, queryset=None, page=None, limit=None) -> Page:
    """
    Paginated patients, newest registration first unless the queryset is already ordered.
    An empty registry is an empty page, not an error.
    """
    qs = Patient.objects.select_related("registered_by") if queryset is None else queryset
    if not qs.ordered:
        qs = qs.order_by("-created_at")

    by_gender = {choice: 0 for choice in Patient.Gender.values}
    for row in qs.order_by().values("gender").annotate(n=Count("id")):
        by_gender[row["gender"]] = row["n"]

    return paginate(
        qs,
        page=page,
        limit=limit,
        summary={"total_patients": sum(by_gender.values()), "by_gender": by_gender},
    )


# -------------------------------------------------
# WRITE
# -------------------------------------------------
@transaction.atomic
def register_patient(*, data: Mapping, user=None) -> Patient:
    missing = [f for f in REQUIRED_FIELDS if _blank(data.get(f))]
    if missing:
        raise InvalidInputError(
            "All required fields must be provided for patient registration "
            f"({', '.join(REQUIRED_FIELDS)})",
            details={"missing": missing},
        )

    values = _clean(data)
    values.setdefault("medical_history", "")
    _check_unique(email=values["email"], cnic=values["cnic"])

    try:
        with transaction.atomic():
            patient = Patient.objects.create(
                registered_by=user if user is not None and user.is_authenticated else None,
                **values,
            )
    except IntegrityError as exc:
        raise DuplicatePatientError("Patient with this email or CNIC already exists") from exc

    logger.info(
        "Patient registered",
        extra={"patient_id": str(patient.id), "registered_by": getattr(user, "pk", None)},
    )
    return patient


@transaction.atomic
def update_patient(*, patient_id, data: Mapping) -> Patient:
    patient = _get(patient_id, for_update=True)

    emptied = [f for f in REQUIRED_FIELDS if f in data and _blank(data[f])]
    if emptied:
        raise InvalidInputError(f"{emptied[0]} cannot be empty", details={"field": emptied[0]})

    values = _clean(data)
    _check_unique(
        email=values.get("email") if values.get("email") != patient.email else None,
        cnic=values.get("cnic") if values.get("cnic") != patient.cnic else None,
        exclude_pk=patient.pk,
        prefix="Another patient",
    )

    changed = [k for k, v in values.items() if getattr(patient, k) != v]
    if not changed:
        return patient

    for k in changed:
        setattr(patient, k, values[k])

    try:
        with transaction.atomic():
            patient.save()
    except IntegrityError as exc:
        raise DuplicatePatientError("Another patient with this email or CNIC already exists") from exc

    logger.info("Patient updated", extra={"patient_id": str(patient.id), "fields": changed})
    return patient


@transaction.atomic
def delete_patient(*, patient_id) -> None:
    patient = _get(patient_id, for_update=True)
    patient.delete()
    logger.info("Patient deleted", extra={"patient_id": str(patient_id)})
