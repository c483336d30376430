# inventory/tests/helpers.py

"""
Shared builders for inventory tests.

Payloads are request-shaped dicts (strings for money and dates),
the same shape the API receives.
"""

from __future__ import annotations

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from permissions.roles import ROLE_PHARMACIST_INVENTORY

User = get_user_model()


def make_user(email="inventory@example.com", role=ROLE_PHARMACIST_INVENTORY):
    return User.objects.create_user(email=email, password="password123", role=role)


def days_from_today(days: int):
    return timezone.localdate() + timedelta(days=days)


def line(
    medicine_id=1,
    name="Paracetamol",
    quantity=10,
    price="5.00",
    expiry_days=365,
    reorder_level=2,
):
    return {
        "medicine_id": medicine_id,
        "medicine_name": name,
        "quantity": quantity,
        "price": price,
        "expiry_date": days_from_today(expiry_days).isoformat(),
        "date_of_purchase": days_from_today(-30).isoformat(),
        "reorder_level": reorder_level,
    }


def batch_payload(batch_number="BATCH-001", medicines=None, overall_price="50.00", **extra):
    payload = {
        "batch_number": batch_number,
        "bill_id": "BILL-1",
        "medicines": medicines if medicines is not None else [line()],
        "overall_price": overall_price,
        "miscellaneous_amount": "0.00",
    }
    payload.update(extra)
    return payload
