# patients/tests/helpers.py

from __future__ import annotations

from inventory.tests.helpers import days_from_today


def patient_payload(name="Ayesha Khan", email="ayesha@example.com", cnic="35202-1234567-1", **extra):
    payload = {
        "name": name,
        "email": email,
        "gender": "female",
        "date_of_birth": days_from_today(-30 * 365).isoformat(),
        "contact_number": "0300-1234567",
        "address": "12 Mall Road, Lahore",
        "cnic": cnic,
        "chief_complaint": "Persistent cough",
    }
    payload.update(extra)
    return payload
