# patients/models.py

"""
PATIENT RECORD

- email and cnic are each unique; the registry service reports clashes
  as DUPLICATE_PATIENT before the database constraint is hit.
- email is stored lower-cased.
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models

CNIC_PATTERN = r"^\d{5}-\d{7}-\d$"
CNIC_FORMAT_MESSAGE = "CNIC must be in format: 12345-1234567-1"
CHIEF_COMPLAINT_MAX_LENGTH = 500


class Patient(models.Model):
    class Gender(models.TextChoices):
        MALE = "male", "Male"
        FEMALE = "female", "Female"
        OTHER = "other", "Other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, unique=True)
    gender = models.CharField(max_length=10, choices=Gender.choices)
    date_of_birth = models.DateField()
    contact_number = models.CharField(max_length=32)
    address = models.CharField(max_length=500)
    cnic = models.CharField(
        max_length=15,
        unique=True,
        validators=[RegexValidator(CNIC_PATTERN, CNIC_FORMAT_MESSAGE)],
    )
    chief_complaint = models.CharField(max_length=CHIEF_COMPLAINT_MAX_LENGTH)
    medical_history = models.TextField(blank=True)

    registered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registered_patients",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["name"], name="pat_patient_name_idx"),
            models.Index(fields=["contact_number"], name="pat_patient_contact_idx"),
            models.Index(fields=["gender", "created_at"], name="pat_patient_gender_created_idx"),
        ]

    def clean(self):
        self.name = (self.name or "").strip()
        self.email = (self.email or "").strip().lower()
        self.chief_complaint = (self.chief_complaint or "").strip()
        if not self.name:
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.cnic})"
