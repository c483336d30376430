# inventory/models/medicine.py

"""
MEDICINE CATALOG ENTRY

- medicine_id is the stable integer key batch lines refer to
  (assigned max + 1 by the catalog service, never reused while the row exists).
- (name, strength, category) is unique case-insensitively; enforced in the service.
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Medicine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    medicine_id = models.PositiveIntegerField(unique=True)

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True)
    strength = models.CharField(max_length=100, blank=True)
    manufacturer = models.CharField(max_length=255, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["medicine_id"]
        indexes = [
            models.Index(fields=["name"], name="inv_medicine_name_idx"),
            models.Index(fields=["category"], name="inv_medicine_category_idx"),
            models.Index(fields=["is_active", "name"], name="inv_medicine_active_name_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(medicine_id__gt=0),
                name="chk_medicine_id_gt_zero",
            ),
        ]

    def clean(self):
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def display_name(self) -> str:
        parts = [self.name, self.strength, self.category, self.manufacturer, self.description]
        return " ".join(" ".join(p or "" for p in parts).split())

    def __str__(self):
        return f"#{self.medicine_id} {self.name}"
