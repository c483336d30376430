# inventory/models/discard_record.py

"""
DISCARD RECORD (EXPIRED STOCK REMOVAL)

Immutable receipt of expired units taken out of a batch line.

GUARANTEES:
- Append-only (no updates, no deletes)
- total_value == quantity_discarded * price_per_unit
- batch_id / batch_number are plain columns so the record outlives the batch
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

DEFAULT_DISCARD_REASON = "Expired"


class DiscardRecord(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    medicine_id = models.PositiveIntegerField()
    medicine_name = models.CharField(max_length=255)

    batch_id = models.UUIDField()
    batch_number = models.CharField(max_length=128)

    quantity_discarded = models.PositiveIntegerField()
    price_per_unit = models.DecimalField(max_digits=12, decimal_places=2)
    total_value = models.DecimalField(max_digits=14, decimal_places=2)

    expiry_date = models.DateField()

    discarded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="discard_records",
    )
    reason = models.CharField(max_length=255, default=DEFAULT_DISCARD_REASON)

    discarded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-discarded_at"]
        indexes = [
            models.Index(fields=["discarded_at"], name="inv_discard_at_idx"),
            models.Index(fields=["medicine_id", "discarded_at"], name="inv_discard_med_at_idx"),
            models.Index(fields=["batch_id"], name="inv_discard_batch_idx"),
            models.Index(fields=["discarded_by", "discarded_at"], name="inv_discard_user_at_idx"),
        ]

    def clean(self):
        if not self.quantity_discarded or self.quantity_discarded <= 0:
            raise ValidationError("quantity_discarded must be greater than zero")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("DiscardRecord entries are immutable")

        self.total_value = (
            self.price_per_unit * Decimal(int(self.quantity_discarded or 0))
        ).quantize(Decimal("0.01"))
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("DiscardRecord entries are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.medicine_name} | {self.batch_number} | -{self.quantity_discarded}"
