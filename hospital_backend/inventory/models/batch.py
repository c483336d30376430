# inventory/models/batch.py

"""
PURCHASE BATCH (ONE SUPPLIER BILL)

A Batch is one purchase with its ordered medicine lines (BatchMedicine).

GUARANTEES (enforced by inventory.services.batch_store):
- line totals + miscellaneous_amount == overall_price (within tolerance)
- medicine_id is unique within one batch
- drafts never count towards stock
- finalized_at is set once; a finalized batch never returns to draft
- quantities are mutated ONLY via services (discard, update)
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Batch(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    batch_number = models.CharField(max_length=128, unique=True)
    bill_id = models.CharField(max_length=128, blank=True)

    overall_price = models.DecimalField(max_digits=14, decimal_places=2)
    miscellaneous_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    is_draft = models.BooleanField(default=False)
    finalized_at = models.DateTimeField(null=True, blank=True)
    draft_note = models.TextField(blank=True)

    attachments = models.JSONField(default=list, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_batches",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_draft", "created_at"], name="inv_batch_draft_created_idx"),
            models.Index(fields=["bill_id"], name="inv_batch_bill_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(miscellaneous_amount__gte=0),
                name="chk_batch_misc_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(overall_price__gte=0),
                name="chk_batch_overall_gte_zero",
            ),
        ]

    def clean(self):
        if self.miscellaneous_amount is not None and self.miscellaneous_amount < 0:
            raise ValidationError({"miscellaneous_amount": "miscellaneous_amount cannot be negative"})
        if not isinstance(self.attachments, list):
            raise ValidationError({"attachments": "attachments must be a list"})

    def save(self, *args, **kwargs):
        if not self._state.adding and self.is_draft:
            original_is_draft = (
                Batch.objects.filter(pk=self.pk).values_list("is_draft", flat=True).first()
            )
            if original_is_draft is False:
                raise ValidationError({"is_draft": "A finalized batch cannot return to draft"})

        self.full_clean(validate_unique=False)
        super().save(*args, **kwargs)

    def __str__(self):
        state = "DRAFT" if self.is_draft else "FINAL"
        return f"{self.batch_number} ({state})"


class BatchMedicine(models.Model):
    """
    One medicine line inside a batch. Lines whose quantity reaches zero are deleted.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    batch = models.ForeignKey(Batch, on_delete=models.CASCADE, related_name="medicines")
    position = models.PositiveIntegerField(default=0)

    medicine_id = models.PositiveIntegerField()
    medicine_name = models.CharField(max_length=255)

    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=12, decimal_places=2)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2)

    expiry_date = models.DateField()
    date_of_purchase = models.DateField()
    reorder_level = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]
        indexes = [
            models.Index(fields=["medicine_id"], name="inv_line_medicine_id_idx"),
            models.Index(fields=["medicine_name"], name="inv_line_medicine_name_idx"),
            models.Index(fields=["expiry_date"], name="inv_line_expiry_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["batch", "medicine_id"],
                name="unique_medicine_per_batch",
            ),
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_batchmedicine_qty_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(price__gt=0),
                name="chk_batchmedicine_price_gt_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        self.total_amount = (self.price * Decimal(int(self.quantity or 0))).quantize(Decimal("0.01"))
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.medicine_name} x{self.quantity} ({self.batch_id})"
