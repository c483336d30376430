# activity_logs/models.py

"""
BATCH ACTIVITY LOG

Immutable audit fact about one batch mutation.

GUARANTEES:
- Append-only (no updates, no deletes)
- batch_id / batch_number are plain columns: the log outlives a deleted batch
- details is a rendered summary capped at 500 characters
- changes is an ordered list of {"field", "old_value", "new_value"}
"""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

DETAILS_MAX_LENGTH = 500


class ActivityLog(models.Model):
    class Action(models.TextChoices):
        CREATED = "CREATED", "Created"
        FINALIZED = "FINALIZED", "Finalized"
        UPDATED = "UPDATED", "Updated"
        DELETED = "DELETED", "Deleted"

    # Sequential key breaks timestamp ties between entries of one mutation.
    id = models.BigAutoField(primary_key=True)

    batch_id = models.UUIDField(db_index=True)
    batch_number = models.CharField(max_length=128, db_index=True)

    action = models.CharField(max_length=16, choices=Action.choices)
    details = models.CharField(max_length=DETAILS_MAX_LENGTH)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="batch_activity_logs",
    )

    timestamp = models.DateTimeField(default=timezone.now, db_index=True)
    changes = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(fields=["batch_id", "timestamp"], name="alog_batch_ts_idx"),
            models.Index(fields=["batch_number", "timestamp"], name="alog_batch_number_ts_idx"),
            models.Index(fields=["owner", "timestamp"], name="alog_owner_ts_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("ActivityLog entries are immutable")

        self.details = (self.details or "")[:DETAILS_MAX_LENGTH]
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("ActivityLog entries are immutable and cannot be deleted")

    def __str__(self):
        return f"{self.batch_number} | {self.action} | {self.timestamp:%Y-%m-%d %H:%M}"
