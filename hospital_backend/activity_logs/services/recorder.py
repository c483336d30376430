# activity_logs/services/recorder.py

"""
ACTIVITY LOG RECORDER

Persists LogEntryDraft values for one batch.

Audit writes run in their own savepoint: if they fail, the failure is
logged and the caller's (already applied) batch mutation stays committed.
"""

from __future__ import annotations

import logging

from django.db import DatabaseError, transaction
from django.core.exceptions import ValidationError
from django.utils import timezone

from activity_logs.models import ActivityLog

logger = logging.getLogger(__name__)


def record_entries(*, batch_id, batch_number: str, entries, owner=None) -> list[ActivityLog]:
    if not entries:
        return []

    owner_id = getattr(owner, "pk", None)

    try:
        with transaction.atomic():
            logs = [
                ActivityLog.objects.create(
                    batch_id=batch_id,
                    batch_number=batch_number,
                    action=entry.action,
                    details=entry.details,
                    changes=list(entry.changes),
                    owner_id=owner_id,
                    timestamp=timezone.now(),
                )
                for entry in entries
            ]
    except (DatabaseError, ValidationError):
        logger.exception(
            "Activity log write failed",
            extra={
                "batch_id": str(batch_id),
                "batch_number": batch_number,
                "entries": len(entries),
            },
        )
        return []

    logger.info(
        "Activity logged",
        extra={
            "batch_id": str(batch_id),
            "batch_number": batch_number,
            "actions": [e.action for e in entries],
            "user_id": str(owner_id) if owner_id else None,
        },
    )
    return logs
