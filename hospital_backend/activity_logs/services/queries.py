# activity_logs/services/queries.py

"""
ACTIVITY LOG READS

Newest first. A batch that was deleted still has its history here,
because logs key on batch_id / batch_number columns rather than a foreign key.
"""

from __future__ import annotations

import uuid

from django.db.models import Count

from activity_logs.models import ActivityLog
from inventory.models import Batch
from inventory.services.exceptions import InvalidInputError, NotFoundError
from inventory.services.pagination import Page, paginate


def _action_counts(qs) -> dict:
    counts = {choice: 0 for choice in ActivityLog.Action.values}
    for row in qs.order_by().values("action").annotate(n=Count("id")):
        counts[row["action"]] = row["n"]
    return counts


def list_batch_logs(*, batch_id=None, batch_number: str | None = None, page=None, limit=None) -> Page:
    """
    Logs of one batch, by id or by batch number.

    NotFoundError when neither a live batch nor any log matches.
    """
    batch_number = (batch_number or "").strip()

    if batch_id is not None:
        try:
            batch_id = uuid.UUID(str(batch_id))
        except ValueError:
            raise NotFoundError("Batch not found", details={"batch_id": str(batch_id)})
        qs = ActivityLog.objects.filter(batch_id=batch_id)
        batch = Batch.objects.filter(pk=batch_id).only("id", "batch_number").first()
    elif batch_number:
        qs = ActivityLog.objects.filter(batch_number=batch_number)
        batch = Batch.objects.filter(batch_number=batch_number).only("id", "batch_number").first()
    else:
        raise InvalidInputError("batch_id or batch_number is required")

    if batch is None and not qs.exists():
        raise NotFoundError(
            "No activity logs found for this batch",
            details={"batch_id": str(batch_id) if batch_id else None, "batch_number": batch_number or None},
        )

    summary = {
        "batch_id": str(batch.id) if batch else (str(batch_id) if batch_id else None),
        "batch_number": batch.batch_number if batch else (batch_number or None),
        "batch_exists": batch is not None,
        "total_logs": qs.count(),
        "actions": _action_counts(qs),
    }
    return paginate(
        qs.select_related("owner").order_by("-timestamp", "-id"),
        page=page,
        limit=limit,
        summary=summary,
    )


def list_logs(*, queryset=None, page=None, limit=None) -> Page:
    """Global log search; filtering is applied by activity_logs.filters.ActivityLogFilter."""
    qs = ActivityLog.objects.select_related("owner") if queryset is None else queryset
    return paginate(
        qs.order_by("-timestamp", "-id"),
        page=page,
        limit=limit,
        summary={"total_logs": qs.count(), "actions": _action_counts(qs)},
    )
