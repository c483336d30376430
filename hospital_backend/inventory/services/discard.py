# inventory/services/discard.py

"""
EXPIRED STOCK DISCARD (APPLICATION SERVICE)

- discard_line              partial or full removal of one expired line in one batch
- discard_all_for_medicine  full removal of one medicine's expired lines across batches
- discard_history           paginated DiscardRecord read with totals

Discards write DiscardRecord receipts, not activity log entries.
The batch overall_price is recomputed from the remaining lines.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.db.models import Count, Sum

from inventory.models import DEFAULT_DISCARD_REASON, BatchMedicine, DiscardRecord

from .batch_store import lock_batch, recompute_overall_price
from .exceptions import (
    InsufficientQuantityError,
    InvalidInputError,
    InventoryServiceError,
    NotExpiredError,
    NotFoundError,
    NothingToDiscardError,
)
from .expiry import classify_expiry, today
from .money import ZERO, money
from .pagination import Page, paginate
from .validation import parse_int

logger = logging.getLogger(__name__)

DISCARD_ALL_REASON = "Expired - All Batches"


@dataclass(frozen=True)
class DiscardOutcome:
    record: DiscardRecord
    batch_id: str
    batch_number: str
    remaining_quantity: int
    line_removed: bool
    new_overall_price: Decimal


@dataclass(frozen=True)
class DiscardAllSummary:
    medicine_id: int
    medicine_name: str
    total_batches_affected: int
    total_quantity_discarded: int
    total_value_discarded: Decimal
    average_discard_value_per_batch: Decimal
    batch_details: list[dict] = field(default_factory=list)
    failed_batches: list[dict] = field(default_factory=list)


def _rejected(exc: InventoryServiceError, **context) -> InventoryServiceError:
    logger.warning("Discard rejected: %s", exc.code, extra={**context, "reason": str(exc)})
    return exc


def _positive_int(value, *, field_name: str) -> int:
    return parse_int(
        value,
        field_name=field_name,
        minimum=1,
        message=f"{field_name} must be a positive integer",
    )


def _record_for(line: BatchMedicine, *, quantity: int, reason: str, user) -> DiscardRecord:
    return DiscardRecord.objects.create(
        medicine_id=line.medicine_id,
        medicine_name=line.medicine_name,
        batch_id=line.batch_id,
        batch_number=line.batch.batch_number,
        quantity_discarded=quantity,
        price_per_unit=line.price,
        expiry_date=line.expiry_date,
        discarded_by=user if getattr(user, "pk", None) else None,
        reason=reason,
    )


# -------------------------------------------------
# SINGLE LINE
# -------------------------------------------------
@transaction.atomic
def discard_line(
    *,
    batch_id,
    medicine_id,
    quantity,
    reason: str | None = None,
    user=None,
    reference_date: date | None = None,
) -> DiscardOutcome:
    medicine_id = _positive_int(medicine_id, field_name="medicine_id")
    quantity = _positive_int(quantity, field_name="quantity")
    reason = (reason or "").strip() or DEFAULT_DISCARD_REASON
    ref = reference_date or today()

    batch = lock_batch(batch_id)
    ctx = {"batch_id": str(batch.id), "batch_number": batch.batch_number, "medicine_id": medicine_id}

    if batch.is_draft:
        raise _rejected(
            InvalidInputError("Cannot discard from a draft batch", details={"batch_id": str(batch.id)}),
            **ctx,
        )

    line = (
        BatchMedicine.objects.select_for_update()
        .select_related("batch")
        .filter(batch=batch, medicine_id=medicine_id)
        .first()
    )
    if line is None:
        raise _rejected(NotFoundError("Medicine not found in this batch"), **ctx)

    status = classify_expiry(line.expiry_date, ref)
    if not status.expired:
        raise _rejected(
            NotExpiredError(
                f"Cannot discard non-expired medicine (expires {line.expiry_date:%d/%m/%Y})",
                details={"expiry_date": line.expiry_date.isoformat()},
            ),
            **ctx,
        )

    if quantity > line.quantity:
        raise _rejected(
            InsufficientQuantityError(
                f"Cannot discard {quantity} units. Only {line.quantity} units available.",
                details={"requested": quantity, "available": line.quantity},
            ),
            **ctx,
        )

    record = _record_for(line, quantity=quantity, reason=reason, user=user)

    remaining = line.quantity - quantity
    if remaining == 0:
        line.delete()
    else:
        line.quantity = remaining
        line.save()

    new_overall = recompute_overall_price(batch)

    logger.info(
        "Expired stock discarded",
        extra={
            **ctx,
            "quantity": quantity,
            "value": str(record.total_value),
            "remaining": remaining,
            "user_id": str(user.pk) if getattr(user, "pk", None) else None,
        },
    )

    return DiscardOutcome(
        record=record,
        batch_id=str(batch.id),
        batch_number=batch.batch_number,
        remaining_quantity=remaining,
        line_removed=remaining == 0,
        new_overall_price=new_overall,
    )


# -------------------------------------------------
# ALL BATCHES OF ONE MEDICINE
# -------------------------------------------------
def _expired_lines(*, medicine_id: int, medicine_name: str, ref: date):
    return BatchMedicine.objects.filter(
        batch__is_draft=False,
        medicine_id=medicine_id,
        medicine_name__iexact=medicine_name,
        expiry_date__lt=ref,
        quantity__gt=0,
    )


def discard_all_for_medicine(
    *,
    medicine_id,
    medicine_name: str,
    reason: str | None = None,
    user=None,
    reference_date: date | None = None,
) -> DiscardAllSummary:
    """
    Best-effort: each batch is discarded in its own transaction.
    A batch that fails is reported in failed_batches; the others stay committed.
    """
    medicine_id = _positive_int(medicine_id, field_name="medicine_id")
    medicine_name = (medicine_name or "").strip()
    if not medicine_name:
        raise InvalidInputError("medicine_name is required", details={"field": "medicine_name"})
    reason = (reason or "").strip() or DISCARD_ALL_REASON
    ref = reference_date or today()

    batch_ids = list(
        dict.fromkeys(
            _expired_lines(medicine_id=medicine_id, medicine_name=medicine_name, ref=ref)
            .order_by("expiry_date")
            .values_list("batch_id", flat=True)
        )
    )
    if not batch_ids:
        raise _rejected(
            NothingToDiscardError("No expired batches found for this medicine"),
            medicine_id=medicine_id,
            medicine_name=medicine_name,
        )

    details: list[dict] = []
    failed: list[dict] = []

    for batch_id in batch_ids:
        try:
            with transaction.atomic():
                batch = lock_batch(batch_id)
                line = (
                    _expired_lines(medicine_id=medicine_id, medicine_name=medicine_name, ref=ref)
                    .select_for_update()
                    .select_related("batch")
                    .filter(batch=batch)
                    .first()
                )
                if line is None:
                    continue

                record = _record_for(line, quantity=line.quantity, reason=reason, user=user)
                line.delete()
                new_overall = recompute_overall_price(batch)
        except (DatabaseError, InventoryServiceError) as exc:
            logger.exception(
                "Discard failed for batch",
                extra={"batch_id": str(batch_id), "medicine_id": medicine_id},
            )
            failed.append({"batch_id": str(batch_id), "error": str(exc)})
            continue

        details.append(
            {
                "batch_id": str(batch.id),
                "batch_number": batch.batch_number,
                "quantity_discarded": record.quantity_discarded,
                "value_discarded": record.total_value,
                "expiry_date": record.expiry_date,
                "new_overall_price": new_overall,
                "discard_record_id": str(record.id),
            }
        )

    if not details and not failed:
        raise NothingToDiscardError("No expired batches found for this medicine")

    total_qty = sum(d["quantity_discarded"] for d in details)
    total_value = money(sum((d["value_discarded"] for d in details), ZERO))
    average = money(total_value / len(details)) if details else ZERO

    logger.info(
        "Expired stock discarded across batches",
        extra={
            "medicine_id": medicine_id,
            "batches": len(details),
            "failed": len(failed),
            "quantity": total_qty,
            "value": str(total_value),
        },
    )

    return DiscardAllSummary(
        medicine_id=medicine_id,
        medicine_name=medicine_name,
        total_batches_affected=len(details),
        total_quantity_discarded=total_qty,
        total_value_discarded=total_value,
        average_discard_value_per_batch=average,
        batch_details=details,
        failed_batches=failed,
    )


# -------------------------------------------------
# HISTORY
# -------------------------------------------------
def discard_history(*, queryset=None, page=None, limit=None) -> Page:
    """
    Paginated discard records. Filtering/sorting is applied by the caller
    (inventory.filters.DiscardRecordFilter); totals cover the whole filtered set.
    """
    qs = DiscardRecord.objects.select_related("discarded_by") if queryset is None else queryset

    totals = qs.aggregate(
        total_records=Count("id"),
        total_quantity=Sum("quantity_discarded"),
        total_value=Sum("total_value"),
    )

    return paginate(
        qs,
        page=page,
        limit=limit,
        summary={
            "total_records": totals["total_records"] or 0,
            "total_quantity_discarded": totals["total_quantity"] or 0,
            "total_value_discarded": money(totals["total_value"] or ZERO),
        },
    )
