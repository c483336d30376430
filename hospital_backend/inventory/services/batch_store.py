# inventory/services/batch_store.py

"""
BATCH STORE (APPLICATION SERVICE)

Owns every write to Batch + BatchMedicine:
- create (finalized) / create draft
- finalize
- partial update (BatchChanges)
- hard delete

Rules:
- Validate everything, then write. A rejected call leaves the DB untouched.
- Each call runs in one transaction with the batch row locked (select_for_update),
  so writes to the same batch are serialized.
- Activity log entries are produced by activity_logs.services.generator and
  written by the recorder. Drafts log only their creation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from activity_logs.services.generator import (
    created_entry,
    deleted_entry,
    finalized_entry,
    snapshot_of,
    update_entries,
)
from activity_logs.services.recorder import record_entries
from inventory.models import Batch, BatchMedicine

from .exceptions import (
    DuplicateBatchError,
    IllegalDraftReversionError,
    InventoryServiceError,
    NotDraftError,
    NotFoundError,
)
from .money import ZERO, money
from .validation import (
    BatchChanges,
    BatchInput,
    lines_total,
    parse_batch_changes,
    parse_batch_input,
    reconcile_price,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeletedBatch:
    batch_id: str
    batch_number: str
    medicines_count: int
    overall_price: Decimal


# -------------------------------------------------
# HELPERS
# -------------------------------------------------
def _user_id(user):
    pk = getattr(user, "pk", None)
    return str(pk) if pk else None


def _rejected(exc: InventoryServiceError, **context) -> InventoryServiceError:
    logger.warning("Batch write rejected: %s", exc.code, extra={**context, "reason": str(exc)})
    return exc


def lock_batch(batch_id) -> Batch:
    try:
        return Batch.objects.select_for_update().get(pk=batch_id)
    except (Batch.DoesNotExist, ValidationError, ValueError):
        raise NotFoundError("Batch not found", details={"batch_id": str(batch_id)})


def _ensure_batch_number_free(batch_number: str, *, exclude_id=None) -> None:
    qs = Batch.objects.filter(batch_number=batch_number)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise _rejected(
            DuplicateBatchError(
                "Batch number already exists. Please use a different batch number.",
                details={"batch_number": batch_number},
            ),
            batch_number=batch_number,
        )


def _reconcile(**kwargs) -> None:
    try:
        reconcile_price(**kwargs)
    except InventoryServiceError as exc:
        raise _rejected(exc, **{k: str(v) for k, v in kwargs.items()})


def _write_lines(batch: Batch, lines) -> None:
    for position, line in enumerate(lines):
        BatchMedicine.objects.create(
            batch=batch,
            position=position,
            medicine_id=line.medicine_id,
            medicine_name=line.medicine_name,
            quantity=line.quantity,
            price=line.price,
            expiry_date=line.expiry_date,
            date_of_purchase=line.date_of_purchase,
            reorder_level=line.reorder_level,
        )


def _save_batch(batch: Batch) -> None:
    try:
        with transaction.atomic():
            batch.save()
    except IntegrityError as exc:
        raise DuplicateBatchError(
            "Batch number already exists. Please use a different batch number.",
            details={"batch_number": batch.batch_number},
        ) from exc


def current_lines_total(batch: Batch) -> Decimal:
    total = batch.medicines.aggregate(total=Sum("total_amount"))["total"]
    return money(total or ZERO)


def recompute_overall_price(batch: Batch) -> Decimal:
    """overall_price = sum(remaining line totals) + miscellaneous_amount."""
    batch.overall_price = money(current_lines_total(batch) + money(batch.miscellaneous_amount))
    batch.save(update_fields=["overall_price", "updated_at"])
    return batch.overall_price


# -------------------------------------------------
# CREATE
# -------------------------------------------------
@transaction.atomic
def _create(*, data: BatchInput, user, is_draft: bool) -> Batch:
    _reconcile(
        medicines_total=lines_total(data.lines),
        miscellaneous_amount=data.miscellaneous_amount,
        overall_price=data.overall_price,
    )
    _ensure_batch_number_free(data.batch_number)

    batch = Batch(
        batch_number=data.batch_number,
        bill_id=data.bill_id,
        overall_price=data.overall_price,
        miscellaneous_amount=data.miscellaneous_amount,
        attachments=list(data.attachments),
        draft_note=data.draft_note if is_draft else "",
        is_draft=is_draft,
        finalized_at=None if is_draft else timezone.now(),
        created_by=user if getattr(user, "pk", None) else None,
    )
    _save_batch(batch)
    _write_lines(batch, data.lines)

    record_entries(
        batch_id=batch.id,
        batch_number=batch.batch_number,
        entries=[created_entry(snapshot_of(batch))],
        owner=user,
    )

    logger.info(
        "Batch created",
        extra={
            "batch_id": str(batch.id),
            "batch_number": batch.batch_number,
            "is_draft": is_draft,
            "medicines": len(data.lines),
            "overall_price": str(batch.overall_price),
            "user_id": _user_id(user),
        },
    )
    return batch


def create_batch(*, data, user=None) -> Batch:
    """
    Create a finalized batch. `data` is a BatchInput or a request-shaped mapping.
    """
    if not isinstance(data, BatchInput):
        data = parse_batch_input(data)
    return _create(data=data, user=user, is_draft=False)


def create_draft_batch(*, data, user=None) -> Batch:
    """
    Create a draft. Same validation as create_batch; drafts never count as stock.
    """
    if not isinstance(data, BatchInput):
        data = parse_batch_input(data)
    return _create(data=data, user=user, is_draft=True)


# -------------------------------------------------
# FINALIZE
# -------------------------------------------------
def _finalize_locked(batch: Batch, user) -> Batch:
    batch.is_draft = False
    batch.finalized_at = timezone.now()
    _save_batch(batch)

    record_entries(
        batch_id=batch.id,
        batch_number=batch.batch_number,
        entries=[finalized_entry(snapshot_of(batch))],
        owner=user,
    )

    logger.info(
        "Batch finalized",
        extra={
            "batch_id": str(batch.id),
            "batch_number": batch.batch_number,
            "user_id": _user_id(user),
        },
    )
    return batch


@transaction.atomic
def finalize_batch(*, batch_id, user=None) -> Batch:
    batch = lock_batch(batch_id)
    if not batch.is_draft:
        raise _rejected(
            NotDraftError("Batch is already finalized"),
            batch_id=str(batch.id),
            batch_number=batch.batch_number,
        )
    return _finalize_locked(batch, user)


# -------------------------------------------------
# UPDATE
# -------------------------------------------------
@transaction.atomic
def update_batch(*, batch_id, changes, user=None) -> Batch:
    """
    Apply a partial update.

    - finalized -> draft is refused
    - draft + is_draft=False finalizes (one FINALIZED entry, no diff entries)
    - draft that stays draft is saved silently
    - finalized batch: one UPDATED entry per distinct change
    """
    if not isinstance(changes, BatchChanges):
        changes = parse_batch_changes(changes)

    batch = lock_batch(batch_id)
    was_draft = batch.is_draft
    ctx = {"batch_id": str(batch.id), "batch_number": batch.batch_number}

    if changes.is_draft is True and not was_draft:
        raise _rejected(
            IllegalDraftReversionError("Cannot convert a finalized batch back to draft"), **ctx
        )

    if changes.batch_number is not None and changes.batch_number != batch.batch_number:
        _ensure_batch_number_free(changes.batch_number, exclude_id=batch.id)

    if changes.touches_pricing:
        medicines_total = (
            lines_total(changes.lines) if changes.lines is not None else current_lines_total(batch)
        )
        misc = (
            changes.miscellaneous_amount
            if changes.miscellaneous_amount is not None
            else money(batch.miscellaneous_amount)
        )
        overall = (
            changes.overall_price if changes.overall_price is not None else money(batch.overall_price)
        )
        _reconcile(
            medicines_total=medicines_total,
            miscellaneous_amount=misc,
            overall_price=overall,
            against_existing=changes.overall_price is None,
        )

    old = None if was_draft else snapshot_of(batch)

    if changes.batch_number is not None:
        batch.batch_number = changes.batch_number
    if changes.bill_id is not None:
        batch.bill_id = changes.bill_id
    if changes.overall_price is not None:
        batch.overall_price = changes.overall_price
    if changes.miscellaneous_amount is not None:
        batch.miscellaneous_amount = changes.miscellaneous_amount
    if changes.attachments is not None:
        batch.attachments = list(changes.attachments)
    if changes.draft_note is not None:
        batch.draft_note = changes.draft_note

    if changes.lines is not None:
        batch.medicines.all().delete()
        _write_lines(batch, changes.lines)

    if was_draft and changes.is_draft is False:
        return _finalize_locked(batch, user)

    _save_batch(batch)

    if batch.is_draft:
        logger.info("Draft batch updated", extra={**ctx, "user_id": _user_id(user)})
        return batch

    entries = update_entries(old, snapshot_of(batch))
    record_entries(batch_id=batch.id, batch_number=batch.batch_number, entries=entries, owner=user)

    logger.info(
        "Batch updated",
        extra={**ctx, "log_entries": len(entries), "user_id": _user_id(user)},
    )
    return batch


# -------------------------------------------------
# DELETE
# -------------------------------------------------
@transaction.atomic
def delete_batch(*, batch_id, user=None) -> DeletedBatch:
    batch = lock_batch(batch_id)
    snapshot = snapshot_of(batch)

    # The DELETED entry must exist before the row goes away.
    record_entries(
        batch_id=batch.id,
        batch_number=batch.batch_number,
        entries=[deleted_entry(snapshot)],
        owner=user,
    )

    result = DeletedBatch(
        batch_id=str(batch.id),
        batch_number=batch.batch_number,
        medicines_count=snapshot.medicines_count,
        overall_price=snapshot.overall_price,
    )
    batch.delete()

    logger.info(
        "Batch deleted",
        extra={
            "batch_id": result.batch_id,
            "batch_number": result.batch_number,
            "medicines": result.medicines_count,
            "user_id": _user_id(user),
        },
    )
    return result
