# activity_logs/services/generator.py

"""
ACTIVITY LOG GENERATOR (PURE)

Turns batch snapshots into LogEntryDraft values. Nothing here writes to the DB.

One update produces one UPDATED entry per logically distinct change,
in this order:
  1. miscellaneous amount
  2. overall price
  3. batch number
  4. bill id
  5. medicine lines, keyed by medicine_id (added, removed, changed)
  6. draft note
  7. attachment count

Rendering: "<label> 0.00" currency, DD/MM/YYYY dates, details capped at 500 chars.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from activity_logs.models import DETAILS_MAX_LENGTH, ActivityLog
from inventory.services.money import format_money, money

ARROW = "→"


# -------------------------------------------------
# SNAPSHOTS
# -------------------------------------------------
@dataclass(frozen=True)
class LineSnapshot:
    medicine_id: int
    medicine_name: str
    quantity: int
    price: Decimal
    expiry_date: date
    total_amount: Decimal


@dataclass(frozen=True)
class BatchSnapshot:
    batch_id: object
    batch_number: str
    bill_id: str
    overall_price: Decimal
    miscellaneous_amount: Decimal
    draft_note: str
    attachments_count: int
    is_draft: bool
    lines: tuple[LineSnapshot, ...] = ()

    @property
    def medicines_count(self) -> int:
        return len(self.lines)


def snapshot_of(batch) -> BatchSnapshot:
    lines = tuple(
        LineSnapshot(
            medicine_id=int(m.medicine_id),
            medicine_name=m.medicine_name,
            quantity=int(m.quantity),
            price=money(m.price),
            expiry_date=m.expiry_date,
            total_amount=money(m.total_amount),
        )
        for m in batch.medicines.all()
    )
    return BatchSnapshot(
        batch_id=batch.id,
        batch_number=batch.batch_number,
        bill_id=batch.bill_id or "",
        overall_price=money(batch.overall_price),
        miscellaneous_amount=money(batch.miscellaneous_amount),
        draft_note=batch.draft_note or "",
        attachments_count=len(batch.attachments or []),
        is_draft=bool(batch.is_draft),
        lines=lines,
    )


@dataclass(frozen=True)
class LogEntryDraft:
    action: str
    details: str
    changes: list[dict] = field(default_factory=list)


# -------------------------------------------------
# FORMATTING
# -------------------------------------------------
def fmt_date(d: date | None) -> str:
    return d.strftime("%d/%m/%Y") if d else "Not set"


def _signed(n) -> str:
    return f"+{n}" if n > 0 else f"{n}"


def _json_value(v):
    if isinstance(v, Decimal):
        return f"{v:.2f}"
    if isinstance(v, date):
        return v.isoformat()
    if isinstance(v, dict):
        return {k: _json_value(x) for k, x in v.items()}
    return v


def change(field_name: str, old_value, new_value) -> dict:
    return {
        "field": field_name,
        "old_value": _json_value(old_value),
        "new_value": _json_value(new_value),
    }


def truncate(details: str) -> str:
    return details[:DETAILS_MAX_LENGTH]


def _updated(details: str, changes: list[dict]) -> LogEntryDraft:
    return LogEntryDraft(
        action=ActivityLog.Action.UPDATED,
        details=truncate(f"Batch updated: {details}"),
        changes=changes,
    )


# -------------------------------------------------
# LIFECYCLE ENTRIES
# -------------------------------------------------
def created_entry(snapshot: BatchSnapshot) -> LogEntryDraft:
    if snapshot.is_draft:
        details = f"Batch created with {snapshot.medicines_count} medicines"
    else:
        details = f"Batch created and finalized with {snapshot.medicines_count} medicines"
    return LogEntryDraft(action=ActivityLog.Action.CREATED, details=truncate(details))


def finalized_entry(snapshot: BatchSnapshot) -> LogEntryDraft:
    details = (
        f"Batch finalized with {snapshot.medicines_count} medicines "
        f"(Total value: {format_money(snapshot.overall_price)}, "
        f"Miscellaneous amount: {format_money(snapshot.miscellaneous_amount)})"
    )
    return LogEntryDraft(
        action=ActivityLog.Action.FINALIZED,
        details=truncate(details),
        changes=[change("is_draft", True, False)],
    )


def deleted_entry(snapshot: BatchSnapshot) -> LogEntryDraft:
    details = (
        f"Batch deleted with {snapshot.medicines_count} medicines "
        f"(Total value: {format_money(snapshot.overall_price)})"
    )
    return LogEntryDraft(action=ActivityLog.Action.DELETED, details=truncate(details))


# -------------------------------------------------
# MEDICINE LINE DIFF
# -------------------------------------------------
def _line_details(line: LineSnapshot) -> dict:
    return {
        "medicine_id": line.medicine_id,
        "medicine_name": line.medicine_name,
        "quantity": line.quantity,
        "price": line.price,
        "expiry_date": line.expiry_date,
        "total_value": line.total_amount,
    }


def _added_entry(line: LineSnapshot) -> LogEntryDraft:
    details = (
        f'Medicine "{line.medicine_name}" added with complete details: '
        f"Quantity: {line.quantity} units, "
        f"Unit Price: {format_money(line.price)}, "
        f"Total Value: {format_money(line.total_amount)}, "
        f"Expiry Date: {fmt_date(line.expiry_date)}"
    )
    return _updated(details, [change("medicine_added", None, _line_details(line))])


def _removed_entry(line: LineSnapshot) -> LogEntryDraft:
    details = (
        f'Medicine "{line.medicine_name}" removed with complete details: '
        f"Lost Quantity: {line.quantity} units, "
        f"Unit Price: {format_money(line.price)}, "
        f"Lost Value: {format_money(line.total_amount)}, "
        f"Expiry Date: {fmt_date(line.expiry_date)}"
    )
    return _updated(details, [change("medicine_removed", _line_details(line), None)])


def _changed_entry(old: LineSnapshot, new: LineSnapshot) -> LogEntryDraft | None:
    prefix = f"medicines.{new.medicine_id}"
    parts: list[str] = []
    changes: list[dict] = []

    if old.quantity != new.quantity:
        diff = new.quantity - old.quantity
        parts.append(f"Quantity: {old.quantity} {ARROW} {new.quantity} units ({_signed(diff)} units)")
        changes.append(change(f"{prefix}.quantity", old.quantity, new.quantity))

    if old.price != new.price:
        diff = new.price - old.price
        pct = (diff / old.price * Decimal("100")).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        direction = "increase" if diff > 0 else "decrease"
        sign = "+" if diff > 0 else "-"
        parts.append(
            f"Unit Price: {format_money(old.price)} {ARROW} {format_money(new.price)} "
            f"({sign}{format_money(abs(diff))}, {abs(pct):.2f}% {direction})"
        )
        changes.append(change(f"{prefix}.price", old.price, new.price))

    if old.expiry_date != new.expiry_date:
        days = (new.expiry_date - old.expiry_date).days
        if days > 0:
            span = f"{days} days extended"
        else:
            span = f"{abs(days)} days shortened"
        parts.append(
            f"Expiry Date: {fmt_date(old.expiry_date)} {ARROW} {fmt_date(new.expiry_date)} ({span})"
        )
        changes.append(change(f"{prefix}.expiry_date", old.expiry_date, new.expiry_date))

    if (old.quantity != new.quantity or old.price != new.price) and old.total_amount != new.total_amount:
        parts.append(
            f"Total Value: {format_money(old.total_amount)} {ARROW} {format_money(new.total_amount)}"
        )
        changes.append(change(f"{prefix}.total_amount", old.total_amount, new.total_amount))

    if old.medicine_name != new.medicine_name:
        parts.append(f'Medicine Name: "{old.medicine_name}" {ARROW} "{new.medicine_name}"')
        changes.append(change(f"{prefix}.medicine_name", old.medicine_name, new.medicine_name))

    if not changes:
        return None

    details = f'Medicine "{new.medicine_name}" updated with complete details: ' + ", ".join(parts)
    return _updated(details, changes)


def medicine_line_entries(old_lines, new_lines) -> list[LogEntryDraft]:
    old_by_id = {line.medicine_id: line for line in old_lines}
    new_by_id = {line.medicine_id: line for line in new_lines}

    entries: list[LogEntryDraft] = []

    for medicine_id, line in new_by_id.items():
        if medicine_id not in old_by_id:
            entries.append(_added_entry(line))

    for medicine_id, line in old_by_id.items():
        if medicine_id not in new_by_id:
            entries.append(_removed_entry(line))

    for medicine_id, line in new_by_id.items():
        old = old_by_id.get(medicine_id)
        if old is None:
            continue
        entry = _changed_entry(old, line)
        if entry:
            entries.append(entry)

    return entries


# -------------------------------------------------
# UPDATE DIFF
# -------------------------------------------------
def update_entries(old: BatchSnapshot, new: BatchSnapshot) -> list[LogEntryDraft]:
    """
    Entries for an update of a finalized batch. Empty when nothing tracked changed.
    """
    entries: list[LogEntryDraft] = []

    if old.miscellaneous_amount != new.miscellaneous_amount:
        entries.append(
            _updated(
                f"miscellaneous amount updated ({format_money(old.miscellaneous_amount)} "
                f"{ARROW} {format_money(new.miscellaneous_amount)})",
                [change("miscellaneous_amount", old.miscellaneous_amount, new.miscellaneous_amount)],
            )
        )

    if old.overall_price != new.overall_price:
        entries.append(
            _updated(
                f"overall price updated ({format_money(old.overall_price)} "
                f"{ARROW} {format_money(new.overall_price)})",
                [change("overall_price", old.overall_price, new.overall_price)],
            )
        )

    if old.batch_number != new.batch_number:
        entries.append(
            _updated(
                f"batch number updated ({old.batch_number} {ARROW} {new.batch_number})",
                [change("batch_number", old.batch_number, new.batch_number)],
            )
        )

    if old.bill_id != new.bill_id:
        entries.append(
            _updated(
                f"bill ID updated ({old.bill_id or 'none'} {ARROW} {new.bill_id or 'none'})",
                [change("bill_id", old.bill_id or None, new.bill_id or None)],
            )
        )

    entries.extend(medicine_line_entries(old.lines, new.lines))

    if old.draft_note != new.draft_note:
        entries.append(
            _updated(
                "draft note updated",
                [change("draft_note", old.draft_note or "none", new.draft_note or "none")],
            )
        )

    if old.attachments_count != new.attachments_count:
        entries.append(
            _updated(
                f"attachments updated ({old.attachments_count} {ARROW} {new.attachments_count} files)",
                [change("attachments", old.attachments_count, new.attachments_count)],
            )
        )

    return entries
