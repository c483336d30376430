# inventory/services/validation.py

"""
BATCH INPUT VALIDATION

Turns request-shaped mappings into typed, validated values before any write:
- LineInput      one medicine line (stable key: medicine_id)
- BatchInput     full create / draft payload
- BatchChanges   explicit partial update (None = "not supplied")

Nothing here touches the database.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from django.utils.dateparse import parse_date, parse_datetime

from .exceptions import DuplicateMedicineError, InvalidInputError, PriceMismatchError
from .money import ZERO, money, price_tolerance, to_decimal

# batch_number / bill_id column width
BATCH_REF_MAX_LENGTH = 128

LINE_FIELDS = (
    "medicine_id",
    "medicine_name",
    "quantity",
    "price",
    "expiry_date",
    "date_of_purchase",
    "reorder_level",
)


# -------------------------------------------------
# VALUE TYPES
# -------------------------------------------------
@dataclass(frozen=True)
class LineInput:
    medicine_id: int
    medicine_name: str
    quantity: int
    price: Decimal
    expiry_date: date
    date_of_purchase: date
    reorder_level: int

    @property
    def total_amount(self) -> Decimal:
        return money(self.price * self.quantity)


@dataclass(frozen=True)
class BatchInput:
    batch_number: str
    bill_id: str
    lines: list[LineInput]
    overall_price: Decimal
    miscellaneous_amount: Decimal = ZERO
    attachments: list[str] = field(default_factory=list)
    draft_note: str = ""


@dataclass(frozen=True)
class BatchChanges:
    batch_number: str | None = None
    bill_id: str | None = None
    lines: list[LineInput] | None = None
    overall_price: Decimal | None = None
    miscellaneous_amount: Decimal | None = None
    attachments: list[str] | None = None
    draft_note: str | None = None
    is_draft: bool | None = None

    @property
    def touches_pricing(self) -> bool:
        return (
            self.lines is not None
            or self.overall_price is not None
            or self.miscellaneous_amount is not None
        )


# -------------------------------------------------
# SCALAR PARSERS
# -------------------------------------------------
def parse_int(value, *, field_name: str, minimum: int, message: str) -> int:
    d = to_decimal(value)
    if d is None or d != d.to_integral_value():
        raise InvalidInputError(message, details={"field": field_name})
    n = int(d)
    if n < minimum:
        raise InvalidInputError(message, details={"field": field_name})
    return n


def _as_date(value, *, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    raw = str(value or "").strip()
    parsed = parse_date(raw)
    if parsed is None:
        try:
            dt = parse_datetime(raw)
        except ValueError:
            dt = None
        parsed = dt.date() if dt else None

    if parsed is None:
        raise InvalidInputError(
            f"Invalid date format for {field_name}", details={"field": field_name}
        )
    return parsed


def parse_amount(value, *, field_name: str) -> Decimal:
    """Non-negative money amount."""
    d = to_decimal(value)
    if d is None or d < 0:
        raise InvalidInputError(
            f"{field_name} must be a non-negative number", details={"field": field_name}
        )
    return money(d)


def parse_text(value, *, field_name: str, required: bool = False, max_length: int = 255) -> str:
    text = "" if value is None else str(value).strip()
    if required and not text:
        raise InvalidInputError(f"{field_name} is required", details={"field": field_name})
    if len(text) > max_length:
        raise InvalidInputError(
            f"{field_name} must be at most {max_length} characters", details={"field": field_name}
        )
    return text


def parse_attachments(value) -> list[str]:
    if not isinstance(value, (list, tuple)):
        raise InvalidInputError("Attachments must be an array", details={"field": "attachments"})
    out = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise InvalidInputError(
                "Each attachment must be a valid URL string", details={"field": "attachments"}
            )
        out.append(item.strip())
    return out


# -------------------------------------------------
# LINES
# -------------------------------------------------
def parse_line(row, *, index: int = 0) -> LineInput:
    if not isinstance(row, Mapping):
        raise InvalidInputError("Each medicine must be an object", details={"line": index})

    missing = [f for f in LINE_FIELDS if row.get(f) is None or row.get(f) == ""]
    if missing:
        raise InvalidInputError(
            "All medicine fields are required: " + ", ".join(LINE_FIELDS),
            details={"line": index, "missing": missing},
        )

    medicine_id = parse_int(
        row["medicine_id"],
        field_name="medicine_id",
        minimum=1,
        message="Medicine ID must be a positive integer",
    )
    quantity = parse_int(
        row["quantity"],
        field_name="quantity",
        minimum=1,
        message="Quantity must be an integer greater than 0",
    )

    price = to_decimal(row["price"])
    if price is None or money(price) <= ZERO:
        raise InvalidInputError("Price must be greater than 0", details={"line": index, "field": "price"})

    reorder_level = parse_int(
        row["reorder_level"],
        field_name="reorder_level",
        minimum=0,
        message="Reorder level must be a non-negative integer",
    )

    return LineInput(
        medicine_id=medicine_id,
        medicine_name=parse_text(row["medicine_name"], field_name="medicine_name", required=True),
        quantity=quantity,
        price=money(price),
        expiry_date=_as_date(row["expiry_date"], field_name="expiry_date"),
        date_of_purchase=_as_date(row["date_of_purchase"], field_name="date_of_purchase"),
        reorder_level=reorder_level,
    )


def parse_lines(rows) -> list[LineInput]:
    if not isinstance(rows, (list, tuple)) or not rows:
        raise InvalidInputError(
            "Medicines must be a non-empty array", details={"field": "medicines"}
        )

    lines = [parse_line(row, index=i) for i, row in enumerate(rows)]

    seen: set[int] = set()
    dupes: list[int] = []
    for line in lines:
        if line.medicine_id in seen and line.medicine_id not in dupes:
            dupes.append(line.medicine_id)
        seen.add(line.medicine_id)
    if dupes:
        raise DuplicateMedicineError(
            "Duplicate medicines are not allowed in the same batch. "
            "Each medicine can only be added once.",
            details={"medicine_ids": dupes},
        )

    return lines


def lines_total(lines) -> Decimal:
    return money(sum((line.total_amount for line in lines), ZERO))


# -------------------------------------------------
# PRICE RECONCILIATION
# -------------------------------------------------
def reconcile_price(
    *,
    medicines_total: Decimal,
    miscellaneous_amount: Decimal,
    overall_price: Decimal,
    against_existing: bool = False,
) -> None:
    computed = money(medicines_total + miscellaneous_amount)
    declared = money(overall_price)
    difference = abs(computed - declared)

    if difference <= price_tolerance():
        return

    target = "existing overall price" if against_existing else "overall price"
    raise PriceMismatchError(
        f"Total medicines price ({medicines_total:.2f}) plus miscellaneous amount "
        f"({miscellaneous_amount:.2f}) must equal {target} ({declared:.2f}). "
        f"Computed total: {computed:.2f}. Current difference: {difference:.2f}",
        computed_total=computed,
        declared_total=declared,
    )


# -------------------------------------------------
# PAYLOADS
# -------------------------------------------------
def parse_batch_input(data: Mapping) -> BatchInput:
    if data.get("overall_price") is None or data.get("overall_price") == "":
        raise InvalidInputError("overall_price is required", details={"field": "overall_price"})

    misc = data.get("miscellaneous_amount")
    attachments = data.get("attachments")

    return BatchInput(
        batch_number=parse_text(
            data.get("batch_number"), field_name="batch_number", required=True, max_length=BATCH_REF_MAX_LENGTH
        ),
        bill_id=parse_text(data.get("bill_id"), field_name="bill_id", max_length=BATCH_REF_MAX_LENGTH),
        lines=parse_lines(data.get("medicines")),
        overall_price=parse_amount(data["overall_price"], field_name="overall_price"),
        miscellaneous_amount=(
            ZERO if misc in (None, "") else parse_amount(misc, field_name="miscellaneous_amount")
        ),
        attachments=[] if attachments is None else parse_attachments(attachments),
        draft_note=parse_text(data.get("draft_note"), field_name="draft_note", max_length=2000),
    )


def parse_batch_changes(data: Mapping) -> BatchChanges:
    """
    Only keys present in `data` are validated and carried; everything else stays None.
    """
    kwargs = {}

    if "batch_number" in data:
        kwargs["batch_number"] = parse_text(
            data["batch_number"], field_name="batch_number", required=True, max_length=BATCH_REF_MAX_LENGTH
        )
    if "bill_id" in data:
        kwargs["bill_id"] = parse_text(data["bill_id"], field_name="bill_id", max_length=BATCH_REF_MAX_LENGTH)
    if "medicines" in data:
        kwargs["lines"] = parse_lines(data["medicines"])
    if "overall_price" in data:
        kwargs["overall_price"] = parse_amount(data["overall_price"], field_name="overall_price")
    if "miscellaneous_amount" in data:
        kwargs["miscellaneous_amount"] = parse_amount(
            data["miscellaneous_amount"], field_name="miscellaneous_amount"
        )
    if "attachments" in data:
        kwargs["attachments"] = parse_attachments(data["attachments"])
    if "draft_note" in data:
        kwargs["draft_note"] = parse_text(data["draft_note"], field_name="draft_note", max_length=2000)
    if "is_draft" in data:
        if not isinstance(data["is_draft"], bool):
            raise InvalidInputError("is_draft must be a boolean", details={"field": "is_draft"})
        kwargs["is_draft"] = data["is_draft"]

    return BatchChanges(**kwargs)
