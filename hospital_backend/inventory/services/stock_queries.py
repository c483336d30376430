# inventory/services/stock_queries.py

"""
STOCK QUERIES (READ-ONLY)

One module for every stock projection. Shared rules:
- drafts never contribute to stock or aggregates
- lines are grouped by medicine name (case-insensitive)
- low stock: total_quantity <= min(reorder_level) of the group
- expiry buckets come from inventory.services.expiry.classify_expiry
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db.models import Prefetch, Q, Sum
from django.db.models.functions import TruncDate

from inventory.models import Batch, BatchMedicine

from .exceptions import InvalidInputError, NotFoundError
from .expiry import classify_expiry, expiring_cutoff, expiring_window_days, is_low_stock, today
from .money import ZERO, money
from .pagination import Page, paginate

STATUS_LOW_STOCK = "Low Stock"
STATUS_IN_STOCK = "In Stock"

BATCH_STATUS_DRAFT = "Draft"
BATCH_STATUS_LOW_STOCK = "Has Low Stock"
BATCH_STATUS_EXPIRED = "Has Expired Items"
BATCH_STATUS_GOOD = "Good"

BATCH_SORT_FIELDS = {"created_at", "batch_number", "overall_price", "finalized_at"}
STOCK_SORT_FIELDS = {"medicine_name", "total_quantity", "total_value", "batch_count", "nearest_expiry"}


# -------------------------------------------------
# HELPERS
# -------------------------------------------------
def _sort_params(sort_by, sort_order, *, allowed: set[str], default: str) -> tuple[str, bool]:
    sort_by = (sort_by or default).strip()
    if sort_by not in allowed:
        raise InvalidInputError(
            f"sort_by must be one of: {', '.join(sorted(allowed))}", details={"field": "sort_by"}
        )
    descending = (sort_order or "asc").strip().lower() == "desc"
    return sort_by, descending


def finalized_lines():
    return BatchMedicine.objects.filter(batch__is_draft=False).select_related("batch")


def _group_key(name: str) -> str:
    return (name or "").strip().lower()


def _group_lines(lines) -> OrderedDict:
    groups: OrderedDict[str, list] = OrderedDict()
    for line in lines:
        groups.setdefault(_group_key(line.medicine_name), []).append(line)
    return groups


def _entry(line: BatchMedicine, ref: date) -> dict:
    status = classify_expiry(line.expiry_date, ref)
    return {
        "batch_id": str(line.batch_id),
        "batch_number": line.batch.batch_number,
        "bill_id": line.batch.bill_id,
        "medicine_id": line.medicine_id,
        "medicine_name": line.medicine_name,
        "quantity": line.quantity,
        "price": money(line.price),
        "total_amount": money(line.total_amount),
        "expiry_date": line.expiry_date,
        "date_of_purchase": line.date_of_purchase,
        "reorder_level": line.reorder_level,
        "days_remaining": status.days_remaining,
        "status": STATUS_LOW_STOCK if is_low_stock(line.quantity, line.reorder_level) else STATUS_IN_STOCK,
        "expiry_status": status.label,
    }


def _aggregate(lines, ref: date) -> dict:
    total_quantity = sum(line.quantity for line in lines)
    total_value = money(sum((line.total_amount for line in lines), ZERO))
    reorder_level = min(line.reorder_level for line in lines)
    avg_price = money(sum((line.price for line in lines), ZERO) / len(lines))

    statuses = [classify_expiry(line.expiry_date, ref) for line in lines]
    expired = sum(1 for s in statuses if s.expired)
    expiring = sum(1 for s in statuses if s.expiring_soon)
    low = is_low_stock(total_quantity, reorder_level)

    return {
        "medicine_name": lines[0].medicine_name,
        "medicine_ids": sorted({line.medicine_id for line in lines}),
        "total_quantity": total_quantity,
        "total_value": total_value,
        "avg_price": avg_price,
        "batch_count": len({line.batch_id for line in lines}),
        "reorder_level": reorder_level,
        "status": STATUS_LOW_STOCK if low else STATUS_IN_STOCK,
        "is_low_stock": low,
        "expired_batches": expired,
        "expiring_batches": expiring,
        "has_expired": expired > 0,
        "has_expiring": expiring > 0,
        "nearest_expiry": min(line.expiry_date for line in lines),
    }


def _sort_groups(groups: list[dict], sort_by: str, descending: bool) -> list[dict]:
    if sort_by == "medicine_name":
        return sorted(groups, key=lambda g: g["medicine_name"].lower(), reverse=descending)
    return sorted(groups, key=lambda g: g[sort_by], reverse=descending)


# -------------------------------------------------
# BATCHES
# -------------------------------------------------
def summarize_batch(batch: Batch, *, reference_date: date | None = None) -> dict:
    ref = reference_date or today()
    lines = list(batch.medicines.all())

    low = sum(1 for line in lines if is_low_stock(line.quantity, line.reorder_level))
    expired = sum(1 for line in lines if classify_expiry(line.expiry_date, ref).expired)

    if batch.is_draft:
        status = BATCH_STATUS_DRAFT
    elif low:
        status = BATCH_STATUS_LOW_STOCK
    elif expired:
        status = BATCH_STATUS_EXPIRED
    else:
        status = BATCH_STATUS_GOOD

    return {
        "total_medicines": len(lines),
        "total_quantity": sum(line.quantity for line in lines),
        "total_medicines_price": money(sum((line.total_amount for line in lines), ZERO)),
        "miscellaneous_amount": money(batch.miscellaneous_amount),
        "low_stock_medicines": low,
        "expired_medicines": expired,
        "batch_status": status,
    }


def get_batch(batch_id) -> Batch:
    try:
        return Batch.objects.select_related("created_by").prefetch_related("medicines").get(pk=batch_id)
    except (Batch.DoesNotExist, ValidationError, ValueError):
        raise NotFoundError("Batch not found", details={"batch_id": str(batch_id)})


def list_batches(
    *,
    search: str | None = None,
    is_draft: bool | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
    page=None,
    limit=None,
    reference_date: date | None = None,
) -> Page:
    """
    Batch listing with per-batch summary. Drafts are listed unless is_draft=False,
    but never counted in the value totals.
    """
    sort_by, descending = _sort_params(
        sort_by, sort_order or "desc", allowed=BATCH_SORT_FIELDS, default="created_at"
    )

    qs = Batch.objects.select_related("created_by")
    if is_draft is not None:
        qs = qs.filter(is_draft=is_draft)

    term = (search or "").strip()
    if term:
        matching = BatchMedicine.objects.filter(medicine_name__icontains=term).values("batch_id")
        qs = qs.filter(
            Q(batch_number__icontains=term) | Q(bill_id__icontains=term) | Q(id__in=matching)
        )

    totals = qs.aggregate(
        finalized_value=Sum("overall_price", filter=Q(is_draft=False)),
    )
    summary = {
        "total_batches": qs.count(),
        "draft_batches": qs.filter(is_draft=True).count(),
        "finalized_batches": qs.filter(is_draft=False).count(),
        "total_value": money(totals["finalized_value"] or ZERO),
    }

    qs = qs.order_by(f"-{sort_by}" if descending else sort_by, "-id")
    qs = qs.prefetch_related(Prefetch("medicines", queryset=BatchMedicine.objects.order_by("position")))

    result = paginate(qs, page=page, limit=limit, summary=summary)
    ref = reference_date or today()
    items = [(batch, summarize_batch(batch, reference_date=ref)) for batch in result.items]
    return Page(items=items, pagination=result.pagination, summary=result.summary)


# -------------------------------------------------
# MEDICINE STOCK
# -------------------------------------------------
def medicine_stock_list(
    *,
    search: str | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
    page=None,
    limit=None,
    reference_date: date | None = None,
) -> Page:
    sort_by, descending = _sort_params(
        sort_by, sort_order, allowed=STOCK_SORT_FIELDS, default="medicine_name"
    )
    ref = reference_date or today()

    lines = finalized_lines()
    term = (search or "").strip()
    if term:
        lines = lines.filter(medicine_name__icontains=term)

    groups = [_aggregate(g, ref) for g in _group_lines(lines).values()]
    groups = _sort_groups(groups, sort_by, descending)

    summary = {
        "total_medicines": len(groups),
        "total_quantity": sum(g["total_quantity"] for g in groups),
        "total_value": money(sum((g["total_value"] for g in groups), ZERO)),
        "low_stock_count": sum(1 for g in groups if g["is_low_stock"]),
        "expired_count": sum(1 for g in groups if g["has_expired"]),
        "expiring_count": sum(1 for g in groups if g["has_expiring"]),
    }
    return paginate(groups, page=page, limit=limit, summary=summary)


def medicine_stock_detail(*, medicine_name: str, reference_date: date | None = None) -> dict:
    name = (medicine_name or "").strip()
    ref = reference_date or today()

    lines = list(
        finalized_lines().filter(medicine_name__iexact=name).order_by("expiry_date", "batch__created_at")
    )
    if not name or not lines:
        raise NotFoundError("Medicine not found in stock", details={"medicine_name": name})

    detail = _aggregate(lines, ref)
    detail["entries"] = [_entry(line, ref) for line in lines]
    return detail


def expiring_soon_items(
    *,
    search: str | None = None,
    window_days: int | None = None,
    page=None,
    limit=None,
    reference_date: date | None = None,
) -> Page:
    ref = reference_date or today()
    window = expiring_window_days() if window_days is None else int(window_days)
    cutoff = expiring_cutoff(ref, window)

    lines = finalized_lines().filter(expiry_date__gte=ref, expiry_date__lte=cutoff)
    term = (search or "").strip()
    if term:
        lines = lines.filter(medicine_name__icontains=term)
    lines = lines.order_by("expiry_date")

    groups = []
    for group in _group_lines(lines).values():
        earliest = min(line.expiry_date for line in group)
        groups.append(
            {
                "medicine_name": group[0].medicine_name,
                "medicine_ids": sorted({line.medicine_id for line in group}),
                "total_quantity": sum(line.quantity for line in group),
                "total_value": money(sum((line.total_amount for line in group), ZERO)),
                "earliest_expiry": earliest,
                "days_left": (earliest - ref).days,
                "batches": [
                    {**_entry(line, ref), "days_left": (line.expiry_date - ref).days}
                    for line in group
                ],
            }
        )
    groups.sort(key=lambda g: (g["earliest_expiry"], g["medicine_name"].lower()))

    summary = {
        "window_days": window,
        "total_medicines": len(groups),
        "total_quantity": sum(g["total_quantity"] for g in groups),
        "total_value": money(sum((g["total_value"] for g in groups), ZERO)),
    }
    return paginate(groups, page=page, limit=limit, summary=summary)


def low_stock_items(
    *,
    search: str | None = None,
    page=None,
    limit=None,
    reference_date: date | None = None,
) -> Page:
    ref = reference_date or today()

    lines = finalized_lines()
    term = (search or "").strip()
    if term:
        lines = lines.filter(medicine_name__icontains=term)

    groups = []
    for group in _group_lines(lines).values():
        agg = _aggregate(group, ref)
        if not agg["is_low_stock"]:
            continue
        agg["shortage"] = max(agg["reorder_level"] - agg["total_quantity"], 0)
        groups.append(agg)
    groups.sort(key=lambda g: (g["total_quantity"], g["medicine_name"].lower()))

    summary = {
        "total_medicines": len(groups),
        "total_shortage": sum(g["shortage"] for g in groups),
    }
    return paginate(groups, page=page, limit=limit, summary=summary)


def expired_medicines(
    *,
    search: str | None = None,
    page=None,
    limit=None,
    reference_date: date | None = None,
) -> Page:
    ref = reference_date or today()

    lines = finalized_lines().filter(expiry_date__lt=ref, quantity__gt=0)
    term = (search or "").strip()
    if term:
        lines = lines.filter(medicine_name__icontains=term)
    lines = lines.order_by("expiry_date")

    groups = []
    for group in _group_lines(lines).values():
        groups.append(
            {
                "medicine_name": group[0].medicine_name,
                "medicine_ids": sorted({line.medicine_id for line in group}),
                "total_quantity": sum(line.quantity for line in group),
                "total_value": money(sum((line.total_amount for line in group), ZERO)),
                "batch_count": len(group),
                "oldest_expiry": min(line.expiry_date for line in group),
                "batches": [
                    {**_entry(line, ref), "days_expired": (ref - line.expiry_date).days}
                    for line in group
                ],
            }
        )
    groups.sort(key=lambda g: (g["oldest_expiry"], g["medicine_name"].lower()))

    summary = {
        "total_medicines": len(groups),
        "total_quantity": sum(g["total_quantity"] for g in groups),
        "total_value": money(sum((g["total_value"] for g in groups), ZERO)),
    }
    return paginate(groups, page=page, limit=limit, summary=summary)


# -------------------------------------------------
# DASHBOARD
# -------------------------------------------------
def dashboard_summary(*, reference_date: date | None = None) -> dict:
    ref = reference_date or today()
    lines = list(finalized_lines())
    groups = [_aggregate(g, ref) for g in _group_lines(lines).values()]

    total_value: Decimal = money(sum((line.total_amount for line in lines), ZERO))

    return {
        "finalized_batches": Batch.objects.filter(is_draft=False).count(),
        "draft_batches": Batch.objects.filter(is_draft=True).count(),
        "distinct_medicines": len(groups),
        "total_units": sum(line.quantity for line in lines),
        "inventory_value": total_value,
        "low_stock_medicines": sum(1 for g in groups if g["is_low_stock"]),
        "expiring_soon_medicines": sum(1 for g in groups if g["has_expiring"]),
        "expired_medicines": sum(1 for g in groups if g["has_expired"]),
        "expiring_window_days": expiring_window_days(),
    }


DATE_RANGE_WEEK = "this_week"
DATE_RANGE_MONTH = "this_month"
DASHBOARD_DATE_RANGES = (DATE_RANGE_WEEK, DATE_RANGE_MONTH)
DASHBOARD_LIST_LIMIT = 5


def _trend_buckets(date_range: str, ref: date) -> list[dict]:
    if date_range == DATE_RANGE_WEEK:
        first = ref - timedelta(days=6)
        return [
            {"label": f"Day {i + 1}", "start": first + timedelta(days=i), "end": first + timedelta(days=i)}
            for i in range(7)
        ]

    buckets = []
    start = ref.replace(day=1)
    while start <= ref:
        end = min(start + timedelta(days=6), ref)
        buckets.append({"label": f"Week {len(buckets) + 1}", "start": start, "end": end})
        start = end + timedelta(days=1)
    return buckets


def stock_trends(*, date_range: str | None = None, reference_date: date | None = None) -> list[dict]:
    """
    Units received per period, dated by the day each finalized batch was recorded.

    this_week  -> seven daily buckets ending today
    this_month -> seven-day buckets from the 1st of the month up to today
    """
    date_range = (date_range or DATE_RANGE_MONTH).strip().lower()
    if date_range not in DASHBOARD_DATE_RANGES:
        raise InvalidInputError(
            f"date_range must be one of: {', '.join(DASHBOARD_DATE_RANGES)}",
            details={"field": "date_range"},
        )

    ref = reference_date or today()
    buckets = _trend_buckets(date_range, ref)

    received = (
        finalized_lines()
        .filter(batch__created_at__date__gte=buckets[0]["start"], batch__created_at__date__lte=ref)
        .annotate(day=TruncDate("batch__created_at"))
        .order_by()
        .values("day")
        .annotate(units=Sum("quantity"))
    )
    per_day = {row["day"]: row["units"] or 0 for row in received}

    for bucket in buckets:
        bucket["stock"] = sum(
            units for day, units in per_day.items() if bucket["start"] <= day <= bucket["end"]
        )
    return buckets


def top_stocked_medicines(*, limit: int = DASHBOARD_LIST_LIMIT) -> list[dict]:
    rows = [
        {"medicine": group[0].medicine_name, "stock": sum(line.quantity for line in group)}
        for group in _group_lines(finalized_lines()).values()
    ]
    rows.sort(key=lambda r: (-r["stock"], r["medicine"].lower()))
    return rows[:limit]


def _low_stock_alerts(limit: int) -> list[dict]:
    alerts = []
    for group in _group_lines(finalized_lines().order_by("batch__created_at", "position")).values():
        current = sum(line.quantity for line in group)
        required = min(line.reorder_level for line in group)
        if not is_low_stock(current, required):
            continue
        alerts.append(
            {
                "medicine_name": group[0].medicine_name,
                "batch_number": group[0].batch.batch_number,
                "current": current,
                "required": required,
            }
        )
    alerts.sort(key=lambda a: (a["current"], a["medicine_name"].lower()))
    return alerts[:limit]


def _line_alert(line: BatchMedicine) -> dict:
    return {
        "batch_id": str(line.batch_id),
        "batch_number": line.batch.batch_number,
        "medicine_name": line.medicine_name,
        "quantity": line.quantity,
        "expiry_date": line.expiry_date,
    }


def dashboard_overview(*, date_range: str | None = None, reference_date: date | None = None) -> dict:
    """
    Everything the dashboard screen shows in one payload.

    Alert lists are capped at DASHBOARD_LIST_LIMIT rows and skip lines with no units left.
    """
    ref = reference_date or today()
    trends = stock_trends(date_range=date_range, reference_date=ref)

    in_stock = finalized_lines().filter(quantity__gt=0)
    expiring = in_stock.filter(
        expiry_date__gte=ref, expiry_date__lte=expiring_cutoff(ref, expiring_window_days())
    ).order_by("expiry_date", "medicine_name")[:DASHBOARD_LIST_LIMIT]
    expired = in_stock.filter(expiry_date__lt=ref).order_by("-expiry_date", "medicine_name")[
        :DASHBOARD_LIST_LIMIT
    ]

    return {
        "date_range": (date_range or DATE_RANGE_MONTH).strip().lower(),
        "summary": dashboard_summary(reference_date=ref),
        "stock_trends": trends,
        "top_stocked_medicines": top_stocked_medicines(),
        "low_stock_items": _low_stock_alerts(DASHBOARD_LIST_LIMIT),
        "expiring_soon_items": [
            {**_line_alert(line), "days_left": (line.expiry_date - ref).days} for line in expiring
        ],
        "already_expired_items": [
            {**_line_alert(line), "days_expired": (ref - line.expiry_date).days} for line in expired
        ],
    }
