# inventory/services/pagination.py

"""
PAGE ENVELOPE

Every list endpoint answers with:
    {"results": [...], "pagination": {...}, "summary": {...}}
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from django.conf import settings


@dataclass(frozen=True)
class Page:
    items: list
    pagination: dict
    summary: dict = field(default_factory=dict)

    def as_dict(self, results=None) -> dict:
        return {
            "results": self.items if results is None else results,
            "pagination": self.pagination,
            "summary": self.summary,
        }


def page_params(page=None, limit=None) -> tuple[int, int]:
    """Clamp raw query params into (page >= 1, 1 <= limit <= max)."""
    default_limit = int(getattr(settings, "INVENTORY_DEFAULT_PAGE_SIZE", 20))
    max_limit = int(getattr(settings, "INVENTORY_MAX_PAGE_SIZE", 100))

    try:
        page = int(page) if page not in (None, "") else 1
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(limit) if limit not in (None, "") else default_limit
    except (TypeError, ValueError):
        limit = default_limit

    return max(page, 1), min(max(limit, 1), max_limit)


def paginate(items, *, page=None, limit=None, summary: dict | None = None) -> Page:
    """
    Works on lists and querysets alike (slicing a queryset stays lazy).
    """
    page, limit = page_params(page, limit)

    total = items.count() if hasattr(items, "count") and not isinstance(items, list) else len(items)
    total_pages = math.ceil(total / limit) if total else 0

    start = (page - 1) * limit
    chunk = list(items[start : start + limit])

    return Page(
        items=chunk,
        pagination={
            "current_page": page,
            "total_pages": total_pages,
            "total_items": total,
            "items_per_page": limit,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        },
        summary=summary or {},
    )
