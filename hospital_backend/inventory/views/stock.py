"""
======================================================
PATH: inventory/views/stock.py
======================================================
STOCK VIEWSET (READ-ONLY)

Finalized stock grouped by medicine name.
Every figure comes from inventory.services.stock_queries; nothing is computed here.
"""

from __future__ import annotations

import builtins

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.services.exceptions import InvalidInputError
from inventory.services.money import jsonable
from inventory.services.stock_queries import (
    DASHBOARD_DATE_RANGES,
    dashboard_overview,
    expiring_soon_items,
    low_stock_items,
    medicine_stock_detail,
    medicine_stock_list,
)
from permissions.roles import CAP_INVENTORY_VIEW, HasCapability

PAGE_PARAMS = [
    OpenApiParameter("search", OpenApiTypes.STR),
    OpenApiParameter("page", OpenApiTypes.INT),
    OpenApiParameter("limit", OpenApiTypes.INT),
]


class StockViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_INVENTORY_VIEW

    lookup_field = "medicine_name"
    lookup_value_regex = r"[^/]+"

    @extend_schema(
        parameters=PAGE_PARAMS
        + [
            OpenApiParameter("sort_by", OpenApiTypes.STR),
            OpenApiParameter("sort_order", OpenApiTypes.STR, enum=["asc", "desc"]),
        ]
    )
    def list(self, request):
        params = request.query_params
        page = medicine_stock_list(
            search=params.get("search"),
            sort_by=params.get("sort_by"),
            sort_order=params.get("sort_order"),
            page=params.get("page"),
            limit=params.get("limit"),
        )
        return Response(jsonable(page.as_dict()))

    def retrieve(self, request, medicine_name=None):
        return Response(jsonable(medicine_stock_detail(medicine_name=medicine_name)))

    @extend_schema(parameters=PAGE_PARAMS + [OpenApiParameter("days", OpenApiTypes.INT)])
    @action(detail=False, methods=["get"], url_path="expiring-soon")
    def expiring_soon(self, request):
        params = request.query_params

        raw_days = (params.get("days") or "").strip()
        window_days = None
        if raw_days:
            try:
                window_days = int(raw_days)
                if window_days < 0:
                    raise ValueError
            except ValueError:
                raise InvalidInputError(
                    "days must be a non-negative integer", details={"field": "days"}
                )

        page = expiring_soon_items(
            search=params.get("search"),
            window_days=window_days,
            page=params.get("page"),
            limit=params.get("limit"),
        )
        return Response(jsonable(page.as_dict()))

    @extend_schema(parameters=PAGE_PARAMS)
    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        params = request.query_params
        page = low_stock_items(
            search=params.get("search"),
            page=params.get("page"),
            limit=params.get("limit"),
        )
        return Response(jsonable(page.as_dict()))

    @extend_schema(
        parameters=[
            OpenApiParameter("date_range", OpenApiTypes.STR, enum=builtins.list(DASHBOARD_DATE_RANGES)),
        ]
    )
    @action(detail=False, methods=["get"], url_path="dashboard")
    def dashboard(self, request):
        return Response(jsonable(dashboard_overview(date_range=request.query_params.get("date_range"))))
