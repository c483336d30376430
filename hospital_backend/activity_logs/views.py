"""
======================================================
PATH: activity_logs/views.py
======================================================
ACTIVITY LOG VIEWSET (READ-ONLY)

- GET /activity-logs/                              global search (django-filter)
- GET /activity-logs/batch/{batch_id}/             one batch, by id
- GET /activity-logs/batch-number/{batch_number}/  one batch, by number
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from activity_logs.filters import ActivityLogFilter
from activity_logs.models import ActivityLog
from activity_logs.serializers import ActivityLogSerializer
from activity_logs.services.queries import list_batch_logs, list_logs
from permissions.roles import CAP_AUDIT_VIEW, HasCapability

PAGE_PARAMS = [
    OpenApiParameter("page", OpenApiTypes.INT),
    OpenApiParameter("limit", OpenApiTypes.INT),
]


class ActivityLogViewSet(viewsets.GenericViewSet):
    serializer_class = ActivityLogSerializer
    filterset_class = ActivityLogFilter
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_AUDIT_VIEW

    def get_queryset(self):
        return ActivityLog.objects.select_related("owner")

    def _page_response(self, page):
        results = ActivityLogSerializer(page.items, many=True).data
        return Response(page.as_dict(results))

    @extend_schema(parameters=PAGE_PARAMS, responses={200: ActivityLogSerializer(many=True)})
    def list(self, request):
        page = list_logs(
            queryset=self.filter_queryset(self.get_queryset()),
            page=request.query_params.get("page"),
            limit=request.query_params.get("limit"),
        )
        return self._page_response(page)

    @extend_schema(parameters=PAGE_PARAMS, responses={200: ActivityLogSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path=r"batch/(?P<batch_id>[^/.]+)")
    def by_batch(self, request, batch_id=None):
        page = list_batch_logs(
            batch_id=batch_id,
            page=request.query_params.get("page"),
            limit=request.query_params.get("limit"),
        )
        return self._page_response(page)

    @extend_schema(parameters=PAGE_PARAMS, responses={200: ActivityLogSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path=r"batch-number/(?P<batch_number>[^/]+)")
    def by_batch_number(self, request, batch_number=None):
        page = list_batch_logs(
            batch_number=batch_number,
            page=request.query_params.get("page"),
            limit=request.query_params.get("limit"),
        )
        return self._page_response(page)
