"""
======================================================
PATH: inventory/views/expired.py
======================================================
EXPIRED STOCK VIEWSET

- GET  /expired/              expired lines grouped by medicine
- POST /expired/discard/      discard part or all of one line
- POST /expired/discard-all/  discard one medicine's expired lines in every batch
- GET  /expired/history/      discard records (django-filter) with totals
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.filters import DiscardRecordFilter
from inventory.models import DiscardRecord
from inventory.serializers import (
    DiscardAllSerializer,
    DiscardLineSerializer,
    DiscardRecordSerializer,
)
from inventory.services.discard import discard_all_for_medicine, discard_history, discard_line
from inventory.services.money import jsonable
from inventory.services.stock_queries import expired_medicines, get_batch, summarize_batch
from permissions.roles import (
    CAP_INVENTORY_DISCARD,
    CAP_INVENTORY_VIEW,
    HasCapability,
)


class ExpiredStockViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in {"list", "history"}:
            self.required_capability = CAP_INVENTORY_VIEW
            return [IsAuthenticated(), HasCapability()]

        if self.action in {"discard", "discard_all"}:
            self.required_capability = CAP_INVENTORY_DISCARD
            return [IsAuthenticated(), HasCapability()]

        return [IsAuthenticated()]

    @extend_schema(
        parameters=[
            OpenApiParameter("search", OpenApiTypes.STR),
            OpenApiParameter("page", OpenApiTypes.INT),
            OpenApiParameter("limit", OpenApiTypes.INT),
        ]
    )
    def list(self, request):
        params = request.query_params
        page = expired_medicines(
            search=params.get("search"),
            page=params.get("page"),
            limit=params.get("limit"),
        )
        return Response(jsonable(page.as_dict()))

    # -------------------------------------------------
    # DISCARD
    # -------------------------------------------------
    @extend_schema(request=DiscardLineSerializer)
    @action(detail=False, methods=["post"], url_path="discard")
    def discard(self, request):
        serializer = DiscardLineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        outcome = discard_line(
            batch_id=v["batch_id"],
            medicine_id=v["medicine_id"],
            quantity=v["quantity"],
            reason=v.get("reason"),
            user=request.user,
        )

        batch = get_batch(outcome.batch_id)
        return Response(
            {
                "message": "Expired stock discarded successfully",
                "discard_record": DiscardRecordSerializer(outcome.record).data,
                "remaining_quantity": outcome.remaining_quantity,
                "line_removed": outcome.line_removed,
                "batch": jsonable(
                    {
                        "id": outcome.batch_id,
                        "batch_number": outcome.batch_number,
                        "overall_price": outcome.new_overall_price,
                        "summary": summarize_batch(batch),
                    }
                ),
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(request=DiscardAllSerializer)
    @action(detail=False, methods=["post"], url_path="discard-all")
    def discard_all(self, request):
        serializer = DiscardAllSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        v = serializer.validated_data

        summary = discard_all_for_medicine(
            medicine_id=v["medicine_id"],
            medicine_name=v["medicine_name"],
            reason=v.get("reason"),
            user=request.user,
        )

        return Response(
            jsonable(
                {
                    "message": (
                        f"Discarded {summary.total_quantity_discarded} units of "
                        f"{summary.medicine_name} from {summary.total_batches_affected} batches"
                    ),
                    "medicine_id": summary.medicine_id,
                    "medicine_name": summary.medicine_name,
                    "total_batches_affected": summary.total_batches_affected,
                    "total_quantity_discarded": summary.total_quantity_discarded,
                    "total_value_discarded": summary.total_value_discarded,
                    "average_discard_value_per_batch": summary.average_discard_value_per_batch,
                    "batch_details": summary.batch_details,
                    "failed_batches": summary.failed_batches,
                }
            )
        )

    # -------------------------------------------------
    # HISTORY
    # -------------------------------------------------
    @extend_schema(
        parameters=[
            OpenApiParameter("search", OpenApiTypes.STR),
            OpenApiParameter("discarded_by", OpenApiTypes.UUID),
            OpenApiParameter("medicine_id", OpenApiTypes.INT),
            OpenApiParameter("date_from", OpenApiTypes.DATE),
            OpenApiParameter("date_to", OpenApiTypes.DATE),
            OpenApiParameter("ordering", OpenApiTypes.STR),
            OpenApiParameter("page", OpenApiTypes.INT),
            OpenApiParameter("limit", OpenApiTypes.INT),
        ],
        responses={200: DiscardRecordSerializer(many=True)},
    )
    @action(detail=False, methods=["get"], url_path="history")
    def history(self, request):
        filterset = DiscardRecordFilter(
            request.query_params,
            queryset=DiscardRecord.objects.select_related("discarded_by"),
            request=request,
        )
        if not filterset.is_valid():
            raise serializers.ValidationError(filterset.errors)

        page = discard_history(
            queryset=filterset.qs,
            page=request.query_params.get("page"),
            limit=request.query_params.get("limit"),
        )
        results = DiscardRecordSerializer(page.items, many=True).data
        return Response(jsonable(page.as_dict(results)))
