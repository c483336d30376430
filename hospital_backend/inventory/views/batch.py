"""
======================================================
PATH: inventory/views/batch.py
======================================================
BATCH VIEWSET

Purpose:
- HTTP boundary for inventory.services.batch_store (writes) and
  inventory.services.stock_queries (reads).
- Serializers check payload shape; services own every business rule.

RULES:
- POST   /batches/                -> finalized batch
- POST   /batches/draft/          -> draft batch
- POST   /batches/{id}/finalize/  -> draft -> finalized
- PATCH  /batches/{id}/           -> partial update (PUT is not offered)
- DELETE /batches/{id}/           -> hard delete (inventory.delete)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.serializers import BatchCreateSerializer, BatchSerializer, BatchUpdateSerializer
from inventory.services.batch_store import (
    create_batch,
    create_draft_batch,
    delete_batch,
    finalize_batch,
    update_batch,
)
from inventory.services.money import jsonable
from inventory.services.stock_queries import get_batch, list_batches, summarize_batch
from permissions.roles import (
    CAP_INVENTORY_DELETE,
    CAP_INVENTORY_EDIT,
    CAP_INVENTORY_VIEW,
    HasCapability,
)

TRUTHY = ("1", "true", "yes")
FALSY = ("0", "false", "no")


def _batch_payload(batch_id) -> dict:
    batch = get_batch(batch_id)
    return BatchSerializer(batch, context={"summary": summarize_batch(batch)}).data


class BatchViewSet(viewsets.GenericViewSet):
    """
    Purchase batches with their medicine lines.
    """

    serializer_class = BatchSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        # reset per request
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in {"list", "retrieve"}:
            self.required_capability = CAP_INVENTORY_VIEW
            return [IsAuthenticated(), HasCapability()]

        if self.action in {"create", "draft", "finalize", "partial_update"}:
            self.required_capability = CAP_INVENTORY_EDIT
            return [IsAuthenticated(), HasCapability()]

        if self.action == "destroy":
            self.required_capability = CAP_INVENTORY_DELETE
            return [IsAuthenticated(), HasCapability()]

        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.action in {"create", "draft"}:
            return BatchCreateSerializer
        if self.action == "partial_update":
            return BatchUpdateSerializer
        return BatchSerializer

    # -------------------------------------------------
    # READ
    # -------------------------------------------------
    @extend_schema(
        parameters=[
            OpenApiParameter("search", OpenApiTypes.STR, description="batch number, bill id or medicine name"),
            OpenApiParameter("is_draft", OpenApiTypes.BOOL),
            OpenApiParameter("sort_by", OpenApiTypes.STR),
            OpenApiParameter("sort_order", OpenApiTypes.STR, enum=["asc", "desc"]),
            OpenApiParameter("page", OpenApiTypes.INT),
            OpenApiParameter("limit", OpenApiTypes.INT),
        ],
        responses={200: BatchSerializer(many=True)},
    )
    def list(self, request):
        params = request.query_params

        raw_draft = (params.get("is_draft") or "").strip().lower()
        is_draft = True if raw_draft in TRUTHY else False if raw_draft in FALSY else None

        page = list_batches(
            search=params.get("search"),
            is_draft=is_draft,
            sort_by=params.get("sort_by"),
            sort_order=params.get("sort_order"),
            page=params.get("page"),
            limit=params.get("limit"),
        )
        results = [
            BatchSerializer(batch, context={"summary": summary}).data
            for batch, summary in page.items
        ]
        return Response(jsonable(page.as_dict(results)))

    def retrieve(self, request, pk=None):
        return Response(_batch_payload(pk))

    # -------------------------------------------------
    # CREATE
    # -------------------------------------------------
    @extend_schema(request=BatchCreateSerializer, responses={201: BatchSerializer})
    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        batch = create_batch(data=serializer.validated_data, user=request.user)
        return Response(_batch_payload(batch.id), status=status.HTTP_201_CREATED)

    @extend_schema(request=BatchCreateSerializer, responses={201: BatchSerializer})
    @action(detail=False, methods=["post"], url_path="draft")
    def draft(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        batch = create_draft_batch(data=serializer.validated_data, user=request.user)
        return Response(_batch_payload(batch.id), status=status.HTTP_201_CREATED)

    # -------------------------------------------------
    # FINALIZE / UPDATE
    # -------------------------------------------------
    @extend_schema(request=None, responses={200: BatchSerializer})
    @action(detail=True, methods=["post"], url_path="finalize")
    def finalize(self, request, pk=None):
        batch = finalize_batch(batch_id=pk, user=request.user)
        return Response(_batch_payload(batch.id))

    @extend_schema(request=BatchUpdateSerializer, responses={200: BatchSerializer})
    def partial_update(self, request, pk=None):
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        batch = update_batch(batch_id=pk, changes=serializer.validated_data, user=request.user)
        return Response(_batch_payload(batch.id))

    # -------------------------------------------------
    # DELETE
    # -------------------------------------------------
    def destroy(self, request, pk=None):
        deleted = delete_batch(batch_id=pk, user=request.user)
        return Response(
            jsonable(
                {
                    "message": "Batch deleted successfully",
                    "batch_id": deleted.batch_id,
                    "batch_number": deleted.batch_number,
                    "medicines_count": deleted.medicines_count,
                    "overall_price": deleted.overall_price,
                }
            )
        )
