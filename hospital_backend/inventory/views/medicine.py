"""
======================================================
PATH: inventory/views/medicine.py
======================================================
MEDICINE CATALOG VIEWSET

Catalog rows are looked up by their integer medicine_id, the same key batch
lines carry. Writes go through inventory.services.medicine_catalog.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventory.filters import MedicineFilter
from inventory.models import Medicine
from inventory.serializers import BulkMedicineSerializer, MedicineSerializer
from inventory.services.exceptions import NotFoundError
from inventory.services.medicine_catalog import (
    bulk_create_medicines,
    create_medicine,
    delete_medicine,
    dropdown,
    update_medicine,
)
from inventory.services.pagination import paginate
from permissions.roles import (
    CAP_INVENTORY_VIEW,
    CAP_MEDICINES_EDIT,
    CAP_MEDICINES_VIEW,
    HasAnyCapability,
    HasCapability,
)


class MedicineViewSet(viewsets.GenericViewSet):
    serializer_class = MedicineSerializer
    filterset_class = MedicineFilter
    permission_classes = [IsAuthenticated]

    lookup_field = "medicine_id"
    lookup_value_regex = r"\d+"

    required_capability = None
    required_any_capabilities = None

    def get_permissions(self):
        self.required_capability = None
        self.required_any_capabilities = None

        if self.action in {"list", "retrieve"}:
            self.required_capability = CAP_MEDICINES_VIEW
            return [IsAuthenticated(), HasCapability()]

        # batch entry screens need the picker too
        if self.action == "dropdown":
            self.required_any_capabilities = {CAP_MEDICINES_VIEW, CAP_INVENTORY_VIEW}
            return [IsAuthenticated(), HasAnyCapability()]

        if self.action in {"create", "update", "partial_update", "destroy", "bulk"}:
            self.required_capability = CAP_MEDICINES_EDIT
            return [IsAuthenticated(), HasCapability()]

        return [IsAuthenticated()]

    def get_queryset(self):
        return Medicine.objects.all().order_by("medicine_id")

    def get_serializer_class(self):
        if self.action == "bulk":
            return BulkMedicineSerializer
        return MedicineSerializer

    # -------------------------------------------------
    # READ
    # -------------------------------------------------
    @extend_schema(
        parameters=[
            OpenApiParameter("page", OpenApiTypes.INT),
            OpenApiParameter("limit", OpenApiTypes.INT),
        ]
    )
    def list(self, request):
        qs = self.filter_queryset(self.get_queryset())

        page = paginate(
            qs,
            page=request.query_params.get("page"),
            limit=request.query_params.get("limit"),
            summary={
                "total_medicines": qs.count(),
                "active_medicines": qs.filter(is_active=True).count(),
            },
        )
        return Response(page.as_dict(MedicineSerializer(page.items, many=True).data))

    def retrieve(self, request, medicine_id=None):
        medicine = Medicine.objects.filter(medicine_id=medicine_id).first()
        if medicine is None:
            raise NotFoundError("Medicine not found", details={"medicine_id": medicine_id})
        return Response(MedicineSerializer(medicine).data)

    @action(detail=False, methods=["get"], url_path="dropdown")
    def dropdown(self, request):
        return Response({"results": dropdown()})

    # -------------------------------------------------
    # WRITE
    # -------------------------------------------------
    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        medicine = create_medicine(data=serializer.validated_data)
        return Response(MedicineSerializer(medicine).data, status=status.HTTP_201_CREATED)

    def update(self, request, medicine_id=None, partial=False):
        serializer = self.get_serializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        medicine = update_medicine(medicine_id=medicine_id, data=serializer.validated_data)
        return Response(MedicineSerializer(medicine).data)

    def partial_update(self, request, medicine_id=None):
        return self.update(request, medicine_id=medicine_id, partial=True)

    def destroy(self, request, medicine_id=None):
        delete_medicine(medicine_id=medicine_id)
        return Response(
            {"message": "Medicine deleted successfully", "medicine_id": int(medicine_id)}
        )

    @extend_schema(request=BulkMedicineSerializer)
    @action(detail=False, methods=["post"], url_path="bulk")
    def bulk(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = bulk_create_medicines(rows=serializer.validated_data["medicines"])
        return Response(
            {
                "message": (
                    f"{len(result.created)} medicines added, {len(result.duplicates)} duplicates "
                    f"skipped, {len(result.failed)} failed"
                ),
                "counts": result.counts,
                "success": result.created,
                "duplicates": result.duplicates,
                "failed": result.failed,
            },
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )
