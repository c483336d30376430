"""
======================================================
PATH: patients/views.py
======================================================
PATIENT VIEWSET

- GET    /patients/        search + paginate (django-filter)
- POST   /patients/        register
- GET    /patients/{id}/
- PATCH  /patients/{id}/   PUT behaves the same: only sent fields change
- DELETE /patients/{id}/

Writes go through patients.services.registry.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiTypes, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from patients.filters import PatientFilter
from patients.models import Patient
from patients.serializers import PatientInputSerializer, PatientSerializer
from patients.services.registry import (
    delete_patient,
    get_patient,
    list_patients,
    register_patient,
    update_patient,
)
from permissions.roles import (
    CAP_PATIENTS_DELETE,
    CAP_PATIENTS_EDIT,
    CAP_PATIENTS_VIEW,
    HasCapability,
)

WRITE_CAPABILITIES = {
    "create": CAP_PATIENTS_EDIT,
    "update": CAP_PATIENTS_EDIT,
    "partial_update": CAP_PATIENTS_EDIT,
    "destroy": CAP_PATIENTS_DELETE,
}


class PatientViewSet(viewsets.GenericViewSet):
    serializer_class = PatientSerializer
    filterset_class = PatientFilter
    permission_classes = [IsAuthenticated]

    required_capability = None

    def get_permissions(self):
        self.required_capability = WRITE_CAPABILITIES.get(self.action, CAP_PATIENTS_VIEW)
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        return Patient.objects.select_related("registered_by").order_by("-created_at")

    def get_serializer_class(self):
        if self.action in WRITE_CAPABILITIES:
            return PatientInputSerializer
        return PatientSerializer

    @extend_schema(
        parameters=[
            OpenApiParameter("page", OpenApiTypes.INT),
            OpenApiParameter("limit", OpenApiTypes.INT),
        ],
        responses={200: PatientSerializer(many=True)},
    )
    def list(self, request):
        page = list_patients(
            queryset=self.filter_queryset(self.get_queryset()),
            page=request.query_params.get("page"),
            limit=request.query_params.get("limit"),
        )
        return Response(page.as_dict(PatientSerializer(page.items, many=True).data))

    @extend_schema(responses={200: PatientSerializer})
    def retrieve(self, request, pk=None):
        return Response(PatientSerializer(get_patient(pk)).data)

    @extend_schema(request=PatientInputSerializer, responses={201: PatientSerializer})
    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        patient = register_patient(data=serializer.validated_data, user=request.user)
        return Response(PatientSerializer(patient).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=PatientInputSerializer, responses={200: PatientSerializer})
    def update(self, request, pk=None, partial=False):
        # PUT and PATCH both change only the fields sent
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        patient = update_patient(patient_id=pk, data=serializer.validated_data)
        return Response(PatientSerializer(patient).data)

    @extend_schema(request=PatientInputSerializer, responses={200: PatientSerializer})
    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        delete_patient(patient_id=pk)
        return Response({"message": "Patient deleted successfully", "patient_id": str(pk)})
