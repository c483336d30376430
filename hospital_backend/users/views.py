# users/views.py
"""
USER VIEWS

Login/refresh are the SimpleJWT library views (wired in backend/urls.py).
This module only exposes the authenticated profile.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import MeSerializer


class MeView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = MeSerializer

    @extend_schema(
        responses={200: MeSerializer},
        description="Get current authenticated user profile and capabilities",
    )
    def get(self, request):
        return Response(MeSerializer(request.user).data)
