# patients/urls.py

"""
PATIENT URLS

Mounted under /api/patients/. SimpleRouter on the empty prefix, as in activity_logs.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from patients.views import PatientViewSet

router = SimpleRouter()
router.register(r"", PatientViewSet, basename="patients")

urlpatterns = [
    path("", include(router.urls)),
]
