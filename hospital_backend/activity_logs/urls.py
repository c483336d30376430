# activity_logs/urls.py

"""
ACTIVITY LOG URLS

Mounted under /api/activity-logs/

SimpleRouter: the viewset sits on the empty prefix, where a DefaultRouter
api-root view would shadow the list route.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from activity_logs.views import ActivityLogViewSet

router = SimpleRouter()
router.register(r"", ActivityLogViewSet, basename="activity-logs")

urlpatterns = [
    path("", include(router.urls)),
]
