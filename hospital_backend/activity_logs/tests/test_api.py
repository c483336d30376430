# activity_logs/tests/test_api.py

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from activity_logs.models import ActivityLog
from activity_logs.services.queries import list_batch_logs
from inventory.services.batch_store import create_batch, create_draft_batch, delete_batch, finalize_batch
from inventory.services.exceptions import NotFoundError
from inventory.tests.helpers import batch_payload, make_user
from permissions.roles import ROLE_PHARMACIST_DISPENSER, ROLE_PHARMACIST_INVENTORY_STAFF


class BatchLogQueryTests(TestCase):
    """
    Activity log reads.

    GUARANTEES:
    - newest entry first
    - history survives batch deletion
    - unknown batches with no history are NOT_FOUND
    """

    def setUp(self):
        self.user = make_user()
        self.draft = create_draft_batch(data=batch_payload(batch_number="BATCH-002"), user=self.user)
        finalize_batch(batch_id=self.draft.id, user=self.user)

    def test_newest_first(self):
        page = list_batch_logs(batch_id=self.draft.id)

        self.assertEqual(
            [log.action for log in page.items],
            [ActivityLog.Action.FINALIZED, ActivityLog.Action.CREATED],
        )
        self.assertEqual(page.summary["total_logs"], 2)
        self.assertEqual(page.summary["actions"][ActivityLog.Action.CREATED], 1)

    def test_by_batch_number(self):
        page = list_batch_logs(batch_number="BATCH-002")
        self.assertEqual(page.pagination["total_items"], 2)

    def test_history_after_delete(self):
        delete_batch(batch_id=self.draft.id, user=self.user)

        page = list_batch_logs(batch_id=self.draft.id)

        self.assertFalse(page.summary["batch_exists"])
        self.assertEqual(page.items[0].action, ActivityLog.Action.DELETED)

    def test_unknown_batch(self):
        with self.assertRaises(NotFoundError):
            list_batch_logs(batch_id="00000000-0000-0000-0000-000000000000")
        with self.assertRaises(NotFoundError):
            list_batch_logs(batch_number="NOPE")

    def test_logs_are_immutable(self):
        log = ActivityLog.objects.first()
        log.details = "tampered"

        with self.assertRaises(ValidationError):
            log.save()


class ActivityLogAPITests(TestCase):
    """
    GUARANTEES:
    - audit.view is required
    - filters narrow the global list
    """

    def setUp(self):
        self.client = APIClient()
        self.user = make_user()
        self.batch = create_batch(data=batch_payload(), user=self.user)
        create_batch(data=batch_payload(batch_number="OTHER-7"), user=self.user)

    def test_batch_endpoints(self):
        self.client.force_authenticate(self.user)

        by_id = self.client.get(reverse("activity-logs-by-batch", kwargs={"batch_id": self.batch.id}))
        self.assertEqual(by_id.status_code, status.HTTP_200_OK)
        self.assertEqual(by_id.data["results"][0]["action"], "CREATED")
        self.assertEqual(by_id.data["results"][0]["owner"]["email"], self.user.email)

        by_number = self.client.get(reverse("activity-logs-by-batch-number", kwargs={"batch_number": "BATCH-001"}))
        self.assertEqual(by_number.data["pagination"]["total_items"], 1)

        missing = self.client.get(reverse("activity-logs-by-batch-number", kwargs={"batch_number": "NOPE"}))
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_global_list_filters(self):
        self.client.force_authenticate(make_user(email="staff@example.com", role=ROLE_PHARMACIST_INVENTORY_STAFF))

        everything = self.client.get(reverse("activity-logs-list"))
        self.assertEqual(everything.data["pagination"]["total_items"], 2)

        filtered = self.client.get(reverse("activity-logs-list"), {"batch_number": "other", "action": "CREATED"})
        self.assertEqual(filtered.data["pagination"]["total_items"], 1)
        self.assertEqual(filtered.data["results"][0]["batch_number"], "OTHER-7")

        bad = self.client.get(reverse("activity-logs-list"), {"action": "EXPLODED"})
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dispenser_is_denied(self):
        self.client.force_authenticate(make_user(email="dispenser@example.com", role=ROLE_PHARMACIST_DISPENSER))

        response = self.client.get(reverse("activity-logs-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
