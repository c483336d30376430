# inventory/tests/test_api.py

from __future__ import annotations

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from activity_logs.models import ActivityLog
from inventory.models import Batch, BatchMedicine, DiscardRecord, Medicine
from permissions.roles import (
    ROLE_PHARMACIST_DISPENSER,
    ROLE_PHARMACIST_INVENTORY_STAFF,
    ROLE_RECEPTION,
)

from .helpers import batch_payload, line, make_user


class BatchAPITests(TestCase):
    """
    Batch endpoints.

    GUARANTEES:
    - every failure answers with {"error": {"code", "message", ...}}
    - writes need inventory.edit, deletes need inventory.delete
    - responses carry the batch lines and summary
    """

    def setUp(self):
        self.client = APIClient()
        self.pharmacist = make_user()
        self.staff = make_user(email="staff@example.com", role=ROLE_PHARMACIST_INVENTORY_STAFF)
        self.reception = make_user(email="reception@example.com", role=ROLE_RECEPTION)

        self.list_url = reverse("batches-list")
        self.draft_url = reverse("batches-draft")

    def test_create_batch(self):
        self.client.force_authenticate(self.pharmacist)

        response = self.client.post(self.list_url, batch_payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["batch_number"], "BATCH-001")
        self.assertEqual(response.data["overall_price"], "50.00")
        self.assertFalse(response.data["is_draft"])
        self.assertEqual(len(response.data["medicines"]), 1)
        self.assertEqual(response.data["summary"]["batch_status"], "Good")

    def test_price_mismatch_error_shape(self):
        self.client.force_authenticate(self.pharmacist)

        response = self.client.post(self.list_url, batch_payload(overall_price="49.00"), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        error = response.data["error"]
        self.assertEqual(error["code"], "PRICE_MISMATCH")
        self.assertEqual(error["details"], {"computed_total": "50.00", "declared_total": "49.00"})
        self.assertFalse(Batch.objects.exists())

    def test_duplicate_medicine_is_conflict(self):
        self.client.force_authenticate(self.pharmacist)

        payload = batch_payload(medicines=[line(), line(name="Other")], overall_price="100.00")
        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "DUPLICATE_MEDICINE")

    def test_missing_fields_are_validation_errors(self):
        self.client.force_authenticate(self.pharmacist)

        response = self.client.post(self.list_url, {"batch_number": "X"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "VALIDATION_ERROR")
        self.assertIn("medicines", response.data["error"]["details"])

    def test_draft_finalize_flow(self):
        self.client.force_authenticate(self.pharmacist)

        created = self.client.post(self.draft_url, batch_payload(batch_number="BATCH-002"), format="json")
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        self.assertTrue(created.data["is_draft"])

        finalize_url = reverse("batches-finalize", args=[created.data["id"]])
        response = self.client.post(finalize_url, {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["is_draft"])

        again = self.client.post(finalize_url, {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(again.data["error"]["code"], "NOT_DRAFT")

    def test_patch_updates_and_logs(self):
        self.client.force_authenticate(self.pharmacist)
        created = self.client.post(self.list_url, batch_payload(), format="json")
        detail_url = reverse("batches-detail", args=[created.data["id"]])

        response = self.client.patch(detail_url, {"bill_id": "BILL-2"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["bill_id"], "BILL-2")
        self.assertEqual(
            ActivityLog.objects.filter(batch_id=created.data["id"], action=ActivityLog.Action.UPDATED).count(),
            1,
        )

    def test_patch_rejects_blank_attachment(self):
        self.client.force_authenticate(self.pharmacist)
        created = self.client.post(self.list_url, batch_payload(), format="json")
        detail_url = reverse("batches-detail", args=[created.data["id"]])

        response = self.client.patch(detail_url, {"attachments": [""]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "VALIDATION_ERROR")
        self.assertEqual(Batch.objects.get().attachments, [])
        self.assertFalse(
            ActivityLog.objects.filter(batch_id=created.data["id"], action=ActivityLog.Action.UPDATED).exists()
        )

    def test_put_is_not_allowed(self):
        self.client.force_authenticate(self.pharmacist)
        created = self.client.post(self.list_url, batch_payload(), format="json")

        response = self.client.put(reverse("batches-detail", args=[created.data["id"]]), batch_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_list_and_retrieve(self):
        self.client.force_authenticate(self.pharmacist)
        created = self.client.post(self.list_url, batch_payload(), format="json")

        listing = self.client.get(self.list_url, {"search": "BATCH"})
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual(listing.data["pagination"]["total_items"], 1)
        self.assertEqual(listing.data["summary"]["total_value"], "50.00")

        detail = self.client.get(reverse("batches-detail", args=[created.data["id"]]))
        self.assertEqual(detail.status_code, status.HTTP_200_OK)
        self.assertEqual(detail.data["medicines"][0]["medicine_name"], "Paracetamol")

    def test_unknown_batch_is_not_found(self):
        self.client.force_authenticate(self.pharmacist)

        response = self.client.get(reverse("batches-detail", args=["00000000-0000-0000-0000-000000000000"]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "NOT_FOUND")

    def test_delete_needs_delete_capability(self):
        self.client.force_authenticate(self.pharmacist)
        created = self.client.post(self.list_url, batch_payload(), format="json")
        detail_url = reverse("batches-detail", args=[created.data["id"]])

        self.client.force_authenticate(self.staff)
        denied = self.client.delete(detail_url)
        self.assertEqual(denied.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(denied.data["error"]["code"], "PERMISSION_DENIED")

        self.client.force_authenticate(self.pharmacist)
        deleted = self.client.delete(detail_url)
        self.assertEqual(deleted.status_code, status.HTTP_200_OK)
        self.assertEqual(deleted.data["medicines_count"], 1)
        self.assertFalse(Batch.objects.exists())

    def test_reception_cannot_read_or_write(self):
        self.client.force_authenticate(self.reception)

        self.assertEqual(self.client.get(self.list_url).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            self.client.post(self.list_url, batch_payload(), format="json").status_code,
            status.HTTP_403_FORBIDDEN,
        )

    def test_anonymous_is_rejected(self):
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["error"]["code"], "NOT_AUTHENTICATED")


class StockAndExpiredAPITests(TestCase):
    """
    GUARANTEES:
    - fixed stock routes are not swallowed by the medicine-name route
    - the dashboard bundles counts, trends and the top five of each alert list
    - discard needs inventory.discard
    """

    def setUp(self):
        self.client = APIClient()
        self.pharmacist = make_user()
        self.client.force_authenticate(self.pharmacist)

        self.client.post(
            reverse("batches-list"),
            batch_payload(
                medicines=[
                    line(medicine_id=1, quantity=10, expiry_days=-2),
                    line(medicine_id=2, name="Ibuprofen", quantity=2, price="25.00", expiry_days=5, reorder_level=5),
                ],
                overall_price="100.00",
            ),
            format="json",
        )
        self.batch = Batch.objects.get()

    def test_stock_routes(self):
        listing = self.client.get(reverse("stock-list"))
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual(listing.data["pagination"]["total_items"], 2)

        expiring = self.client.get(reverse("stock-expiring-soon"))
        self.assertEqual([g["medicine_name"] for g in expiring.data["results"]], ["Ibuprofen"])

        low = self.client.get(reverse("stock-low-stock"))
        self.assertEqual(low.data["results"][0]["shortage"], 3)

        dashboard = self.client.get(reverse("stock-dashboard"))
        self.assertEqual(dashboard.data["summary"]["inventory_value"], "100.00")

        detail = self.client.get(reverse("stock-detail", args=["ibuprofen"]))
        self.assertEqual(detail.status_code, status.HTTP_200_OK)
        self.assertEqual(detail.data["total_quantity"], 2)

    def test_dashboard_payload(self):
        response = self.client.get(reverse("stock-dashboard"), {"date_range": "this_week"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(data["date_range"], "this_week")
        self.assertEqual(data["summary"]["inventory_value"], "100.00")
        self.assertEqual([b["label"] for b in data["stock_trends"]][-1], "Day 7")
        self.assertEqual(data["stock_trends"][-1]["stock"], 12)
        self.assertEqual(data["top_stocked_medicines"][0], {"medicine": "Paracetamol", "stock": 10})
        self.assertEqual(
            data["low_stock_items"],
            [{"medicine_name": "Ibuprofen", "batch_number": "BATCH-001", "current": 2, "required": 5}],
        )
        self.assertEqual(data["expiring_soon_items"][0]["days_left"], 5)
        self.assertEqual(data["already_expired_items"][0]["medicine_name"], "Paracetamol")
        self.assertEqual(data["already_expired_items"][0]["days_expired"], 2)

    def test_bad_dashboard_range(self):
        response = self.client.get(reverse("stock-dashboard"), {"date_range": "this_year"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["details"], {"field": "date_range"})

    def test_bad_days_param(self):
        response = self.client.get(reverse("stock-expiring-soon"), {"days": "-1"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_discard_and_history(self):
        response = self.client.post(
            reverse("expired-discard"),
            {"batch_id": str(self.batch.id), "medicine_id": 1, "quantity": 4},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["remaining_quantity"], 6)
        self.assertEqual(response.data["batch"]["overall_price"], "80.00")

        history = self.client.get(reverse("expired-history"), {"search": "paracetamol"})
        self.assertEqual(history.data["summary"]["total_quantity_discarded"], 4)
        self.assertEqual(history.data["results"][0]["total_value"], "20.00")

    def test_discard_of_unexpired_line(self):
        response = self.client.post(
            reverse("expired-discard"),
            {"batch_id": str(self.batch.id), "medicine_id": 2, "quantity": 1},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "NOT_EXPIRED")
        self.assertFalse(DiscardRecord.objects.exists())

    def test_discard_all(self):
        response = self.client.post(
            reverse("expired-discard-all"),
            {"medicine_id": 1, "medicine_name": "Paracetamol"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total_quantity_discarded"], 10)
        self.assertFalse(BatchMedicine.objects.filter(medicine_id=1).exists())

        nothing = self.client.post(
            reverse("expired-discard-all"),
            {"medicine_id": 1, "medicine_name": "Paracetamol"},
            format="json",
        )
        self.assertEqual(nothing.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(nothing.data["error"]["code"], "NOTHING_TO_DISCARD")

    def test_expired_report(self):
        response = self.client.get(reverse("expired-list"))
        self.assertEqual(response.data["summary"]["total_quantity"], 10)

    def test_staff_cannot_discard(self):
        self.client.force_authenticate(make_user(email="staff@example.com", role=ROLE_PHARMACIST_INVENTORY_STAFF))

        response = self.client.post(
            reverse("expired-discard"),
            {"batch_id": str(self.batch.id), "medicine_id": 1, "quantity": 1},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class MedicineAPITests(TestCase):
    """
    GUARANTEES:
    - catalog writes need medicines.edit
    - dispensers can read the catalog
    """

    def setUp(self):
        self.client = APIClient()
        self.pharmacist = make_user()
        self.dispenser = make_user(email="dispenser@example.com", role=ROLE_PHARMACIST_DISPENSER)

    def test_crud(self):
        self.client.force_authenticate(self.pharmacist)

        created = self.client.post(
            reverse("medicines-list"),
            {"name": "Paracetamol", "strength": "500mg", "category": "Tablet"},
            format="json",
        )
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        self.assertEqual(created.data["medicine_id"], 1)

        duplicate = self.client.post(
            reverse("medicines-list"),
            {"name": "paracetamol", "strength": "500MG", "category": "tablet"},
            format="json",
        )
        self.assertEqual(duplicate.status_code, status.HTTP_409_CONFLICT)

        detail_url = reverse("medicines-detail", args=[1])
        patched = self.client.patch(detail_url, {"manufacturer": "GSK"}, format="json")
        self.assertEqual(patched.data["manufacturer"], "GSK")

        listing = self.client.get(reverse("medicines-list"), {"search": "para"})
        self.assertEqual(listing.data["pagination"]["total_items"], 1)

        self.assertEqual(self.client.delete(detail_url).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(detail_url).status_code, status.HTTP_404_NOT_FOUND)

    def test_bulk_and_dropdown(self):
        self.client.force_authenticate(self.pharmacist)

        response = self.client.post(
            reverse("medicines-bulk"),
            {
                "medicines": [
                    {"name": "Zinc", "strength": "20mg", "category": "Tablet", "manufacturer": "Getz"},
                    {"name": "Zinc", "strength": "20mg", "category": "Tablet", "manufacturer": "Getz"},
                ]
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["counts"]["created"], 1)
        self.assertEqual(response.data["counts"]["duplicates"], 1)

        self.client.force_authenticate(self.dispenser)
        dropdown = self.client.get(reverse("medicines-dropdown"))
        self.assertEqual(dropdown.status_code, status.HTTP_200_OK)
        self.assertEqual(dropdown.data["results"][0]["name"], "Zinc 20mg Tablet Getz")

    def test_dispenser_cannot_write(self):
        self.client.force_authenticate(self.dispenser)

        response = self.client.post(reverse("medicines-list"), {"name": "X"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Medicine.objects.exists())
