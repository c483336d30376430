# inventory/tests/test_discard.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from activity_logs.models import ActivityLog
from inventory.models import BatchMedicine, DiscardRecord
from inventory.services.batch_store import create_batch, create_draft_batch
from inventory.services.discard import (
    DISCARD_ALL_REASON,
    discard_all_for_medicine,
    discard_history,
    discard_line,
)
from inventory.services.exceptions import (
    InsufficientQuantityError,
    InvalidInputError,
    NotExpiredError,
    NotFoundError,
    NothingToDiscardError,
)

from .helpers import batch_payload, line, make_user


class DiscardLineTests(TestCase):
    """
    Single-line discard.

    GUARANTEES:
    - only expired stock can be discarded
    - quantity never goes below zero; a line at zero is removed
    - overall price is recomputed from the remaining lines + misc
    - every discard leaves an immutable DiscardRecord and no activity log
    """

    def setUp(self):
        self.user = make_user()
        self.batch = create_batch(
            data=batch_payload(medicines=[line(quantity=10, expiry_days=-1)]),
            user=self.user,
        )

    def test_partial_discard_then_oversized_request(self):
        """Discarding 4 of 10 leaves 6; asking for 10 more is refused."""
        outcome = discard_line(batch_id=self.batch.id, medicine_id=1, quantity=4, user=self.user)

        self.assertEqual(outcome.record.quantity_discarded, 4)
        self.assertEqual(outcome.record.total_value, Decimal("20.00"))
        self.assertEqual(outcome.record.reason, "Expired")
        self.assertEqual(outcome.record.discarded_by, self.user)
        self.assertEqual(outcome.remaining_quantity, 6)
        self.assertFalse(outcome.line_removed)
        self.assertEqual(outcome.new_overall_price, Decimal("30.00"))

        self.assertEqual(BatchMedicine.objects.get(batch=self.batch).quantity, 6)

        with self.assertRaises(InsufficientQuantityError) as ctx:
            discard_line(batch_id=self.batch.id, medicine_id=1, quantity=10, user=self.user)

        self.assertIn("Only 6 units available", str(ctx.exception))
        self.assertEqual(BatchMedicine.objects.get(batch=self.batch).quantity, 6)
        self.assertEqual(DiscardRecord.objects.count(), 1)

    def test_discarding_last_units_removes_line_and_reprices(self):
        batch = create_batch(
            data=batch_payload(
                batch_number="BATCH-003",
                medicines=[
                    line(medicine_id=1, quantity=1, price="5.00", expiry_days=-3),
                    line(medicine_id=2, name="Ibuprofen", quantity=2, price="10.00"),
                ],
                overall_price="28.00",
                miscellaneous_amount="3.00",
            ),
            user=self.user,
        )

        outcome = discard_line(batch_id=batch.id, medicine_id=1, quantity=1, user=self.user)

        self.assertTrue(outcome.line_removed)
        self.assertEqual(outcome.new_overall_price, Decimal("23.00"))
        self.assertEqual(list(batch.medicines.values_list("medicine_id", flat=True)), [2])

        batch.refresh_from_db()
        self.assertEqual(batch.overall_price, Decimal("23.00"))

    def test_discard_does_not_write_activity_log(self):
        discard_line(batch_id=self.batch.id, medicine_id=1, quantity=1, reason="Damaged box", user=self.user)

        self.assertEqual(
            list(ActivityLog.objects.filter(batch_id=self.batch.id).values_list("action", flat=True)),
            [ActivityLog.Action.CREATED],
        )
        self.assertEqual(DiscardRecord.objects.get().reason, "Damaged box")

    def test_stock_expiring_today_is_not_discardable(self):
        batch = create_batch(
            data=batch_payload(batch_number="BATCH-004", medicines=[line(expiry_days=0)]),
            user=self.user,
        )

        with self.assertRaises(NotExpiredError):
            discard_line(batch_id=batch.id, medicine_id=1, quantity=1, user=self.user)

    def test_draft_batch_is_not_discardable(self):
        draft = create_draft_batch(
            data=batch_payload(batch_number="BATCH-005", medicines=[line(expiry_days=-5)]),
            user=self.user,
        )

        with self.assertRaises(InvalidInputError):
            discard_line(batch_id=draft.id, medicine_id=1, quantity=1, user=self.user)

    def test_unknown_line_and_bad_quantity(self):
        with self.assertRaises(NotFoundError):
            discard_line(batch_id=self.batch.id, medicine_id=99, quantity=1)

        with self.assertRaises(InvalidInputError):
            discard_line(batch_id=self.batch.id, medicine_id=1, quantity=0)

    def test_discard_records_are_immutable(self):
        outcome = discard_line(batch_id=self.batch.id, medicine_id=1, quantity=1)

        with self.assertRaises(ValidationError):
            outcome.record.delete()


class DiscardAllTests(TestCase):
    """
    Discard one medicine across batches.

    GUARANTEES:
    - only finalized batches with an expired line of that medicine are touched
    - medicine name matches case-insensitively
    - the summary counts exactly what was discarded
    """

    def setUp(self):
        self.user = make_user()
        self.old = create_batch(
            data=batch_payload(batch_number="OLD-1", medicines=[line(quantity=4, expiry_days=-20)], overall_price="20.00"),
            user=self.user,
        )
        self.older = create_batch(
            data=batch_payload(batch_number="OLD-2", medicines=[line(quantity=6, expiry_days=-40)], overall_price="30.00"),
            user=self.user,
        )
        self.fresh = create_batch(
            data=batch_payload(batch_number="FRESH-1", medicines=[line(quantity=8, expiry_days=90)], overall_price="40.00"),
            user=self.user,
        )

    def test_discard_all_expired_batches(self):
        summary = discard_all_for_medicine(medicine_id=1, medicine_name="paracetamol", user=self.user)

        self.assertEqual(summary.total_batches_affected, 2)
        self.assertEqual(summary.total_quantity_discarded, 10)
        self.assertEqual(summary.total_value_discarded, Decimal("50.00"))
        self.assertEqual(summary.average_discard_value_per_batch, Decimal("25.00"))
        self.assertEqual(summary.failed_batches, [])

        # oldest expiry first
        self.assertEqual([d["batch_number"] for d in summary.batch_details], ["OLD-2", "OLD-1"])

        self.assertEqual(BatchMedicine.objects.filter(batch__in=[self.old, self.older]).count(), 0)
        self.assertEqual(BatchMedicine.objects.get(batch=self.fresh).quantity, 8)
        self.assertEqual(
            set(DiscardRecord.objects.values_list("reason", flat=True)),
            {DISCARD_ALL_REASON},
        )

        self.old.refresh_from_db()
        self.assertEqual(self.old.overall_price, Decimal("0.00"))

    def test_nothing_to_discard(self):
        with self.assertRaises(NothingToDiscardError):
            discard_all_for_medicine(medicine_id=2, medicine_name="Ibuprofen", user=self.user)

    def test_name_must_match(self):
        with self.assertRaises(NothingToDiscardError):
            discard_all_for_medicine(medicine_id=1, medicine_name="Aspirin", user=self.user)

    def test_history_totals(self):
        discard_all_for_medicine(medicine_id=1, medicine_name="Paracetamol", user=self.user)

        page = discard_history()

        self.assertEqual(page.summary["total_records"], 2)
        self.assertEqual(page.summary["total_quantity_discarded"], 10)
        self.assertEqual(page.summary["total_value_discarded"], Decimal("50.00"))
        self.assertEqual(page.pagination["total_items"], 2)
