# inventory/tests/test_batch_store.py

from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from activity_logs.models import ActivityLog
from inventory.models import Batch, BatchMedicine
from inventory.services.batch_store import (
    create_batch,
    create_draft_batch,
    delete_batch,
    finalize_batch,
    update_batch,
)
from inventory.services.exceptions import (
    DuplicateBatchError,
    DuplicateMedicineError,
    IllegalDraftReversionError,
    InvalidInputError,
    NotDraftError,
    NotFoundError,
    PriceMismatchError,
)

from .helpers import batch_payload, line, make_user


def actions_for(batch_id):
    return list(ActivityLog.objects.filter(batch_id=batch_id).order_by("id").values_list("action", flat=True))


class BatchCreateTests(TestCase):
    """
    Batch creation.

    GUARANTEES:
    - line totals + miscellaneous amount must equal overall price
    - a rejected create leaves no batch, line or log behind
    - medicine ids are unique within one batch
    - batch numbers are unique
    """

    def setUp(self):
        self.user = make_user()

    def test_create_reconciled_batch(self):
        """10 x 5.00 with no misc reconciles with 50.00."""
        batch = create_batch(data=batch_payload(), user=self.user)

        self.assertFalse(batch.is_draft)
        self.assertIsNotNone(batch.finalized_at)
        self.assertEqual(batch.overall_price, Decimal("50.00"))
        self.assertEqual(batch.created_by, self.user)

        medicine = batch.medicines.get()
        self.assertEqual(medicine.total_amount, Decimal("50.00"))
        self.assertEqual(actions_for(batch.id), [ActivityLog.Action.CREATED])

        log = ActivityLog.objects.get(batch_id=batch.id)
        self.assertEqual(log.details, "Batch created and finalized with 1 medicines")
        self.assertEqual(log.owner, self.user)

    def test_price_mismatch_cites_both_amounts(self):
        """Declared 49.00 against computed 50.00 is rejected and both figures are reported."""
        with self.assertRaises(PriceMismatchError) as ctx:
            create_batch(data=batch_payload(overall_price="49.00"), user=self.user)

        message = str(ctx.exception)
        self.assertIn("50.00", message)
        self.assertIn("49.00", message)
        self.assertEqual(ctx.exception.computed_total, Decimal("50.00"))
        self.assertEqual(ctx.exception.declared_total, Decimal("49.00"))

        self.assertEqual(Batch.objects.count(), 0)
        self.assertEqual(BatchMedicine.objects.count(), 0)
        self.assertEqual(ActivityLog.objects.count(), 0)

    def test_miscellaneous_amount_is_part_of_the_total(self):
        batch = create_batch(
            data=batch_payload(overall_price="57.50", miscellaneous_amount="7.50"),
            user=self.user,
        )
        self.assertEqual(batch.miscellaneous_amount, Decimal("7.50"))

    def test_rounding_within_tolerance_is_accepted(self):
        batch = create_batch(data=batch_payload(overall_price="50.01"), user=self.user)
        self.assertEqual(batch.overall_price, Decimal("50.01"))

    def test_duplicate_medicine_id_rejected_before_persistence(self):
        medicines = [line(medicine_id=7), line(medicine_id=7, name="Paracetamol B")]

        with self.assertRaises(DuplicateMedicineError) as ctx:
            create_batch(data=batch_payload(medicines=medicines, overall_price="100.00"), user=self.user)

        self.assertEqual(ctx.exception.details["medicine_ids"], [7])
        self.assertEqual(Batch.objects.count(), 0)
        self.assertEqual(ActivityLog.objects.count(), 0)

    def test_duplicate_batch_number_rejected(self):
        create_batch(data=batch_payload(), user=self.user)

        with self.assertRaises(DuplicateBatchError):
            create_batch(data=batch_payload(), user=self.user)

        self.assertEqual(Batch.objects.count(), 1)
        self.assertEqual(ActivityLog.objects.count(), 1)

    def test_empty_medicines_rejected(self):
        with self.assertRaises(InvalidInputError):
            create_batch(data=batch_payload(medicines=[], overall_price="0.00"), user=self.user)

    def test_non_positive_quantity_rejected(self):
        with self.assertRaises(InvalidInputError):
            create_batch(data=batch_payload(medicines=[line(quantity=0)]), user=self.user)

    def test_overlong_batch_number_rejected(self):
        with self.assertRaises(InvalidInputError) as ctx:
            create_batch(data=batch_payload(batch_number="B" * 200), user=self.user)

        self.assertEqual(ctx.exception.details, {"field": "batch_number"})
        self.assertIn("at most 128 characters", str(ctx.exception))
        self.assertFalse(Batch.objects.exists())

    def test_overlong_bill_id_rejected(self):
        with self.assertRaises(InvalidInputError) as ctx:
            create_batch(data=batch_payload(bill_id="X" * 129), user=self.user)

        self.assertEqual(ctx.exception.details, {"field": "bill_id"})
        self.assertFalse(Batch.objects.exists())

    def test_audit_failure_does_not_revert_the_batch(self):
        """A failed log write is reported, the batch stays."""
        with mock.patch.object(ActivityLog.objects, "create", side_effect=DatabaseError("down")):
            with self.assertLogs("activity_logs.services.recorder", level="ERROR"):
                batch = create_batch(data=batch_payload(), user=self.user)

        self.assertTrue(Batch.objects.filter(pk=batch.pk).exists())
        self.assertEqual(ActivityLog.objects.count(), 0)


class DraftLifecycleTests(TestCase):
    """
    Draft lifecycle.

    GUARANTEES:
    - creating a draft logs exactly one CREATED entry
    - editing a draft logs nothing
    - finalizing logs exactly one FINALIZED entry
    - a finalized batch never returns to draft
    """

    def setUp(self):
        self.user = make_user()

    def test_draft_then_finalize_logs_created_and_finalized(self):
        draft = create_draft_batch(
            data=batch_payload(batch_number="BATCH-002", draft_note="waiting for invoice"),
            user=self.user,
        )
        self.assertTrue(draft.is_draft)
        self.assertIsNone(draft.finalized_at)

        finalized = finalize_batch(batch_id=draft.id, user=self.user)

        self.assertFalse(finalized.is_draft)
        self.assertIsNotNone(finalized.finalized_at)
        self.assertEqual(
            actions_for(draft.id),
            [ActivityLog.Action.CREATED, ActivityLog.Action.FINALIZED],
        )

        created = ActivityLog.objects.filter(batch_id=draft.id).order_by("id").first()
        self.assertEqual(created.details, "Batch created with 1 medicines")

        final_log = ActivityLog.objects.get(batch_id=draft.id, action=ActivityLog.Action.FINALIZED)
        self.assertIn("PKR 50.00", final_log.details)
        self.assertEqual(final_log.changes, [{"field": "is_draft", "old_value": True, "new_value": False}])

    def test_draft_edits_are_not_logged(self):
        draft = create_draft_batch(data=batch_payload(batch_number="BATCH-002"), user=self.user)

        update_batch(batch_id=draft.id, changes={"draft_note": "checked shelf"}, user=self.user)
        update_batch(
            batch_id=draft.id,
            changes={"medicines": [line(quantity=12)], "overall_price": "60.00"},
            user=self.user,
        )

        self.assertEqual(actions_for(draft.id), [ActivityLog.Action.CREATED])
        draft.refresh_from_db()
        self.assertEqual(draft.overall_price, Decimal("60.00"))

    def test_update_with_is_draft_false_finalizes(self):
        draft = create_draft_batch(data=batch_payload(batch_number="BATCH-002"), user=self.user)

        batch = update_batch(batch_id=draft.id, changes={"is_draft": False}, user=self.user)

        self.assertFalse(batch.is_draft)
        self.assertEqual(
            actions_for(draft.id),
            [ActivityLog.Action.CREATED, ActivityLog.Action.FINALIZED],
        )

    def test_finalize_twice_is_rejected(self):
        batch = create_batch(data=batch_payload(), user=self.user)

        with self.assertRaises(NotDraftError):
            finalize_batch(batch_id=batch.id, user=self.user)

        self.assertEqual(actions_for(batch.id), [ActivityLog.Action.CREATED])

    def test_finalized_batch_cannot_return_to_draft(self):
        batch = create_batch(data=batch_payload(), user=self.user)

        with self.assertRaises(IllegalDraftReversionError):
            update_batch(batch_id=batch.id, changes={"is_draft": True}, user=self.user)

        batch.refresh_from_db()
        self.assertFalse(batch.is_draft)

    def test_finalize_unknown_batch(self):
        with self.assertRaises(NotFoundError):
            finalize_batch(batch_id="not-a-uuid", user=self.user)


class BatchUpdateTests(TestCase):
    """
    Updates of finalized batches.

    GUARANTEES:
    - a no-op update writes zero log entries
    - one UPDATED entry per distinct change
    - the price invariant is re-checked against stored values
    - a rejected update leaves the batch and its log untouched
    """

    def setUp(self):
        self.user = make_user()
        self.batch = create_batch(data=batch_payload(), user=self.user)

    def updated_logs(self):
        return list(
            ActivityLog.objects.filter(batch_id=self.batch.id, action=ActivityLog.Action.UPDATED).order_by("id")
        )

    def test_no_op_update_writes_nothing(self):
        update_batch(
            batch_id=self.batch.id,
            changes={"bill_id": "BILL-1", "medicines": [line()], "overall_price": "50.00"},
            user=self.user,
        )
        self.assertEqual(self.updated_logs(), [])

    def test_misc_and_overall_change_produce_two_entries_in_order(self):
        update_batch(
            batch_id=self.batch.id,
            changes={"miscellaneous_amount": "5.00", "overall_price": "55.00"},
            user=self.user,
        )

        logs = self.updated_logs()
        self.assertEqual([log.changes[0]["field"] for log in logs], ["miscellaneous_amount", "overall_price"])
        self.assertEqual(
            logs[0].details,
            "Batch updated: miscellaneous amount updated (PKR 0.00 → PKR 5.00)",
        )
        self.assertEqual(logs[1].changes[0]["new_value"], "55.00")

    def test_misc_change_checked_against_existing_overall_price(self):
        with self.assertRaises(PriceMismatchError) as ctx:
            update_batch(batch_id=self.batch.id, changes={"miscellaneous_amount": "5.00"}, user=self.user)

        self.assertIn("existing overall price", str(ctx.exception))
        self.batch.refresh_from_db()
        self.assertEqual(self.batch.miscellaneous_amount, Decimal("0.00"))
        self.assertEqual(self.updated_logs(), [])

    def test_medicines_only_change_checked_against_existing_overall_price(self):
        with self.assertRaises(PriceMismatchError) as ctx:
            update_batch(batch_id=self.batch.id, changes={"medicines": [line(quantity=12)]}, user=self.user)

        message = str(ctx.exception)
        self.assertIn("Total medicines price (60.00)", message)
        self.assertIn("existing overall price (50.00)", message)
        self.assertEqual(ctx.exception.details, {"computed_total": "60.00", "declared_total": "50.00"})

        self.assertEqual(BatchMedicine.objects.get(batch=self.batch).quantity, 10)
        self.batch.refresh_from_db()
        self.assertEqual(self.batch.overall_price, Decimal("50.00"))
        self.assertEqual(self.updated_logs(), [])

    def test_overall_price_only_change_checked_against_stored_lines(self):
        with self.assertRaises(PriceMismatchError) as ctx:
            update_batch(batch_id=self.batch.id, changes={"overall_price": "70.00"}, user=self.user)

        message = str(ctx.exception)
        self.assertIn("Total medicines price (50.00)", message)
        self.assertIn("must equal overall price (70.00)", message)
        self.assertEqual(ctx.exception.details, {"computed_total": "50.00", "declared_total": "70.00"})

        self.batch.refresh_from_db()
        self.assertEqual(self.batch.overall_price, Decimal("50.00"))
        self.assertEqual(self.updated_logs(), [])

    def test_attachments_must_be_non_empty_strings(self):
        for bad in ([""], ["  "], "https://files.example.com/bill.pdf", [42]):
            with self.subTest(attachments=bad):
                with self.assertRaises(InvalidInputError) as ctx:
                    update_batch(batch_id=self.batch.id, changes={"attachments": bad}, user=self.user)
                self.assertEqual(ctx.exception.details, {"field": "attachments"})

        self.batch.refresh_from_db()
        self.assertEqual(self.batch.attachments, [])
        self.assertEqual(self.updated_logs(), [])

    def test_line_quantity_change_is_one_medicine_entry(self):
        update_batch(
            batch_id=self.batch.id,
            changes={"medicines": [line(quantity=12)], "overall_price": "60.00"},
            user=self.user,
        )

        logs = self.updated_logs()
        self.assertEqual(len(logs), 2)

        medicine_log = logs[1]
        self.assertEqual(
            [c["field"] for c in medicine_log.changes],
            ["medicines.1.quantity", "medicines.1.total_amount"],
        )
        self.assertIn("Quantity: 10 → 12 units (+2 units)", medicine_log.details)

    def test_added_and_removed_lines(self):
        update_batch(
            batch_id=self.batch.id,
            changes={
                "medicines": [line(medicine_id=2, name="Ibuprofen", quantity=4, price="12.50")],
                "overall_price": "50.00",
            },
            user=self.user,
        )

        fields = [log.changes[0]["field"] for log in self.updated_logs()]
        self.assertEqual(fields, ["medicine_added", "medicine_removed"])

    def test_batch_number_rename_checks_uniqueness(self):
        create_batch(data=batch_payload(batch_number="BATCH-009"), user=self.user)

        with self.assertRaises(DuplicateBatchError):
            update_batch(batch_id=self.batch.id, changes={"batch_number": "BATCH-009"}, user=self.user)

    def test_batch_number_rename_is_logged(self):
        update_batch(batch_id=self.batch.id, changes={"batch_number": "BATCH-100"}, user=self.user)

        log = self.updated_logs()[0]
        self.assertEqual(log.batch_number, "BATCH-100")
        self.assertEqual(log.changes, [{"field": "batch_number", "old_value": "BATCH-001", "new_value": "BATCH-100"}])


class BatchDeleteTests(TestCase):
    """
    GUARANTEES:
    - delete removes the batch and its lines
    - the DELETED log entry outlives the batch
    """

    def test_delete_keeps_history(self):
        user = make_user()
        batch = create_batch(data=batch_payload(), user=user)

        result = delete_batch(batch_id=batch.id, user=user)

        self.assertEqual(result.medicines_count, 1)
        self.assertFalse(Batch.objects.filter(pk=batch.id).exists())
        self.assertEqual(BatchMedicine.objects.count(), 0)
        self.assertEqual(
            actions_for(batch.id),
            [ActivityLog.Action.CREATED, ActivityLog.Action.DELETED],
        )

    def test_delete_unknown_batch(self):
        with self.assertRaises(NotFoundError):
            delete_batch(batch_id="00000000-0000-0000-0000-000000000000")
