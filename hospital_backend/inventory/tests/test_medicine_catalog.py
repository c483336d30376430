# inventory/tests/test_medicine_catalog.py

from django.test import TestCase

from inventory.models import Medicine
from inventory.services.exceptions import DuplicateMedicineError, InvalidInputError, NotFoundError
from inventory.services.medicine_catalog import (
    bulk_create_medicines,
    create_medicine,
    delete_medicine,
    dropdown,
    next_medicine_id,
    update_medicine,
)


def medicine_data(name="Paracetamol", strength="500mg", category="Tablet", **extra):
    data = {
        "name": name,
        "strength": strength,
        "category": category,
        "manufacturer": "GSK",
        "description": "Pain relief",
    }
    data.update(extra)
    return data


class MedicineCatalogTests(TestCase):
    """
    Medicine catalog.

    GUARANTEES:
    - medicine ids are assigned sequentially from 1
    - (name, strength, category) is unique, ignoring case
    """

    def test_ids_are_sequential(self):
        self.assertEqual(next_medicine_id(), 1)

        first = create_medicine(data=medicine_data())
        second = create_medicine(data=medicine_data(name="Ibuprofen"))

        self.assertEqual((first.medicine_id, second.medicine_id), (1, 2))

    def test_duplicate_ignores_case(self):
        create_medicine(data=medicine_data())

        with self.assertRaises(DuplicateMedicineError):
            create_medicine(data=medicine_data(name="PARACETAMOL", strength="500MG", category="tablet"))

        # different strength is a different medicine
        create_medicine(data=medicine_data(strength="250mg"))
        self.assertEqual(Medicine.objects.count(), 2)

    def test_name_required(self):
        with self.assertRaises(InvalidInputError):
            create_medicine(data=medicine_data(name="  "))

    def test_update_and_rename_conflict(self):
        create_medicine(data=medicine_data())
        other = create_medicine(data=medicine_data(name="Ibuprofen"))

        updated = update_medicine(medicine_id=other.medicine_id, data={"manufacturer": "Abbott"})
        self.assertEqual(updated.manufacturer, "Abbott")

        with self.assertRaises(DuplicateMedicineError):
            update_medicine(medicine_id=other.medicine_id, data={"name": "paracetamol"})

    def test_delete(self):
        medicine = create_medicine(data=medicine_data())

        delete_medicine(medicine_id=medicine.medicine_id)
        self.assertFalse(Medicine.objects.exists())

        with self.assertRaises(NotFoundError):
            delete_medicine(medicine_id=medicine.medicine_id)

    def test_dropdown_pins_first_medicine(self):
        create_medicine(data=medicine_data(name="Zinc"))
        create_medicine(data=medicine_data(name="Amoxicillin"))
        create_medicine(data=medicine_data(name="Inactive", is_active=False))

        options = dropdown()

        self.assertEqual([o["medicine_id"] for o in options], [1, 2])
        self.assertEqual(options[0]["name"], "Zinc 500mg Tablet GSK Pain relief")


class BulkImportTests(TestCase):
    """
    GUARANTEES:
    - one bad row never blocks the others
    - duplicates inside the upload point at the first occurrence
    """

    def test_mixed_upload(self):
        create_medicine(data=medicine_data(name="Existing"))

        result = bulk_create_medicines(
            rows=[
                medicine_data(name="Cetirizine"),
                medicine_data(name="Cetirizine"),
                medicine_data(name="Existing"),
                medicine_data(name="Bad-Name!"),
                medicine_data(name="Loratadine", manufacturer=""),
            ]
        )

        self.assertEqual([r["line_number"] for r in result.created], [1])
        self.assertEqual([r["line_number"] for r in result.duplicates], [2, 3])
        self.assertIn("line 1", result.duplicates[0]["error"])
        self.assertEqual([r["line_number"] for r in result.failed], [4, 5])
        self.assertIn("Manufacturer is required", result.failed[1]["error"])
        self.assertEqual(result.counts, {"total": 5, "created": 1, "duplicates": 2, "failed": 2})

    def test_length_limits(self):
        result = bulk_create_medicines(rows=[medicine_data(category="VeryLongCategory")])
        self.assertIn("Category cannot exceed 10 characters", result.failed[0]["error"])

    def test_empty_upload_rejected(self):
        with self.assertRaises(InvalidInputError):
            bulk_create_medicines(rows=[])
