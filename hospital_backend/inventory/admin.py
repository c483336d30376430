# inventory/admin.py
"""
=====================================================
PATH: inventory/admin.py
=====================================================

Admin rules:
- Batches and their lines are READ-ONLY here. Every write must go through
  inventory.services.batch_store so the price invariant and the activity
  log stay intact.
- Discard records are immutable receipts.
- The medicine catalog is editable; medicine_id is assigned by the service
  and therefore read-only.
"""

from __future__ import annotations

from django.contrib import admin

from inventory.models import Batch, BatchMedicine, DiscardRecord, Medicine
from inventory.services.medicine_catalog import next_medicine_id


class ReadOnlyAdminMixin:
    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class BatchMedicineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = BatchMedicine
    extra = 0
    fields = (
        "medicine_id",
        "medicine_name",
        "quantity",
        "price",
        "total_amount",
        "expiry_date",
        "date_of_purchase",
        "reorder_level",
    )
    readonly_fields = fields


@admin.register(Batch)
class BatchAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "batch_number",
        "bill_id",
        "overall_price",
        "miscellaneous_amount",
        "is_draft",
        "finalized_at",
        "created_by",
        "created_at",
    )
    list_filter = ("is_draft",)
    search_fields = ("batch_number", "bill_id", "medicines__medicine_name")
    inlines = [BatchMedicineInline]


@admin.register(DiscardRecord)
class DiscardRecordAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "discarded_at",
        "medicine_name",
        "batch_number",
        "quantity_discarded",
        "total_value",
        "reason",
        "discarded_by",
    )
    search_fields = ("medicine_name", "batch_number", "reason")
    date_hierarchy = "discarded_at"


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ("medicine_id", "name", "strength", "category", "manufacturer", "is_active")
    list_filter = ("is_active", "category")
    search_fields = ("name", "description", "manufacturer")
    readonly_fields = ("medicine_id", "created_at", "updated_at")

    def save_model(self, request, obj, form, change):
        if not change:
            obj.medicine_id = next_medicine_id()
        super().save_model(request, obj, form, change)
