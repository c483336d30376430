# inventory/serializers/batch.py
"""
BATCH SERIALIZERS

Input serializers check request SHAPE only (types, required keys).
Business rules (price reconciliation, duplicate medicine ids, draft state)
are enforced by inventory.services.batch_store.

Output:
- BatchSerializer renders a batch with its ordered lines and, when the view
  passes one in context, the computed per-batch summary.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from inventory.models import Batch, BatchMedicine
from inventory.services.money import jsonable


# ---------------- OUTPUT ----------------
class BatchMedicineSerializer(serializers.ModelSerializer):
    class Meta:
        model = BatchMedicine
        fields = [
            "medicine_id",
            "medicine_name",
            "quantity",
            "price",
            "total_amount",
            "expiry_date",
            "date_of_purchase",
            "reorder_level",
        ]
        read_only_fields = fields


class BatchSerializer(serializers.ModelSerializer):
    medicines = BatchMedicineSerializer(many=True, read_only=True)
    created_by = serializers.SerializerMethodField()
    summary = serializers.SerializerMethodField()

    class Meta:
        model = Batch
        fields = [
            "id",
            "batch_number",
            "bill_id",
            "overall_price",
            "miscellaneous_amount",
            "is_draft",
            "finalized_at",
            "draft_note",
            "attachments",
            "medicines",
            "created_by",
            "created_at",
            "updated_at",
            "summary",
        ]
        read_only_fields = fields

    def get_created_by(self, obj):
        user = obj.created_by
        if not user:
            return None
        return {"id": str(user.id), "name": user.display_name}

    def get_summary(self, obj):
        summary = self.context.get("summary")
        return jsonable(summary) if summary is not None else None


# ---------------- INPUT ----------------
class BatchMedicineInputSerializer(serializers.Serializer):
    medicine_id = serializers.IntegerField(min_value=1)
    medicine_name = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    expiry_date = serializers.DateField()
    date_of_purchase = serializers.DateField()
    reorder_level = serializers.IntegerField(min_value=0)


class BatchCreateSerializer(serializers.Serializer):
    batch_number = serializers.CharField(max_length=128)
    bill_id = serializers.CharField(max_length=128, required=False, allow_blank=True)
    medicines = BatchMedicineInputSerializer(many=True, allow_empty=False)
    overall_price = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0"))
    miscellaneous_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0"), required=False
    )
    attachments = serializers.ListField(
        child=serializers.CharField(), required=False, allow_empty=True
    )
    draft_note = serializers.CharField(required=False, allow_blank=True)


class BatchUpdateSerializer(BatchCreateSerializer):
    """
    PATCH payload. Only keys present in the request reach the service.
    """

    is_draft = serializers.BooleanField(required=False)
