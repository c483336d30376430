# inventory/serializers/discard.py

from rest_framework import serializers

from inventory.models import DiscardRecord


class DiscardLineSerializer(serializers.Serializer):
    batch_id = serializers.UUIDField()
    medicine_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class DiscardAllSerializer(serializers.Serializer):
    medicine_id = serializers.IntegerField(min_value=1)
    medicine_name = serializers.CharField(max_length=255)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class DiscardRecordSerializer(serializers.ModelSerializer):
    discarded_by = serializers.SerializerMethodField()

    class Meta:
        model = DiscardRecord
        fields = [
            "id",
            "medicine_id",
            "medicine_name",
            "batch_id",
            "batch_number",
            "quantity_discarded",
            "price_per_unit",
            "total_value",
            "expiry_date",
            "reason",
            "discarded_by",
            "discarded_at",
        ]
        read_only_fields = fields

    def get_discarded_by(self, obj):
        user = obj.discarded_by
        if not user:
            return None
        return {"id": str(user.id), "name": user.display_name}
