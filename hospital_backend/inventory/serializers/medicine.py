# inventory/serializers/medicine.py
"""
MEDICINE CATALOG SERIALIZERS

medicine_id is assigned by inventory.services.medicine_catalog and is never
accepted from clients. Duplicate checks live in the service.
"""

from rest_framework import serializers

from inventory.models import Medicine


class MedicineSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = Medicine
        fields = [
            "id",
            "medicine_id",
            "name",
            "description",
            "category",
            "strength",
            "manufacturer",
            "is_active",
            "display_name",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "medicine_id", "display_name", "created_at", "updated_at"]


class BulkMedicineSerializer(serializers.Serializer):
    # Rows are validated one by one in the service so that a bad row
    # is reported with its line number instead of failing the request.
    medicines = serializers.ListField(child=serializers.DictField(), allow_empty=False)
