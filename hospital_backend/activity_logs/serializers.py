# activity_logs/serializers.py

from rest_framework import serializers

from activity_logs.models import ActivityLog


# ---------------- LOG OUTPUT ----------------
class ActivityLogSerializer(serializers.ModelSerializer):
    """
    Read-only rendering of one audit entry.
    """

    owner = serializers.SerializerMethodField()

    class Meta:
        model = ActivityLog
        fields = [
            "id",
            "batch_id",
            "batch_number",
            "action",
            "details",
            "changes",
            "owner",
            "timestamp",
        ]
        read_only_fields = fields

    def get_owner(self, obj):
        user = obj.owner
        if not user:
            return None
        return {"id": str(user.id), "name": user.display_name, "email": user.email}
