# users/serializers.py

from django.contrib.auth import get_user_model
from rest_framework import serializers

from permissions.roles import capabilities_for

User = get_user_model()


# ---------------- USER OUTPUT ----------------
class MeSerializer(serializers.ModelSerializer):
    """
    Safe user representation for frontend consumption.
    """

    capabilities = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "role",
            "capabilities",
        ]

    def get_capabilities(self, obj) -> list[str]:
        return sorted(capabilities_for(obj))
