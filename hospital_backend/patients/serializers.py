# patients/serializers.py

from rest_framework import serializers

from patients.models import Patient


# ---------------- OUTPUT ----------------
class PatientSerializer(serializers.ModelSerializer):
    registered_by = serializers.SerializerMethodField()

    class Meta:
        model = Patient
        fields = [
            "id",
            "name",
            "email",
            "gender",
            "date_of_birth",
            "contact_number",
            "address",
            "cnic",
            "chief_complaint",
            "medical_history",
            "registered_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_registered_by(self, obj):
        user = obj.registered_by
        if not user:
            return None
        return {"id": str(user.id), "name": user.display_name}


# ---------------- INPUT ----------------
class PatientInputSerializer(serializers.Serializer):
    # Shape only. Required fields, formats and uniqueness are checked in
    # patients.services.registry so both endpoints report them the same way.
    name = serializers.CharField(required=False, allow_blank=True)
    email = serializers.CharField(required=False, allow_blank=True)
    gender = serializers.CharField(required=False, allow_blank=True)
    date_of_birth = serializers.DateField(required=False)
    contact_number = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    cnic = serializers.CharField(required=False, allow_blank=True)
    chief_complaint = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    medical_history = serializers.CharField(required=False, allow_blank=True)
