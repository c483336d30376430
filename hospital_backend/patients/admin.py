# patients/admin.py

from django.contrib import admin

from patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("name", "cnic", "email", "gender", "date_of_birth", "contact_number", "created_at")
    list_filter = ("gender",)
    search_fields = ("name", "email", "cnic", "contact_number")
    readonly_fields = ("registered_by", "created_at", "updated_at")
    date_hierarchy = "created_at"
