# activity_logs/admin.py

"""
Activity logs are append-only audit facts: visible in admin, never editable.
"""

from django.contrib import admin

from activity_logs.models import ActivityLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "batch_number", "action", "owner", "details")
    list_filter = ("action",)
    search_fields = ("batch_number", "details")
    date_hierarchy = "timestamp"
    readonly_fields = ("batch_id", "batch_number", "action", "details", "changes", "owner", "timestamp")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
