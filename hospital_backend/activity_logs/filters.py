# activity_logs/filters.py

import django_filters

from activity_logs.models import ActivityLog


class ActivityLogFilter(django_filters.FilterSet):
    batch_number = django_filters.CharFilter(field_name="batch_number", lookup_expr="icontains")
    action = django_filters.ChoiceFilter(choices=ActivityLog.Action.choices)
    owner = django_filters.UUIDFilter(field_name="owner_id")
    date_from = django_filters.DateFilter(field_name="timestamp", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="timestamp", lookup_expr="date__lte")

    class Meta:
        model = ActivityLog
        fields = ["batch_number", "action", "owner"]
