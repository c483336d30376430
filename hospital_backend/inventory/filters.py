# inventory/filters.py

"""
INVENTORY FILTERS (django-filter)

- MedicineFilter       catalog list: search, category, strength, is_active, ordering
- DiscardRecordFilter  discard history: search, discarded_by, date range, ordering
"""

import django_filters
from django.db.models import Q

from inventory.models import DiscardRecord, Medicine


class MedicineFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    strength = django_filters.CharFilter(field_name="strength", lookup_expr="iexact")
    is_active = django_filters.BooleanFilter(field_name="is_active")

    ordering = django_filters.OrderingFilter(
        fields=(
            ("medicine_id", "medicine_id"),
            ("name", "name"),
            ("category", "category"),
            ("created_at", "created_at"),
        )
    )

    class Meta:
        model = Medicine
        fields = ["category", "strength", "is_active"]

    def filter_search(self, queryset, name, value):
        term = (value or "").strip()
        if not term:
            return queryset
        return queryset.filter(
            Q(name__icontains=term)
            | Q(description__icontains=term)
            | Q(manufacturer__icontains=term)
        )


class DiscardRecordFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    discarded_by = django_filters.UUIDFilter(field_name="discarded_by_id")
    medicine_id = django_filters.NumberFilter(field_name="medicine_id")
    date_from = django_filters.DateFilter(field_name="discarded_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="discarded_at", lookup_expr="date__lte")

    ordering = django_filters.OrderingFilter(
        fields=(
            ("discarded_at", "discarded_at"),
            ("total_value", "total_value"),
            ("quantity_discarded", "quantity_discarded"),
            ("medicine_name", "medicine_name"),
        )
    )

    class Meta:
        model = DiscardRecord
        fields = ["discarded_by", "medicine_id"]

    def filter_search(self, queryset, name, value):
        term = (value or "").strip()
        if not term:
            return queryset
        return queryset.filter(
            Q(medicine_name__icontains=term)
            | Q(batch_number__icontains=term)
            | Q(reason__icontains=term)
        )
