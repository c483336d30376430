# patients/filters.py

"""
PATIENT FILTERS (django-filter)

search matches name, email, CNIC or contact number.
"""

import django_filters
from django.db.models import Q

from patients.models import Patient


class PatientFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    gender = django_filters.ChoiceFilter(field_name="gender", choices=Patient.Gender.choices)
    cnic = django_filters.CharFilter(field_name="cnic", lookup_expr="exact")
    registered_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    registered_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    ordering = django_filters.OrderingFilter(
        fields=(
            ("name", "name"),
            ("date_of_birth", "date_of_birth"),
            ("created_at", "created_at"),
        )
    )

    class Meta:
        model = Patient
        fields = ["gender", "cnic"]

    def filter_search(self, queryset, name, value):
        term = (value or "").strip()
        if not term:
            return queryset
        return queryset.filter(
            Q(name__icontains=term)
            | Q(email__icontains=term)
            | Q(cnic__icontains=term)
            | Q(contact_number__icontains=term)
        )
