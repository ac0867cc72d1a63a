"""FilterSet definitions for properties search and listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Property


class PropertyFilterSet(django_filters.FilterSet):
    """FilterSet for Property with common filters used in list and search."""

    city = django_filters.CharFilter(field_name="city", lookup_expr="icontains")
    country = django_filters.CharFilter(field_name="country", lookup_expr="iexact")
    property_type = django_filters.ChoiceFilter(choices=Property.PropertyType.choices)
    status = django_filters.ChoiceFilter(choices=Property.Status.choices)

    price_min = django_filters.NumberFilter(method="filter_price_min")
    price_max = django_filters.NumberFilter(method="filter_price_max")
    guests = django_filters.NumberFilter(method="filter_guests")

    class Meta:
        model = Property
        fields = [
            "city",
            "country",
            "property_type",
            "status",
        ]

    def filter_price_min(self, queryset, name, value):  # type: ignore
        return queryset.filter(room_types__available=True, room_types__base_price__gte=value).distinct()

    def filter_price_max(self, queryset, name, value):  # type: ignore
        return queryset.filter(room_types__available=True, room_types__base_price__lte=value).distinct()

    def filter_guests(self, queryset, name, value):  # type: ignore
        return queryset.filter(room_types__available=True, room_types__max_occupancy__gte=value).distinct()
