# ============================= PARKING/FILTERS.PY =============================
import django_filters
from .models import ParkingSpot


class ParkingSpotFilter(django_filters.FilterSet):
    """Filtering for parking spot listings"""

    price_min = django_filters.NumberFilter(
        field_name='price_per_hour',
        lookup_expr='gte',
        label='Minimum Price Per Hour'
    )
    price_max = django_filters.NumberFilter(
        field_name='price_per_hour',
        lookup_expr='lte',
        label='Maximum Price Per Hour'
    )
    rating_min = django_filters.NumberFilter(
        field_name='rating',
        lookup_expr='gte',
        label='Minimum Rating'
    )
    has_availability = django_filters.BooleanFilter(
        method='filter_has_availability',
        label='Has Free Spots'
    )

    class Meta:
        model = ParkingSpot
        fields = {
            'owner': ['exact'],
            'address': ['icontains'],
            'created_at': ['gte', 'lte'],
        }

    def filter_has_availability(self, queryset, name, value):
        if value:
            return queryset.filter(available_spots__gt=0)
        return queryset.filter(available_spots=0)
