import django_filters

from .models import Sale


class SaleFilter(django_filters.FilterSet):
    """?date_from=YYYY-MM-DD&date_to=YYYY-MM-DD, both inclusive, in local time."""
    date_from = django_filters.DateFilter(field_name='sale_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='sale_date', lookup_expr='date__lte')

    class Meta:
        model = Sale
        fields = ['payment_mode', 'customer', 'date_from', 'date_to']
