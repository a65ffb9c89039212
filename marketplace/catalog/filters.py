import django_filters
from django.db.models import Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """
    Catalog filter used by the public product list.
    Supports free-text search across name, description and category.
    """
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    min_price = django_filters.NumberFilter(field_name='base_price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='base_price', lookup_expr='lte')
    bulk_discount = django_filters.BooleanFilter(method='filter_bulk_discount', label='Has bulk discount')

    class Meta:
        model = Product
        fields = ['search', 'category', 'min_price', 'max_price', 'bulk_discount']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(description__icontains=value) |
            Q(category__icontains=value)
        )

    def filter_bulk_discount(self, queryset, name, value):
        with_discount = Q(bulk_discount_threshold__gt=0, bulk_discount_percentage__gt=0)
        if value:
            return queryset.filter(with_discount)
        return queryset.exclude(with_discount)
