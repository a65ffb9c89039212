import django_filters
from .models import SupplyOffer


class SupplyOfferFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=SupplyOffer.STATUS_CHOICES)
    product = django_filters.NumberFilter(field_name='product_id')
    demand_date = django_filters.DateFilter(field_name='demand_date')

    class Meta:
        model = SupplyOffer
        fields = ['status', 'product', 'demand_date']
