from django.db.models import Q
from django_filters import rest_framework as filters

from .models import Product


class ProductFilter(filters.FilterSet):
    category = filters.CharFilter(field_name='category__slug', lookup_expr='iexact')
    available = filters.BooleanFilter()
    search = filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = Product
        fields = ['category', 'available']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(description__icontains=value) | Q(product_code__iexact=value)
        )
