from django.db.models import Q
from django_filters import rest_framework as filters

from .models import Order


class OrderFilter(filters.FilterSet):
    status = filters.ChoiceFilter(choices=Order.ORDER_STATUS)
    created_after = filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lte')
    search = filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = Order
        fields = ['status', 'payment_status']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(order_reference__icontains=value)
            | Q(email__icontains=value)
            | Q(customer_name__icontains=value)
            | Q(stripe_session_id__iexact=value)
        )
