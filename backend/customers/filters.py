from django.db.models import Q
from django_filters import rest_framework as filters

from .models import Customer


class CustomerFilter(filters.FilterSet):
    search = filters.CharFilter(method='filter_search', label='Search')
    ordering = filters.OrderingFilter(
        fields=(
            ('date_joined', 'created_at'),
            ('email', 'email'),
            ('total_spent', 'total_spent'),
            ('order_count', 'order_count'),
        ),
    )

    class Meta:
        model = Customer
        fields = ['is_active']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(email__icontains=value)
            | Q(full_name__icontains=value)
            | Q(phone__icontains=value)
            | Q(company_name__icontains=value)
        )
