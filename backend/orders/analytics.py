# orders/analytics.py
"""
Dashboard reports. Revenue and product figures come from the frozen order
snapshots, never from the live catalogue, so repricing a product does not
rewrite history. Cancelled orders are left out of money figures.
"""

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import Count, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from .models import Order
from .pricing import ZERO, to_decimal

TIME_RANGES = {'7d': 7, '30d': 30, '90d': 90, 'all': None}
DEFAULT_TIME_RANGE = '30d'


def range_start(time_range):
    days = TIME_RANGES[time_range]
    if days is None:
        return None
    return timezone.now() - timedelta(days=days)


def _in_range(queryset, field, time_range):
    start = range_start(time_range)
    if start is None:
        return queryset
    return queryset.filter(**{f'{field}__gte': start})


def _billable_orders():
    return Order.objects.exclude(status='cancelled')


def revenue_series(time_range=DEFAULT_TIME_RANGE):
    """One point per day with orders: ``{date, revenue, orders}``, oldest first."""
    rows = (
        _in_range(_billable_orders(), 'created_at', time_range)
        .annotate(day=TruncDate('created_at'))
        .values('day')
        .annotate(revenue=Sum('total'), orders=Count('id'))
        .order_by('day')
    )
    return [{
        'date': row['day'].isoformat(),
        'revenue': str(row['revenue']),
        'orders': row['orders'],
    } for row in rows]


def _item_revenue(item):
    if item.get('total_price'):
        return to_decimal(item['total_price'])
    return to_decimal(item.get('unit_price')) * int(item.get('quantity') or 0)


def top_products(limit=10):
    """Best sellers by revenue, summed over the item snapshots of every order."""
    totals = {}
    for items in _billable_orders().values_list('items', flat=True):
        for item in items or []:
            key = (item.get('product_code') or item.get('name') or 'Unknown product', item.get('variant_name') or '')
            entry = totals.setdefault(key, {
                'product_code': item.get('product_code', ''),
                'name': item.get('name') or 'Unknown product',
                'variant_name': item.get('variant_name', ''),
                'quantity': 0,
                'revenue': ZERO,
            })
            entry['quantity'] += int(item.get('quantity') or 0)
            entry['revenue'] += _item_revenue(item)

    ranked = sorted(totals.values(), key=lambda entry: entry['revenue'], reverse=True)[:limit]
    return [{**entry, 'revenue': str(entry['revenue'])} for entry in ranked]


def orders_by_status():
    counts = dict(Order.objects.values_list('status').annotate(count=Count('id')).order_by())
    total = sum(counts.values())
    return [{
        'status': status,
        'count': counts.get(status, 0),
        'percentage': float(round(Decimal(counts.get(status, 0)) * 100 / total, 1)) if total else 0.0,
    } for status, _ in Order.ORDER_STATUS]


def customer_acquisition(time_range=DEFAULT_TIME_RANGE):
    customers = get_user_model().objects.filter(is_staff=False)
    rows = (
        _in_range(customers, 'date_joined', time_range)
        .annotate(day=TruncDate('date_joined'))
        .values('day')
        .annotate(customers=Count('id'))
        .order_by('day')
    )
    return [{'date': row['day'].isoformat(), 'customers': row['customers']} for row in rows]
