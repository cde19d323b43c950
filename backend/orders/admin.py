from django.contrib import admin
from import_export import fields, resources
from import_export.admin import ExportMixin

from .models import Order


class OrderResource(resources.ModelResource):
    customer = fields.Field(column_name='customer', attribute='get_recipient_email')
    item_count = fields.Field(column_name='item_count', attribute='item_count')

    class Meta:
        model = Order
        fields = (
            'order_reference', 'created_at', 'status', 'payment_status', 'customer',
            'customer_name', 'item_count', 'subtotal', 'discount', 'shipping_method',
            'shipping_cost', 'vat_amount', 'total', 'amount_charged', 'currency',
            'tracking_number', 'stripe_session_id',
        )
        export_order = (
            'order_reference', 'created_at', 'status', 'payment_status', 'customer',
            'customer_name', 'item_count', 'subtotal', 'discount', 'shipping_method',
            'shipping_cost', 'vat_amount', 'total', 'amount_charged', 'currency',
            'tracking_number', 'stripe_session_id',
        )


@admin.register(Order)
class OrderAdmin(ExportMixin, admin.ModelAdmin):
    resource_class = OrderResource
    list_display = ('order_reference', 'email', 'status', 'payment_status', 'total', 'created_at')
    list_filter = ('status', 'payment_status', 'shipping_method')
    search_fields = ('order_reference', 'email', 'stripe_session_id')
    readonly_fields = (
        'order_reference', 'stripe_session_id', 'stripe_payment_intent_id', 'items',
        'subtotal', 'discount', 'shipping_cost', 'vat_amount', 'vat_rate', 'total',
        'amount_charged', 'created_at', 'updated_at',
    )
