# orders/serializers.py
import re
from collections.abc import Mapping

from rest_framework import serializers

from catalog.models import Product
from .addresses import Address
from .models import Order
from .shipping import get_shipping_option_by_id


CAMEL_HUMP = re.compile(r"(?<=[a-z0-9])([A-Z])")


def underscore_keys(data, aliases=None):
    """``{"shippingMethodId": ..}`` -> ``{"shipping_method_id": ..}``, one level deep."""
    if not isinstance(data, Mapping) or hasattr(data, "getlist"):
        # form-encoded bodies keep their own field names
        return data
    aliases = aliases or {}
    renamed = {}
    for key, value in data.items():
        name = aliases.get(key) or CAMEL_HUMP.sub(r"_\1", key).lower()
        renamed.setdefault(name, value)
    return renamed


class CamelCaseInputMixin:
    """Accept the storefront's camelCase keys alongside snake_case ones."""
    key_aliases = {}

    def to_internal_value(self, data):
        return super().to_internal_value(underscore_keys(data, self.key_aliases))


def advisory_amount():
    return serializers.DecimalField(max_digits=None, decimal_places=None, required=False, allow_null=True)


class AddressSerializer(CamelCaseInputMixin, serializers.Serializer):
    key_aliases = {'zipCode': 'postal_code'}

    full_name = serializers.CharField(max_length=80)
    address = serializers.CharField(max_length=100)
    address2 = serializers.CharField(max_length=80, required=False, allow_blank=True, default='')
    city = serializers.CharField(max_length=50)
    state = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    postal_code = serializers.CharField(max_length=12)
    country = serializers.CharField(max_length=2, min_length=2)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')

    def to_internal_value(self, data):
        return Address(**super().to_internal_value(data))


class CartItemSerializer(CamelCaseInputMixin, serializers.Serializer):
    """A cart line as sent by the client; prices come from the catalogue."""
    product_id = serializers.IntegerField()
    variant_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)

    def validate(self, attrs):
        product = (
            Product.objects
            .prefetch_related('pricing_tiers', 'variants__quantity_options')
            .filter(pk=attrs['product_id'], available=True)
            .first()
        )
        if product is None:
            raise serializers.ValidationError({"product_id": "Product not found."})

        variant = None
        if attrs.get('variant_id') is not None:
            variant = next((v for v in product.variants.all() if v.pk == attrs['variant_id']), None)
            if variant is None or not variant.available:
                raise serializers.ValidationError({"variant_id": "Variant not found for this product."})

        attrs['line'] = product.build_line(attrs['quantity'], variant)
        return attrs


class CheckoutRequestSerializer(CamelCaseInputMixin, serializers.Serializer):
    items = serializers.ListField(child=CartItemSerializer(), required=False, default=list)
    shipping_address = AddressSerializer(required=False, allow_null=True)
    billing_address = AddressSerializer(required=False, allow_null=True)
    shipping_address_id = serializers.IntegerField(required=False, allow_null=True)
    shipping_method_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    # display hints from the client; never charged
    shipping_cost = advisory_amount()
    vat_amount = advisory_amount()
    subtotal = advisory_amount()
    total = advisory_amount()

    def validate_shipping_method_id(self, value):
        if not value:
            return None
        option = get_shipping_option_by_id(value)
        if option is None:
            raise serializers.ValidationError("Unknown shipping method.")
        return option

    @property
    def lines(self):
        return [item['line'] for item in self.validated_data['items']]

    @property
    def client_totals(self):
        return {
            key: self.validated_data.get(key)
            for key in ('subtotal', 'shipping_cost', 'vat_amount', 'total')
        }


class ConfirmOrderSerializer(CamelCaseInputMixin, serializers.Serializer):
    session_id = serializers.CharField(max_length=255)


class OrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = [
            'id',
            'order_reference',
            'email',
            'customer_name',
            'customer_phone',
            'items',
            'shipping_address',
            'billing_address',
            'subtotal',
            'discount',
            'shipping_cost',
            'shipping_method',
            'vat_amount',
            'vat_rate',
            'total',
            'amount_charged',
            'currency',
            'status',
            'payment_status',
            'stripe_session_id',
            'stripe_payment_intent_id',
            'tracking_number',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class OrderSummarySerializer(serializers.ModelSerializer):
    item_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Order
        fields = ['order_reference', 'status', 'total', 'currency', 'item_count', 'created_at']


class AdminOrderSerializer(OrderSerializer):
    user_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['user_id', 'notes', 'email_sent', 'shipping_email_sent']
        read_only_fields = fields


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[choice for choice, _ in Order.ORDER_STATUS])
    tracking_number = serializers.CharField(max_length=255, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
