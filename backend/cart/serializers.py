from rest_framework import serializers

from orders.pricing import ZERO
from orders.serializers import CartItemSerializer


class CartUpdateSerializer(serializers.Serializer):
    items = serializers.ListField(child=CartItemSerializer(), allow_empty=True)

    @property
    def lines(self):
        return [item['line'] for item in self.validated_data['items']]


def cart_payload(lines, updated_at=None):
    subtotal = sum((line.total_price for line in lines), ZERO)
    discount = sum((line.list_price - line.total_price for line in lines), ZERO)
    return {
        'items': [line.as_dict() for line in lines],
        'item_count': sum(line.quantity for line in lines),
        'subtotal': str(subtotal),
        'discount': str(max(discount, ZERO)),
        'updated_at': updated_at,
    }
