import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import CartItemSerializer
from .models import SavedCart
from .serializers import CartUpdateSerializer, cart_payload
from .services import clear_saved_cart, save_cart

logger = logging.getLogger(__name__)


class CartView(APIView):
    """Signed-in customer's cart, priced from the current catalogue."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        cart = SavedCart.objects.filter(user=request.user).first()
        if cart is None:
            return Response(cart_payload([]), status=status.HTTP_200_OK)

        lines = []
        for item in cart.items:
            serializer = CartItemSerializer(data={
                'product_id': item.get('product_id'),
                'variant_id': item.get('variant_id') or None,
                'quantity': item.get('quantity'),
            })
            if serializer.is_valid():
                lines.append(serializer.validated_data['line'])
            else:
                logger.info(f"⏭️  Dropping unavailable item {item.get('product_id')} from cart of {request.user.pk}")

        return Response(cart_payload(lines, cart.updated_at), status=status.HTTP_200_OK)

    def put(self, request):
        serializer = CartUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = save_cart(request.user, serializer.lines)
        return Response(cart_payload(serializer.lines, cart.updated_at), status=status.HTTP_200_OK)

    def delete(self, request):
        clear_saved_cart(request.user.pk)
        return Response({"detail": "Cart cleared."}, status=status.HTTP_200_OK)
