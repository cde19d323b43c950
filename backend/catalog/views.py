from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.pricing import calculate_discount_percentage, get_active_pricing_tier
from .filters import ProductFilter
from .models import Category, Product
from .serializers import (
    CategorySerializer,
    PriceQuoteSerializer,
    PricingTierSerializer,
    ProductListSerializer,
    ProductSerializer,
)


class StandardResultsSetPagination(PageNumberPagination):
    page_size = 12
    page_size_query_param = 'page_size'
    max_page_size = 100


class CategoryListView(generics.ListAPIView):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer


class ProductListView(generics.ListAPIView):
    queryset = Product.objects.select_related('category')
    serializer_class = ProductListSerializer
    pagination_class = StandardResultsSetPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = ProductFilter


class ProductDetailView(generics.RetrieveAPIView):
    queryset = (
        Product.objects
        .select_related('category')
        .prefetch_related('variants__quantity_options', 'pricing_tiers')
    )
    serializer_class = ProductSerializer
    lookup_field = 'slug'


class ProductPriceQuoteView(APIView):
    """Unit and line price for a quantity, as checkout will charge it."""

    def get(self, request, slug):
        product = get_object_or_404(Product.objects.prefetch_related('pricing_tiers'), slug=slug)

        serializer = PriceQuoteSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        quantity = serializer.validated_data['quantity']

        variant = None
        variant_id = serializer.validated_data.get('variant')
        if variant_id is not None:
            variant = product.variants.filter(pk=variant_id).first()
            if variant is None:
                return Response({"detail": "Variant not found."}, status=status.HTTP_404_NOT_FOUND)

        line = product.build_line(quantity, variant)
        tier = get_active_pricing_tier(quantity, list(product.pricing_tiers.all()))

        return Response({
            "product_id": line.product_id,
            "variant_id": line.variant_id or None,
            "quantity": quantity,
            "unit_price": str(line.unit_price),
            "total_price": str(line.total_price),
            "active_tier": PricingTierSerializer(tier).data if tier else None,
            "discount_percentage": str(calculate_discount_percentage(tier)) if tier else "0",
        }, status=status.HTTP_200_OK)
