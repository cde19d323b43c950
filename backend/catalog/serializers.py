from rest_framework import serializers

from .models import Category, PricingTier, Product, ProductVariant, QuantityOption


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description']


class PricingTierSerializer(serializers.ModelSerializer):
    class Meta:
        model = PricingTier
        fields = ['min_quantity', 'max_quantity', 'discount', 'label']


class QuantityOptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuantityOption
        fields = ['label', 'quantity', 'unit', 'price_per_unit', 'is_active']


class ProductVariantSerializer(serializers.ModelSerializer):
    quantity_options = QuantityOptionSerializer(many=True, read_only=True)

    class Meta:
        model = ProductVariant
        fields = ['id', 'name', 'sku', 'price_adjustment', 'available', 'quantity_options']


class ProductListSerializer(serializers.ModelSerializer):
    category = serializers.StringRelatedField()
    category_slug = serializers.SlugRelatedField(source='category', read_only=True, slug_field='slug')

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'product_code', 'base_price', 'image', 'image_alt', 'category', 'category_slug', 'available']


class ProductSerializer(serializers.ModelSerializer):
    category = serializers.StringRelatedField()
    category_slug = serializers.SlugRelatedField(source='category', read_only=True, slug_field='slug')
    variants = ProductVariantSerializer(many=True, read_only=True)
    pricing_tiers = PricingTierSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'product_code', 'description', 'base_price',
            'image', 'image_alt', 'delivery', 'category', 'category_slug',
            'available', 'variants', 'pricing_tiers', 'created_at', 'updated_at',
        ]


class PriceQuoteSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    variant = serializers.IntegerField(required=False)
