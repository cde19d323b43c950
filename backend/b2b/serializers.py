from rest_framework import serializers

from .models import B2BRequest


class DeliveryAddressSerializer(serializers.Serializer):
    address_line1 = serializers.CharField(min_length=5, max_length=255)
    address_line2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    city = serializers.CharField(min_length=2, max_length=100)
    state = serializers.CharField(min_length=2, max_length=100)
    postal_code = serializers.CharField(min_length=4, max_length=20)
    country = serializers.CharField(min_length=2, max_length=100)


class B2BRequestCreateSerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(min_length=2, max_length=255)
    contact_name = serializers.CharField(min_length=2, max_length=255)
    phone = serializers.CharField(min_length=10, max_length=32)
    products_interested = serializers.CharField(
        min_length=10,
        error_messages={'min_length': "Please describe the products you're interested in"}
    )
    estimated_quantity = serializers.CharField(min_length=1, max_length=255)
    delivery_address = DeliveryAddressSerializer()

    class Meta:
        model = B2BRequest
        fields = (
            'company_name', 'contact_name', 'email', 'phone', 'company_website', 'vat_number',
            'products_interested', 'estimated_quantity', 'budget_range', 'preferred_delivery_date',
            'delivery_address', 'additional_notes', 'is_existing_customer',
        )
        extra_kwargs = {
            'company_website': {'required': False},
            'vat_number': {'required': False},
            'budget_range': {'required': False},
            'preferred_delivery_date': {'required': False},
            'additional_notes': {'required': False},
            'is_existing_customer': {'required': False},
        }

    def create(self, validated_data):
        validated_data['delivery_address'] = dict(validated_data['delivery_address'])
        return B2BRequest.objects.create(**validated_data)


class B2BRequestSerializer(serializers.ModelSerializer):
    reviewed_by_email = serializers.EmailField(source='reviewed_by.email', read_only=True, default=None)

    class Meta:
        model = B2BRequest
        fields = (
            'id', 'user', 'company_name', 'contact_name', 'email', 'phone', 'company_website',
            'vat_number', 'products_interested', 'estimated_quantity', 'budget_range',
            'preferred_delivery_date', 'delivery_address', 'additional_notes',
            'is_existing_customer', 'status', 'admin_notes', 'reviewed_at', 'reviewed_by_email',
            'created_at', 'updated_at',
        )
        read_only_fields = fields


class B2BRequestStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=B2BRequest.STATUS_CHOICES, required=False)
    admin_notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide a status or admin notes.")
        return attrs
