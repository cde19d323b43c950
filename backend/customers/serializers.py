from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from orders.serializers import OrderSummarySerializer
from .models import Customer, SavedAddress


class RegistrationSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})
    password2 = serializers.CharField(write_only=True, style={'input_type': 'password'})

    class Meta:
        model = Customer
        fields = ('email', 'password', 'password2', 'full_name', 'company_name', 'phone')

    def validate(self, attrs):
        if attrs['password'] != attrs.pop('password2'):
            raise serializers.ValidationError({"password2": "Passwords do not match."})
        validate_password(attrs['password'], Customer(email=attrs['email'], full_name=attrs.get('full_name', '')))
        return attrs

    def create(self, validated_data):
        return Customer.objects.create_user(**validated_data)


class SavedAddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = SavedAddress
        fields = (
            'id', 'label', 'full_name', 'company', 'address', 'address2', 'city', 'state',
            'postal_code', 'country', 'phone', 'is_default', 'created_at', 'updated_at',
        )
        read_only_fields = ('id', 'created_at', 'updated_at')

    def validate_country(self, value):
        return value.upper()


class AccountSerializer(serializers.ModelSerializer):
    orders = OrderSummarySerializer(many=True, read_only=True)
    addresses = SavedAddressSerializer(many=True, read_only=True)

    class Meta:
        model = Customer
        fields = ('id', 'email', 'full_name', 'company_name', 'phone', 'date_joined', 'addresses', 'orders')
        read_only_fields = ('id', 'email', 'date_joined')


class AdminCustomerSerializer(serializers.ModelSerializer):
    order_count = serializers.IntegerField(read_only=True)
    total_spent = serializers.DecimalField(max_digits=None, decimal_places=None, read_only=True)
    last_order_at = serializers.DateTimeField(read_only=True, allow_null=True)

    class Meta:
        model = Customer
        fields = (
            'id', 'email', 'full_name', 'company_name', 'phone', 'is_active', 'date_joined',
            'order_count', 'total_spent', 'last_order_at',
        )
        read_only_fields = fields


class AdminCustomerDetailSerializer(AdminCustomerSerializer):
    orders = OrderSummarySerializer(many=True, read_only=True)
    addresses = SavedAddressSerializer(many=True, read_only=True)

    class Meta(AdminCustomerSerializer.Meta):
        fields = AdminCustomerSerializer.Meta.fields + ('addresses', 'orders')
        read_only_fields = fields
