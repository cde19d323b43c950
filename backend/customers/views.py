import logging
from decimal import Decimal

from django.contrib.auth.password_validation import password_validators_help_texts
from django.db.models import Count, Max, Sum
from django.db.models.functions import Coalesce
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from orders.views import AdminResultsSetPagination
from .filters import CustomerFilter
from .models import Customer
from .serializers import (
    AccountSerializer,
    AdminCustomerDetailSerializer,
    AdminCustomerSerializer,
    RegistrationSerializer,
    SavedAddressSerializer,
)

logger = logging.getLogger(__name__)


def token_pair(customer):
    refresh = RefreshToken.for_user(customer)
    return {'refresh': str(refresh), 'access': str(refresh.access_token)}


class RegisterView(generics.CreateAPIView):
    permission_classes = [AllowAny]
    serializer_class = RegistrationSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                "errors": serializer.errors,
                "password_rules": password_validators_help_texts(),
            }, status=status.HTTP_400_BAD_REQUEST)

        customer = serializer.save()
        logger.info(f"✅ Account opened for {customer.email}")
        return Response({
            'customer': AccountSerializer(customer).data,
            'tokens': token_pair(customer),
        }, status=status.HTTP_201_CREATED)


class AccountView(generics.RetrieveUpdateAPIView):
    """Profile, saved addresses and order history of the signed-in customer."""
    permission_classes = [IsAuthenticated]
    serializer_class = AccountSerializer
    http_method_names = ['get', 'patch', 'head', 'options']

    def get_object(self):
        return Customer.objects.prefetch_related('orders', 'addresses').get(pk=self.request.user.pk)


class SavedAddressListView(generics.ListCreateAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SavedAddressSerializer
    pagination_class = None

    def get_queryset(self):
        return self.request.user.addresses.all()

    def perform_create(self, serializer):
        # the first address becomes the default
        make_default = serializer.validated_data.get('is_default') or not self.request.user.addresses.exists()
        serializer.save(user=self.request.user, is_default=make_default)


class SavedAddressDetailView(generics.RetrieveUpdateDestroyAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SavedAddressSerializer

    def get_queryset(self):
        return self.request.user.addresses.all()


class LogoutView(APIView):
    """Blacklists the refresh token; the access token lives out its short lifetime."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        token = request.data.get("refresh_token")
        if not token:
            return Response({"detail": "refresh_token is required."}, status=status.HTTP_400_BAD_REQUEST)
        try:
            RefreshToken(token).blacklist()
        except TokenError as e:
            logger.info(f"⏭️  Logout with unusable token for {request.user.email}: {str(e)}")
            return Response({"detail": "Invalid or expired token."}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"detail": "Logged out."}, status=status.HTTP_200_OK)


# ------------------
# Admin dashboard
# ------------------

def customers_with_order_stats():
    return Customer.objects.filter(is_staff=False).annotate(
        order_count=Count('orders'),
        total_spent=Coalesce(Sum('orders__total'), Decimal('0')),
        last_order_at=Max('orders__created_at'),
    )


class AdminCustomerListView(generics.ListAPIView):
    permission_classes = [IsAdminUser]
    serializer_class = AdminCustomerSerializer
    pagination_class = AdminResultsSetPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = CustomerFilter

    def get_queryset(self):
        return customers_with_order_stats().order_by('-date_joined')


class AdminCustomerDetailView(generics.RetrieveAPIView):
    permission_classes = [IsAdminUser]
    serializer_class = AdminCustomerDetailSerializer

    def get_queryset(self):
        return customers_with_order_stats().prefetch_related('orders', 'addresses')
