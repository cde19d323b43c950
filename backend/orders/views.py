# orders/views.py

import logging
from decimal import Decimal

import stripe
from django.db.models import Avg, Count, Sum
from django.db.models.functions import Coalesce
from django.http import HttpResponse
from django.utils import timezone
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from cart.services import snapshot_pending_cart
from . import analytics, stripe_gateway
from .checkout import create_checkout_session
from .exceptions import (
    CheckoutError,
    CheckoutSessionCreationError,
    InvalidStatusTransition,
    OrderNotFoundError,
    PaymentNotCompletedError,
    ReconciliationError,
)
from .filters import OrderFilter
from .models import Order
from .reconciliation import fetch_session, reconcile_checkout_session
from .serializers import (
    AdminOrderSerializer,
    CheckoutRequestSerializer,
    ConfirmOrderSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
)
from .shipping import SHIPPING_OPTIONS

logger = logging.getLogger(__name__)

RECONCILE_EVENTS = ('checkout.session.completed', 'checkout.session.async_payment_succeeded')


def error_response(message, status_code, **extra):
    return Response({"error": message, **extra}, status=status_code)


class ShippingOptionsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return Response([option.as_dict() for option in SHIPPING_OPTIONS], status=status.HTTP_200_OK)


class CreateCheckoutSessionView(APIView):
    """Prices the cart server-side and opens a Stripe Checkout session."""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid checkout request", status.HTTP_400_BAD_REQUEST, details=serializer.errors)

        data = serializer.validated_data
        user = request.user if request.user.is_authenticated else None
        email = (user.email if user else None) or data.get('email')

        shipping_address = data.get('shipping_address')
        if user and data.get('shipping_address_id'):
            saved = user.addresses.filter(pk=data['shipping_address_id']).first()
            if saved is None:
                return error_response("Saved address not found", status.HTTP_400_BAD_REQUEST)
            shipping_address = saved.as_address()

        try:
            session = create_checkout_session(
                serializer.lines,
                email=email,
                user_id=user.pk if user else None,
                shipping_option=data.get('shipping_method_id'),
                shipping_address=shipping_address,
                billing_address=data.get('billing_address'),
                client_totals=serializer.client_totals,
            )
        except CheckoutSessionCreationError as e:
            return error_response(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
        except CheckoutError as e:
            return error_response(str(e), status.HTTP_400_BAD_REQUEST)

        if user:
            snapshot_pending_cart(user, serializer.lines, session.session_id)

        return Response({
            "sessionId": session.session_id,
            "session_id": session.session_id,
            "url": session.url,
        }, status=status.HTTP_200_OK)


class ConfirmOrderView(APIView):
    """Called from the checkout success page with the Stripe session id."""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = ConfirmOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Session ID is required", status.HTTP_400_BAD_REQUEST)

        session_id = serializer.validated_data['session_id']
        try:
            order, created = reconcile_checkout_session(session_id)
        except OrderNotFoundError as e:
            return error_response(str(e), status.HTTP_404_NOT_FOUND)
        except PaymentNotCompletedError as e:
            return error_response(str(e), status.HTTP_400_BAD_REQUEST, payment_status=e.payment_status)
        except ReconciliationError as e:
            return error_response(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(
            OrderSerializer(order).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )


class OrderBySessionView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, session_id):
        order = Order.objects.filter(stripe_session_id=session_id).first()
        if order is None:
            logger.info(f"Order not found for session {session_id}")
            return error_response("Order not found", status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)


class VerifyPaymentView(APIView):
    """Payment status straight from Stripe; the secret key stays server-side."""
    permission_classes = [AllowAny]

    def get(self, request, session_id):
        try:
            session = fetch_session(session_id)
        except OrderNotFoundError:
            return error_response("Checkout session not found", status.HTTP_404_NOT_FOUND)
        except ReconciliationError:
            return error_response("Failed to verify payment", status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({
            "paid": session.get('payment_status') == 'paid',
            "payment_status": session.get('payment_status'),
            "session_id": session['id'],
        }, status=status.HTTP_200_OK)


class StripeWebhookView(APIView):
    """Handle Stripe webhook events"""
    permission_classes = [AllowAny]
    authentication_classes = []

    @method_decorator(csrf_exempt)
    def dispatch(self, *args, **kwargs):
        return super().dispatch(*args, **kwargs)

    def post(self, request):
        payload = request.body
        sig_header = request.META.get('HTTP_STRIPE_SIGNATURE')

        try:
            event = stripe_gateway.construct_event(payload, sig_header)
        except ValueError:
            return HttpResponse(status=400)
        except stripe.SignatureVerificationError:
            logger.warning("⚠️ Stripe webhook with invalid signature rejected")
            return HttpResponse(status=400)

        if event['type'] not in RECONCILE_EVENTS:
            return HttpResponse(status=200)

        session_id = event['data']['object']['id']
        try:
            order, created = reconcile_checkout_session(session_id)
        except PaymentNotCompletedError as e:
            # async methods confirm later with async_payment_succeeded
            logger.info(f"⏭️  Session {session_id} not paid yet ({e.payment_status})")
            return HttpResponse(status=200)
        except OrderNotFoundError:
            return HttpResponse(status=404)
        except ReconciliationError:
            # non-2xx makes Stripe redeliver the event
            return HttpResponse(status=500)

        if created:
            logger.info(f"✅ Webhook created order {order.order_reference}")
        return HttpResponse(status=200)


class UserOrdersView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        orders = Order.objects.filter(user=request.user).order_by('-created_at')
        serializer = OrderSerializer(orders, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)


# ------------------
# Admin dashboard
# ------------------

class AdminResultsSetPagination(PageNumberPagination):
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class AdminOrderListView(generics.ListAPIView):
    permission_classes = [IsAdminUser]
    queryset = Order.objects.select_related('user')
    serializer_class = AdminOrderSerializer
    pagination_class = AdminResultsSetPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = OrderFilter


class AdminOrderDetailView(generics.RetrieveAPIView):
    permission_classes = [IsAdminUser]
    queryset = Order.objects.select_related('user')
    serializer_class = AdminOrderSerializer
    lookup_field = 'order_reference'


class AdminOrderStatusView(APIView):
    permission_classes = [IsAdminUser]

    def patch(self, request, order_reference):
        try:
            order = Order.objects.get(order_reference=order_reference)
        except Order.DoesNotExist:
            return error_response("Order not found", status.HTTP_404_NOT_FOUND)

        serializer = OrderStatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid status update", status.HTTP_400_BAD_REQUEST, details=serializer.errors)
        data = serializer.validated_data

        try:
            order.transition_to(data['status'], tracking_number=data.get('tracking_number'))
        except InvalidStatusTransition as e:
            return error_response(str(e), status.HTTP_400_BAD_REQUEST)

        if 'notes' in data:
            order.notes = data['notes']
            order.save(update_fields=['notes', 'updated_at'])

        logger.info(f"✅ Order {order.order_reference} moved to {order.status} by {request.user.email}")
        return Response(AdminOrderSerializer(order).data, status=status.HTTP_200_OK)


class AdminStatsView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request):
        from b2b.models import B2BRequest

        by_status = {
            row['status']: row['count']
            for row in Order.objects.values('status').annotate(count=Count('id'))
        }
        today = timezone.localdate()
        zero = Decimal('0')
        today_revenue = Order.objects.filter(created_at__date=today).aggregate(
            revenue=Coalesce(Sum('total'), zero)
        )['revenue']
        average = Order.objects.aggregate(average=Avg('total'))['average'] or zero

        stats = {status_key: by_status.get(status_key, 0) for status_key, _ in Order.ORDER_STATUS}
        stats.update({
            'total': sum(by_status.values()),
            'today_revenue': str(today_revenue),
            'average_order_value': str(average),
            'pending_b2b_requests': B2BRequest.objects.filter(status='pending').count(),
        })
        return Response(stats, status=status.HTTP_200_OK)


class AdminAnalyticsView(APIView):
    """Dashboard charts: ``?type=revenue|top_products|orders_by_status|customer_acquisition``."""
    permission_classes = [IsAdminUser]

    def get(self, request):
        report = request.query_params.get('type', 'revenue')
        time_range = request.query_params.get('range', analytics.DEFAULT_TIME_RANGE)
        if time_range not in analytics.TIME_RANGES:
            return error_response("Invalid time range", status.HTTP_400_BAD_REQUEST, allowed=list(analytics.TIME_RANGES))

        if report == 'revenue':
            data = analytics.revenue_series(time_range)
        elif report == 'top_products':
            try:
                limit = int(request.query_params.get('limit', 10))
            except ValueError:
                return error_response("limit must be a number", status.HTTP_400_BAD_REQUEST)
            data = analytics.top_products(max(1, min(limit, 100)))
        elif report == 'orders_by_status':
            data = analytics.orders_by_status()
        elif report == 'customer_acquisition':
            data = analytics.customer_acquisition(time_range)
        else:
            return error_response("Invalid analytics type", status.HTTP_400_BAD_REQUEST)

        return Response({'type': report, 'range': time_range, 'data': data}, status=status.HTTP_200_OK)
