from django.urls import path
from .views import (
    AdminAnalyticsView,
    AdminOrderDetailView,
    AdminOrderListView,
    AdminOrderStatusView,
    AdminStatsView,
    ConfirmOrderView,
    CreateCheckoutSessionView,
    OrderBySessionView,
    ShippingOptionsView,
    StripeWebhookView,
    UserOrdersView,
    VerifyPaymentView,
)

urlpatterns = [
    path('checkout/', CreateCheckoutSessionView.as_view(), name='create-checkout-session'),
    path('shipping-options/', ShippingOptionsView.as_view(), name='shipping-options'),
    path('orders/confirm/', ConfirmOrderView.as_view(), name='confirm-order'),
    path('orders/by-session/<str:session_id>/', OrderBySessionView.as_view(), name='order-by-session'),
    path('orders/my/', UserOrdersView.as_view(), name='user-orders'),
    path('verify-payment/<str:session_id>/', VerifyPaymentView.as_view(), name='verify-payment'),
    path('webhook/stripe/', StripeWebhookView.as_view(), name='stripe-webhook'),
    path('admin/orders/', AdminOrderListView.as_view(), name='admin-order-list'),
    path('admin/orders/<str:order_reference>/', AdminOrderDetailView.as_view(), name='admin-order-detail'),
    path('admin/orders/<str:order_reference>/status/', AdminOrderStatusView.as_view(), name='admin-order-status'),
    path('admin/stats/', AdminStatsView.as_view(), name='admin-stats'),
    path('admin/analytics/', AdminAnalyticsView.as_view(), name='admin-analytics'),
]
