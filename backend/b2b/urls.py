from django.urls import path
from .views import AdminB2BRequestListView, AdminB2BRequestUpdateView, B2BRequestCreateView

urlpatterns = [
    path('b2b-request/', B2BRequestCreateView.as_view(), name='b2b-request'),
    path('admin/b2b-requests/', AdminB2BRequestListView.as_view(), name='admin-b2b-request-list'),
    path('admin/b2b-requests/<int:pk>/', AdminB2BRequestUpdateView.as_view(), name='admin-b2b-request-update'),
]
