from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views

urlpatterns = [
    path('register/', views.RegisterView.as_view(), name='account-register'),
    path('login/', TokenObtainPairView.as_view(), name='account-login'),
    path('token/refresh/', TokenRefreshView.as_view(), name='account-token-refresh'),
    path('logout/', views.LogoutView.as_view(), name='account-logout'),
    path('me/', views.AccountView.as_view(), name='account'),
    path('addresses/', views.SavedAddressListView.as_view(), name='saved-address-list'),
    path('addresses/<int:pk>/', views.SavedAddressDetailView.as_view(), name='saved-address-detail'),
]

admin_urlpatterns = [
    path('', views.AdminCustomerListView.as_view(), name='admin-customer-list'),
    path('<int:pk>/', views.AdminCustomerDetailView.as_view(), name='admin-customer-detail'),
]
