from django.contrib import admin
from django.urls import include, path

from customers.urls import admin_urlpatterns as customer_admin_urls

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('catalog.urls')),
    path('api/', include('cart.urls')),
    path('api/', include('orders.urls')),
    path('api/', include('b2b.urls')),
    path('api/customers/', include('customers.urls')),
    path('api/admin/customers/', include(customer_admin_urls)),
]
