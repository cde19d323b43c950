from django.urls import path
from .views import (
    CategoryListView,
    ProductDetailView,
    ProductListView,
    ProductPriceQuoteView,
)

urlpatterns = [
    path('categories/', CategoryListView.as_view(), name='category-list'),
    path('products/', ProductListView.as_view(), name='product-list'),
    path('products/<slug:slug>/', ProductDetailView.as_view(), name='product-detail'),
    path('products/<slug:slug>/price/', ProductPriceQuoteView.as_view(), name='product-price-quote'),
]
