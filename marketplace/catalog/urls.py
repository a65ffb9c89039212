from django.urls import path
from .views import product_list_create, product_detail, product_price_quote

urlpatterns = [
    path('products/', product_list_create, name='product-list-create'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/price/', product_price_quote, name='product-price-quote'),
]
