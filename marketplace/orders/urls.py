from django.urls import path
from .views import (
    cart_detail, cart_item_add, cart_item_update, cart_checkout,
    order_list_create, order_detail, order_cancel, order_status_update, admin_order_list,
)

urlpatterns = [
    # Cart endpoints
    path('cart/', cart_detail, name='cart-detail'),
    path('cart/items/', cart_item_add, name='cart-item-add'),
    path('cart/items/<int:product_id>/', cart_item_update, name='cart-item-update'),
    path('cart/checkout/', cart_checkout, name='cart-checkout'),

    # Order endpoints
    path('orders/', order_list_create, name='order-list'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/cancel/', order_cancel, name='order-cancel'),
    path('orders/<int:pk>/status/', order_status_update, name='order-status'),

    # Admin order management
    path('admin/orders/', admin_order_list, name='admin-order-list'),
    path('admin/orders/<int:pk>/status/', order_status_update, name='admin-order-status'),
]
