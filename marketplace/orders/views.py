import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import APIException
from rest_framework.response import Response

from marketplace.catalog.pricing import summarize
from marketplace.core.permissions import IsVendor, IsVendorOrAdmin, IsMarketplaceAdmin
from marketplace.core.utils import create_audit_log
from .filters import OrderFilter
from .models import Order
from .serializers import (
    OrderSerializer, OrderCreateSerializer, OrderStatusSerializer, CheckoutSerializer,
    CartItemInputSerializer, CartQuantitySerializer, CartLineSerializer
)
from .services import (
    place_order, update_order_status, cancel_order,
    get_cart, cart_lines, add_to_cart, set_cart_quantity, remove_from_cart, clear_cart, checkout_cart
)

logger = logging.getLogger('marketplace.orders')


def order_queryset():
    return Order.objects.select_related('vendor').prefetch_related('items__product')


def cart_payload(cart):
    lines = cart_lines(cart)
    summary = summarize(line for _, line in lines)
    return {
        'id': cart.id,
        'items': CartLineSerializer([{'item': item, 'line': line} for item, line in lines], many=True).data,
        'total_items': summary.total_items,
        'total_amount': str(summary.total_amount),
        'total_savings': str(summary.total_savings),
        'updated_at': cart.updated_at,
    }


def audit_order_placed(request, order, action='order_place'):
    create_audit_log(
        request=request,
        action=action,
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes={
            'items': [f"{item.product.name} x{item.quantity}" for item in order.items.all()],
            'total_amount': str(order.total_amount),
            'payment_method': order.payment_method,
        },
    )


# Cart views
@api_view(['GET', 'DELETE'])
@permission_classes([IsVendor])
def cart_detail(request):
    """View or clear the vendor's cart"""
    if request.method == 'DELETE':
        cart = clear_cart(request.user)
        return Response(cart_payload(cart))
    return Response(cart_payload(get_cart(request.user)))


@api_view(['POST'])
@permission_classes([IsVendor])
def cart_item_add(request):
    """Add a product to the cart, merging with an existing line"""
    serializer = CartItemInputSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    cart = add_to_cart(request.user, serializer.validated_data['product'], serializer.validated_data['quantity'])
    return Response(cart_payload(cart), status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsVendor])
def cart_item_update(request, product_id):
    """Set the quantity of a cart line or remove it"""
    if request.method == 'DELETE':
        return Response(cart_payload(remove_from_cart(request.user, product_id)))

    serializer = CartQuantitySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    cart = set_cart_quantity(request.user, product_id, serializer.validated_data['quantity'])
    return Response(cart_payload(cart))


@api_view(['POST'])
@permission_classes([IsVendor])
def cart_checkout(request):
    """Place an order from the cart and empty it"""
    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        order = checkout_cart(request.user, **serializer.validated_data)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Checkout failed for {request.user.email}: {str(e)}", exc_info=True)
        return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    audit_order_placed(request, order, action='cart_checkout')
    return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data, status=status.HTTP_201_CREATED)


# Order views
@api_view(['GET', 'POST'])
@permission_classes([IsVendorOrAdmin])
def order_list_create(request):
    """Vendors list their own orders, admins list all; vendors place orders"""
    if request.method == 'GET':
        queryset = order_queryset().order_by('-order_date')
        if not request.user.is_marketplace_admin:
            queryset = queryset.filter(vendor=request.user)
        order_filter = OrderFilter(request.query_params, queryset=queryset)
        if not order_filter.is_valid():
            return Response(order_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(OrderSerializer(order_filter.qs, many=True).data)

    if not request.user.is_vendor:
        return Response({'detail': 'Only vendors can place orders'}, status=status.HTTP_403_FORBIDDEN)

    serializer = OrderCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        order = place_order(request.user, **serializer.validated_data)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Order placement failed for {request.user.email}: {str(e)}", exc_info=True)
        return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    audit_order_placed(request, order)
    return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsVendorOrAdmin])
def order_detail(request, pk):
    order = get_object_or_404(order_queryset(), pk=pk)
    if order.vendor_id != request.user.id and not request.user.is_marketplace_admin:
        return Response({'detail': 'Insufficient permissions'}, status=status.HTTP_403_FORBIDDEN)
    return Response(OrderSerializer(order).data)


@api_view(['POST'])
@permission_classes([IsVendor])
def order_cancel(request, pk):
    """Cancel the vendor's own pending order"""
    order = get_object_or_404(Order, pk=pk)
    order, old_status = cancel_order(order, request.user)
    create_audit_log(
        request=request,
        action='order_cancel',
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'status': {'old': old_status, 'new': order.status}},
    )
    return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data)


@api_view(['PATCH'])
@permission_classes([IsMarketplaceAdmin])
def order_status_update(request, pk):
    """Move an order one step along its lifecycle"""
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    order, old_status = update_order_status(order, serializer.validated_data['status'])
    create_audit_log(
        request=request,
        action='order_status',
        model_name='Order',
        object_id=order.id,
        object_reference=order.order_number,
        changes={'status': {'old': old_status, 'new': order.status}},
    )
    return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data)


@api_view(['GET'])
@permission_classes([IsMarketplaceAdmin])
def admin_order_list(request):
    """All orders with vendor and items"""
    order_filter = OrderFilter(request.query_params, queryset=order_queryset().order_by('-order_date'))
    if not order_filter.is_valid():
        return Response(order_filter.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response(OrderSerializer(order_filter.qs, many=True).data)
