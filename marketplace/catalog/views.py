import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from django.shortcuts import get_object_or_404

from marketplace.core.cache_utils import get_cached_products_list, cache_products_list
from marketplace.core.permissions import IsMarketplaceAdminOrReadOnly
from marketplace.core.utils import create_audit_log
from .filters import ProductFilter
from .models import Product
from .pricing import price_line
from .serializers import ProductSerializer, PriceQuoteSerializer

logger = logging.getLogger('marketplace.catalog')


@api_view(['GET', 'POST'])
@permission_classes([IsMarketplaceAdminOrReadOnly])
def product_list_create(request):
    """List active products or create a new product"""
    if request.method == 'GET':
        filters_dict = {key: request.query_params.get(key) for key in sorted(request.query_params.keys())}
        cached_data, cache_key = get_cached_products_list(filters_dict)
        if cached_data is not None:
            return Response(cached_data)

        queryset = Product.objects.filter(is_active=True).order_by('name')
        product_filter = ProductFilter(request.query_params, queryset=queryset)
        if not product_filter.is_valid():
            return Response(product_filter.errors, status=status.HTTP_400_BAD_REQUEST)

        data = ProductSerializer(product_filter.qs, many=True).data
        cache_products_list(cache_key, list(data))
        return Response(data)

    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        product = serializer.save()
        create_audit_log(
            request=request,
            action='create',
            model_name='Product',
            object_id=product.id,
            object_reference=product.name,
            changes={'base_price': str(product.base_price)},
        )
        logger.info(f"Product '{product.name}' created by {request.user.email}")
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsMarketplaceAdminOrReadOnly])
def product_detail(request, pk):
    """Retrieve, update or deactivate a product"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        if not product.is_active and not (request.user.is_authenticated and request.user.is_marketplace_admin):
            return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductSerializer(product).data)

    if request.method in ('PUT', 'PATCH'):
        old_values = {
            'base_price': str(product.base_price),
            'bulk_discount_threshold': product.bulk_discount_threshold,
            'bulk_discount_percentage': str(product.bulk_discount_percentage),
        }
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            product = serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Product',
                object_id=product.id,
                object_reference=product.name,
                changes={'old': old_values, 'new': {
                    'base_price': str(product.base_price),
                    'bulk_discount_threshold': product.bulk_discount_threshold,
                    'bulk_discount_percentage': str(product.bulk_discount_percentage),
                }},
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE: products stay referenced by past orders, so they are only deactivated
    product.is_active = False
    product.save(update_fields=['is_active', 'updated_at'])
    create_audit_log(
        request=request,
        action='delete',
        model_name='Product',
        object_id=product.id,
        object_reference=product.name,
        changes={'is_active': False},
    )
    logger.info(f"Product '{product.name}' deactivated by {request.user.email}")
    return Response({'message': 'Product deleted successfully'})


@api_view(['GET'])
@permission_classes([AllowAny])
def product_price_quote(request, pk):
    """Price a quantity of a product with its bulk discount applied"""
    product = get_object_or_404(Product, pk=pk, is_active=True)
    try:
        quantity = int(request.query_params.get('quantity', 1))
    except (TypeError, ValueError):
        return Response({'error': 'quantity must be a whole number'}, status=status.HTTP_400_BAD_REQUEST)
    if quantity < 1:
        return Response({'error': 'quantity must be at least 1'}, status=status.HTTP_400_BAD_REQUEST)

    line = price_line(product, quantity)
    return Response(PriceQuoteSerializer({'product': product, 'line': line}).data)
