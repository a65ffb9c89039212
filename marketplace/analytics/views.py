"""Dashboard statistics for each side of the marketplace"""
import logging
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db.models import Sum, F, DecimalField, ExpressionWrapper
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from marketplace.core.cache_utils import get_cached_dashboard_stats, cache_dashboard_stats
from marketplace.core.permissions import IsVendor, IsSupplier, IsMarketplaceAdmin
from marketplace.orders.models import Order
from marketplace.supply.models import SupplyOffer

User = get_user_model()
logger = logging.getLogger('marketplace.analytics')


@api_view(['GET'])
@permission_classes([IsVendor])
def vendor_stats(request):
    try:
        today = timezone.localdate()
        orders = Order.objects.filter(vendor=request.user)
        total_spent = orders.exclude(status=Order.STATUS_CANCELLED).aggregate(
            total=Sum('total_amount')
        )['total'] or Decimal('0.00')

        return Response({
            'total_orders': orders.count(),
            'total_spent': str(total_spent),
            'orders_this_month': orders.filter(
                order_date__date__gte=today.replace(day=1),
                order_date__date__lte=today,
            ).count(),
            'pending_orders': orders.filter(status=Order.STATUS_PENDING).count(),
        })
    except Exception as e:
        logger.error(f"Error building vendor stats for {request.user.email}: {str(e)}", exc_info=True)
        return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsSupplier])
def supplier_stats(request):
    try:
        offers = SupplyOffer.objects.filter(supplier=request.user)
        total_supplies = offers.count()
        fulfilled = offers.filter(status=SupplyOffer.STATUS_FULFILLED)
        fulfilled_count = fulfilled.count()
        revenue = fulfilled.aggregate(
            total=Sum(ExpressionWrapper(
                F('available_quantity') * F('price_per_unit'),
                output_field=DecimalField(max_digits=14, decimal_places=2),
            ))
        )['total'] or Decimal('0.00')
        fulfillment_rate = round(fulfilled_count / total_supplies * 100) if total_supplies else 0

        return Response({
            'total_supplies': total_supplies,
            'revenue': str(Decimal(revenue).quantize(Decimal('0.01'))),
            'fulfillment_rate': fulfillment_rate,
            'pending_offers': offers.filter(status=SupplyOffer.STATUS_PENDING).count(),
        })
    except Exception as e:
        logger.error(f"Error building supplier stats for {request.user.email}: {str(e)}", exc_info=True)
        return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsMarketplaceAdmin])
def admin_stats(request):
    cached_data, cache_key = get_cached_dashboard_stats('admin')
    if cached_data is not None:
        return Response(cached_data)

    try:
        today = timezone.localdate()
        orders_today = Order.objects.filter(order_date__date=today)
        revenue_today = orders_today.exclude(status=Order.STATUS_CANCELLED).aggregate(
            total=Sum('total_amount')
        )['total'] or Decimal('0.00')

        data = {
            'total_vendors': User.objects.filter(role=User.ROLE_VENDOR).count(),
            'total_suppliers': User.objects.filter(role=User.ROLE_SUPPLIER).count(),
            'total_orders': Order.objects.count(),
            'orders_today': orders_today.count(),
            'revenue_today': str(revenue_today),
        }
    except Exception as e:
        logger.error(f"Error building admin stats: {str(e)}", exc_info=True)
        return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    cache_dashboard_stats(cache_key, data)
    return Response(data)
