import logging

from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from marketplace.core.permissions import IsMarketplaceAdmin, IsSupplierOrAdmin
from marketplace.core.utils import create_audit_log
from .filters import SupplyOfferFilter
from .models import SupplyOffer
from .serializers import (
    SupplyOfferSerializer, SupplyOfferUpdateSerializer, SupplyOfferStatusSerializer, DailyDemandSerializer
)
from .services import change_offer_status, get_daily_demand, update_pending_offer

logger = logging.getLogger('marketplace.supply')


@api_view(['GET', 'POST'])
@permission_classes([IsSupplierOrAdmin])
def supply_offer_list_create(request):
    """Suppliers list their own offers, admins list all; suppliers create offers"""
    if request.method == 'GET':
        queryset = SupplyOffer.objects.select_related('product', 'supplier').order_by('-created_at')
        if not request.user.is_marketplace_admin:
            queryset = queryset.filter(supplier=request.user)
        offer_filter = SupplyOfferFilter(request.query_params, queryset=queryset)
        if not offer_filter.is_valid():
            return Response(offer_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(SupplyOfferSerializer(offer_filter.qs, many=True).data)

    if not request.user.is_supplier:
        return Response({'detail': 'Only suppliers can create supply offers'}, status=status.HTTP_403_FORBIDDEN)

    serializer = SupplyOfferSerializer(data=request.data)
    if serializer.is_valid():
        offer = serializer.save(supplier=request.user)
        create_audit_log(
            request=request,
            action='offer_create',
            model_name='SupplyOffer',
            object_id=offer.id,
            object_reference=offer.product.name,
            changes={
                'available_quantity': offer.available_quantity,
                'price_per_unit': str(offer.price_per_unit),
                'demand_date': str(offer.demand_date),
            },
        )
        logger.info(f"Supply offer {offer.id} created by {request.user.email} for {offer.product.name} x{offer.available_quantity}")
        return Response(SupplyOfferSerializer(offer).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH'])
@permission_classes([IsSupplierOrAdmin])
def supply_offer_detail(request, pk):
    """Read an offer, or let its supplier edit it while still pending"""
    offer = get_object_or_404(SupplyOffer.objects.select_related('product', 'supplier'), pk=pk)
    is_owner = offer.supplier_id == request.user.id

    if request.method == 'GET':
        if not (is_owner or request.user.is_marketplace_admin):
            return Response({'detail': 'Insufficient permissions'}, status=status.HTTP_403_FORBIDDEN)
        return Response(SupplyOfferSerializer(offer).data)

    if not is_owner:
        return Response({'detail': 'You can only edit your own offers'}, status=status.HTTP_403_FORBIDDEN)
    if offer.status != SupplyOffer.STATUS_PENDING:
        return Response({'error': f'Cannot edit an offer that is {offer.status}'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = SupplyOfferUpdateSerializer(offer, data=request.data, partial=True)
    if serializer.is_valid():
        offer = update_pending_offer(offer, serializer.validated_data)
        return Response(SupplyOfferSerializer(offer).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PATCH'])
@permission_classes([IsMarketplaceAdmin])
def supply_offer_status(request, pk):
    """Accept, reject or mark an offer fulfilled"""
    offer = get_object_or_404(SupplyOffer, pk=pk)
    serializer = SupplyOfferStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    offer, old_status = change_offer_status(offer, serializer.validated_data['status'])
    create_audit_log(
        request=request,
        action='offer_status',
        model_name='SupplyOffer',
        object_id=offer.id,
        object_reference=offer.product.name,
        changes={
            'status': {'old': old_status, 'new': offer.status},
            'allocated_quantity': offer.allocated_quantity,
        },
    )
    return Response(SupplyOfferSerializer(offer).data)


@api_view(['GET'])
@permission_classes([IsSupplierOrAdmin])
def daily_demand_list(request):
    """Aggregated vendor demand for a day (defaults to today)"""
    day = None
    date_param = request.query_params.get('date')
    if date_param:
        try:
            day = parse_date(date_param)
        except ValueError:
            day = None
        if day is None:
            return Response({'error': 'date must be in YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)

    return Response(DailyDemandSerializer(get_daily_demand(day), many=True).data)
