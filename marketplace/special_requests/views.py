import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from marketplace.core.permissions import IsVendor, IsSupplier
from marketplace.core.utils import create_audit_log
from .models import SpecialRequest
from .serializers import SpecialRequestSerializer, SpecialRequestResponseSerializer
from .services import respond_to_request, accept_response, cancel_request

logger = logging.getLogger('marketplace.special_requests')


def request_queryset():
    return SpecialRequest.objects.select_related('vendor').prefetch_related('responses__supplier')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def special_request_list_create(request):
    """Vendors see their own requests; suppliers and admins see all"""
    if request.method == 'GET':
        queryset = request_queryset()
        if request.user.is_vendor:
            queryset = queryset.filter(vendor=request.user)
        status_param = request.query_params.get('status')
        if status_param:
            queryset = queryset.filter(status=status_param)
        return Response(SpecialRequestSerializer(queryset, many=True).data)

    if not request.user.is_vendor:
        return Response({'detail': 'Insufficient permissions'}, status=status.HTTP_403_FORBIDDEN)

    serializer = SpecialRequestSerializer(data=request.data)
    if serializer.is_valid():
        special_request = serializer.save(vendor=request.user)
        logger.info(f"Special request {special_request.pk} ({special_request.item_name}) created by {request.user.email}")
        return Response(SpecialRequestSerializer(special_request).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsVendor])
def vendor_special_requests(request):
    queryset = request_queryset().filter(vendor=request.user)
    return Response(SpecialRequestSerializer(queryset, many=True).data)


@api_view(['POST'])
@permission_classes([IsSupplier])
def special_request_respond(request, pk):
    """Supplier quotes quantity and price for a special request"""
    special_request = get_object_or_404(SpecialRequest, pk=pk)
    serializer = SpecialRequestResponseSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    response = respond_to_request(special_request, request.user, **serializer.validated_data)
    create_audit_log(
        request=request,
        action='request_respond',
        model_name='SpecialRequest',
        object_id=special_request.id,
        object_reference=special_request.item_name,
        changes={
            'response_id': response.id,
            'available_quantity': response.available_quantity,
            'price_per_unit': str(response.price_per_unit),
        },
    )
    return Response(SpecialRequestResponseSerializer(response).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsVendor])
def special_request_accept_response(request, pk, response_id):
    special_request = get_object_or_404(SpecialRequest, pk=pk)
    special_request, response = accept_response(special_request, response_id, request.user)
    create_audit_log(
        request=request,
        action='request_accept',
        model_name='SpecialRequest',
        object_id=special_request.id,
        object_reference=special_request.item_name,
        changes={'accepted_response': response.id, 'supplier': response.supplier.email},
    )
    return Response(SpecialRequestSerializer(request_queryset().get(pk=special_request.pk)).data)


@api_view(['POST'])
@permission_classes([IsVendor])
def special_request_cancel(request, pk):
    special_request = get_object_or_404(SpecialRequest, pk=pk)
    special_request = cancel_request(special_request, request.user)
    return Response(SpecialRequestSerializer(request_queryset().get(pk=special_request.pk)).data)
