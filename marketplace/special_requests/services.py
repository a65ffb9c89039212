import logging

from django.db import transaction
from rest_framework.exceptions import ValidationError, PermissionDenied

from .models import SpecialRequest, SpecialRequestResponse

logger = logging.getLogger('marketplace.special_requests')


@transaction.atomic
def respond_to_request(special_request, supplier, **response_data):
    special_request = SpecialRequest.objects.select_for_update().get(pk=special_request.pk)
    if not special_request.is_open_for_responses:
        raise ValidationError({'error': f'This request is {special_request.status} and no longer takes responses'})

    response = SpecialRequestResponse.objects.create(request=special_request, supplier=supplier, **response_data)
    if special_request.status == SpecialRequest.STATUS_OPEN:
        special_request.status = SpecialRequest.STATUS_RESPONDED
        special_request.save(update_fields=['status', 'updated_at'])
    logger.info(f"Supplier {supplier.email} responded to special request {special_request.pk}")
    return response


@transaction.atomic
def accept_response(special_request, response_id, vendor):
    """Accept one supplier response; the others are rejected and the request is fulfilled"""
    special_request = SpecialRequest.objects.select_for_update().get(pk=special_request.pk)
    if special_request.vendor_id != vendor.id:
        raise PermissionDenied('You can only accept responses to your own requests')
    if not special_request.is_open_for_responses:
        raise ValidationError({'error': f'This request is already {special_request.status}'})

    response = special_request.responses.filter(pk=response_id).first()
    if response is None:
        raise ValidationError({'error': 'Response does not belong to this request'})
    if response.status != SpecialRequestResponse.STATUS_PENDING:
        raise ValidationError({'error': f'Response is already {response.status}'})

    response.status = SpecialRequestResponse.STATUS_ACCEPTED
    response.save(update_fields=['status', 'updated_at'])
    special_request.responses.exclude(pk=response.pk).update(status=SpecialRequestResponse.STATUS_REJECTED)
    special_request.status = SpecialRequest.STATUS_FULFILLED
    special_request.save(update_fields=['status', 'updated_at'])
    logger.info(f"Special request {special_request.pk} fulfilled by response {response.pk}")
    return special_request, response


@transaction.atomic
def cancel_request(special_request, vendor):
    special_request = SpecialRequest.objects.select_for_update().get(pk=special_request.pk)
    if special_request.vendor_id != vendor.id:
        raise PermissionDenied('You can only cancel your own requests')
    if not special_request.is_open_for_responses:
        raise ValidationError({'error': f'Cannot cancel a request that is {special_request.status}'})
    special_request.status = SpecialRequest.STATUS_CANCELLED
    special_request.save(update_fields=['status', 'updated_at'])
    logger.info(f"Special request {special_request.pk} cancelled by {vendor.email}")
    return special_request
