from django.urls import path
from .views import (
    special_request_list_create, vendor_special_requests, special_request_respond,
    special_request_accept_response, special_request_cancel,
)

urlpatterns = [
    path('special-requests/', special_request_list_create, name='special-request-list'),
    path('special-requests/vendor/', vendor_special_requests, name='special-request-vendor'),
    path('special-requests/<int:pk>/respond/', special_request_respond, name='special-request-respond'),
    path('special-requests/<int:pk>/responses/<int:response_id>/accept/', special_request_accept_response, name='special-request-accept'),
    path('special-requests/<int:pk>/cancel/', special_request_cancel, name='special-request-cancel'),
]
