"""
URL configuration for the marketplace project.

Every app contributes its routes under the shared ``api/v1/`` prefix.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Raw Materials Marketplace Admin"
admin.site.site_title = "Marketplace Admin Portal"
admin.site.index_title = "Vendors, suppliers and daily demand"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('marketplace.core.urls')),
    path('api/v1/', include('marketplace.catalog.urls')),
    path('api/v1/', include('marketplace.orders.urls')),
    path('api/v1/', include('marketplace.supply.urls')),
    path('api/v1/', include('marketplace.special_requests.urls')),
    path('api/v1/', include('marketplace.analytics.urls')),
]
