from django.urls import path
from .views import vendor_stats, supplier_stats, admin_stats

urlpatterns = [
    path('analytics/vendor/', vendor_stats, name='analytics-vendor'),
    path('analytics/supplier/', supplier_stats, name='analytics-supplier'),
    path('analytics/admin/', admin_stats, name='analytics-admin'),
]
