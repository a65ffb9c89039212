from django.urls import path
from .views import supply_offer_list_create, supply_offer_detail, supply_offer_status, daily_demand_list

urlpatterns = [
    path('supply-offers/', supply_offer_list_create, name='supply-offer-list'),
    path('supply-offers/<int:pk>/', supply_offer_detail, name='supply-offer-detail'),
    path('supply-offers/<int:pk>/status/', supply_offer_status, name='supply-offer-status'),
    path('daily-demand/', daily_demand_list, name='daily-demand-list'),
]
