from django.apps import AppConfig


class SpecialRequestsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'marketplace.special_requests'
