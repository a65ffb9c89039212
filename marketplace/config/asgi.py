"""
ASGI config for the marketplace project.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'marketplace.config.settings')

application = get_asgi_application()
