"""
WSGI config for the marketplace project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'marketplace.config.settings')

application = get_wsgi_application()
