"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from marketplace.catalog.models import Product
from marketplace.orders.services import place_order
from marketplace.special_requests.models import SpecialRequest, SpecialRequestResponse
from marketplace.supply.models import SupplyOffer
from decimal import Decimal
from datetime import timedelta
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(role='vendor', username=None, email=None, password='testpass123', is_superuser=False):
        """Create a test user with the given marketplace role"""
        if not username:
            username = f'{role}_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username.lower()}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_staff=is_superuser,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_vendor(**kwargs):
        return TestDataFactory.create_user(role='vendor', **kwargs)

    @staticmethod
    def create_supplier(**kwargs):
        return TestDataFactory.create_user(role='supplier', **kwargs)

    @staticmethod
    def create_admin(**kwargs):
        return TestDataFactory.create_user(role='admin', **kwargs)

    @staticmethod
    def create_product(name=None, base_price='100.00', threshold=0, percentage='0.00',
                       category='Vegetables', unit='kg', is_active=True):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        return Product.objects.create(
            name=name,
            description=f'Test product {name}',
            category=category,
            unit=unit,
            base_price=Decimal(base_price),
            bulk_discount_threshold=threshold,
            bulk_discount_percentage=Decimal(percentage),
            is_active=is_active,
        )

    @staticmethod
    def create_order(vendor, lines, delivery_address='12 Market Road'):
        """Place an order through the service layer; lines are (product, quantity) pairs"""
        return place_order(
            vendor,
            [{'product': product, 'quantity': quantity} for product, quantity in lines],
            delivery_address,
        )

    @staticmethod
    def create_offer(supplier, product, quantity=10, price='90.00', demand_date=None, status='pending'):
        """Create a test supply offer"""
        today = timezone.localdate()
        return SupplyOffer.objects.create(
            supplier=supplier,
            product=product,
            available_quantity=quantity,
            price_per_unit=Decimal(price),
            delivery_date=today + timedelta(days=1),
            demand_date=demand_date or today,
            status=status,
        )

    @staticmethod
    def create_special_request(vendor, item_name=None, quantity=5, unit='kg'):
        """Create a test special request"""
        if not item_name:
            item_name = f'Item_{TestDataFactory.random_string(6)}'
        return SpecialRequest.objects.create(
            vendor=vendor,
            item_name=item_name,
            description=f'Need {item_name}',
            quantity=quantity,
            unit=unit,
        )

    @staticmethod
    def create_special_response(special_request, supplier, quantity=5, price='50.00'):
        return SpecialRequestResponse.objects.create(
            request=special_request,
            supplier=supplier,
            available_quantity=quantity,
            price_per_unit=Decimal(price),
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()


class MarketplaceTestCase(TestCase):
    """TestCase that starts every test with an empty cache"""

    def setUp(self):
        super().setUp()
        cache.clear()
        self.client = AuthenticatedAPIClient()

    def authenticate(self, user):
        return self.client.authenticate_user(user)
