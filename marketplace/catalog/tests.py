"""
Tests for bulk-discount pricing and the product catalog API
"""
from decimal import Decimal
from django.core.management import call_command
from django.test import SimpleTestCase
from io import StringIO
from rest_framework import status
from marketplace.catalog.models import Product
from marketplace.catalog.pricing import calculate_discount, discounted_unit_price, price_line, summarize
from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, MarketplaceTestCase


class PricingTests(SimpleTestCase):
    """Bulk discount arithmetic"""

    def setUp(self):
        self.product = Product(
            name='Onions', unit='kg', base_price=Decimal('40.00'),
            bulk_discount_threshold=10, bulk_discount_percentage=Decimal('5.00'),
        )

    def test_below_threshold_pays_base_price(self):
        """Test quantities below the threshold pay base price"""
        line = price_line(self.product, 9)
        self.assertEqual(line.discount_applied, Decimal('0.00'))
        self.assertEqual(line.unit_price, Decimal('40.00'))
        self.assertEqual(line.total_price, Decimal('360.00'))
        self.assertEqual(line.savings, Decimal('0.00'))

    def test_threshold_is_inclusive(self):
        """Test the discount applies at exactly the threshold"""
        line = price_line(self.product, 10)
        self.assertEqual(line.discount_applied, Decimal('5.00'))
        self.assertEqual(line.unit_price, Decimal('38.00'))
        self.assertEqual(line.total_price, Decimal('380.00'))
        self.assertEqual(line.savings, Decimal('20.00'))

    def test_no_discount_without_threshold(self):
        """Test no discount when the threshold is unset"""
        self.product.bulk_discount_threshold = 0
        self.assertEqual(calculate_discount(self.product, 1000), Decimal('0.00'))

    def test_no_discount_without_percentage(self):
        """Test no discount when the percentage is zero"""
        self.product.bulk_discount_percentage = Decimal('0.00')
        self.assertEqual(calculate_discount(self.product, 1000), Decimal('0.00'))

    def test_unit_price_rounds_half_up(self):
        """Test discounted unit price rounds half up"""
        # 10.05 * 0.95 = 9.5475
        self.assertEqual(discounted_unit_price(Decimal('10.05'), Decimal('5')), Decimal('9.55'))
        # 0.10 * 0.75 = 0.075
        self.assertEqual(discounted_unit_price(Decimal('0.10'), Decimal('25')), Decimal('0.08'))

    def test_total_is_rounded_unit_times_quantity(self):
        """Test line total uses the rounded unit price"""
        self.product.base_price = Decimal('10.05')
        line = price_line(self.product, 11)
        self.assertEqual(line.total_price, line.unit_price * 11)

    def test_quantity_must_be_positive(self):
        """Test pricing rejects non-positive quantities"""
        with self.assertRaises(ValueError):
            price_line(self.product, 0)

    def test_summarize(self):
        """Test summary of several priced lines"""
        other = Product(name='Oil', unit='L', base_price=Decimal('150.00'), bulk_discount_threshold=0,
                        bulk_discount_percentage=Decimal('0.00'))
        summary = summarize([price_line(self.product, 10), price_line(other, 2)])
        self.assertEqual(summary.total_items, 12)
        self.assertEqual(summary.total_amount, Decimal('680.00'))
        self.assertEqual(summary.total_savings, Decimal('20.00'))

    def test_summarize_empty(self):
        """Test summary of no lines"""
        summary = summarize([])
        self.assertEqual(summary.total_items, 0)
        self.assertEqual(summary.total_amount, Decimal('0.00'))


class ProductAPITests(MarketplaceTestCase):
    """Catalog listing, admin management and price quotes"""

    def setUp(self):
        super().setUp()
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_vendor()
        self.onions = TestDataFactory.create_product(name='Onions', base_price='32.00', threshold=25, percentage='8.00')
        self.oil = TestDataFactory.create_product(name='Refined Oil', base_price='145.00', category='Oils', unit='L')
        self.retired = TestDataFactory.create_product(name='Old Stock', is_active=False)

    def test_list_is_public_and_hides_inactive(self):
        """Test public product list hides inactive products"""
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [p['name'] for p in response.data]
        self.assertEqual(names, ['Onions', 'Refined Oil'])

    def test_filter_by_category_and_search(self):
        """Test filtering products by category and search"""
        response = self.client.get('/api/v1/products/?category=oils')
        self.assertEqual([p['name'] for p in response.data], ['Refined Oil'])
        response = self.client.get('/api/v1/products/?search=onio')
        self.assertEqual([p['name'] for p in response.data], ['Onions'])

    def test_filter_bulk_discount(self):
        """Test filtering products that offer a bulk discount"""
        response = self.client.get('/api/v1/products/?bulk_discount=true')
        self.assertEqual([p['name'] for p in response.data], ['Onions'])

    def test_list_cache_is_invalidated_on_product_change(self):
        """Test product list cache is dropped when a product changes"""
        self.client.get('/api/v1/products/')
        TestDataFactory.create_product(name='Besan')
        response = self.client.get('/api/v1/products/')
        self.assertIn('Besan', [p['name'] for p in response.data])

    def test_inactive_product_detail_is_404_for_public(self):
        """Test inactive product detail is hidden from the public"""
        response = self.client.get(f'/api/v1/products/{self.retired.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_can_create_product(self):
        """Test creating a product as admin"""
        self.authenticate(self.admin)
        response = self.client.post('/api/v1/products/', {
            'name': 'Paneer',
            'category': 'Dairy',
            'unit': 'kg',
            'base_price': '340.00',
            'bulk_discount_threshold': 5,
            'bulk_discount_percentage': '4.00',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['has_bulk_discount'])
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Product').exists())

    def test_percentage_without_threshold_rejected(self):
        """Test a discount percentage without a threshold is rejected"""
        self.authenticate(self.admin)
        response = self.client.post('/api/v1/products/', {
            'name': 'Maida', 'category': 'Flours', 'unit': 'kg',
            'base_price': '42.00', 'bulk_discount_percentage': '5.00',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('bulk_discount_threshold', response.data)

    def test_vendor_cannot_create_product(self):
        """Test vendors cannot create products"""
        self.authenticate(self.vendor)
        response = self.client.post('/api/v1/products/', {'name': 'X', 'category': 'Y', 'unit': 'kg', 'base_price': '1.00'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_cannot_create_product(self):
        """Test anonymous users cannot create products"""
        response = self.client.post('/api/v1/products/', {'name': 'X', 'category': 'Y', 'unit': 'kg', 'base_price': '1.00'})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_update_product(self):
        """Test updating a product as admin"""
        self.authenticate(self.admin)
        response = self.client.patch(f'/api/v1/products/{self.oil.id}/', {'base_price': '150.00'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.oil.refresh_from_db()
        self.assertEqual(self.oil.base_price, Decimal('150.00'))

    def test_delete_deactivates_product(self):
        """Test deleting a product deactivates it"""
        self.authenticate(self.admin)
        response = self.client.delete(f'/api/v1/products/{self.oil.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.oil.refresh_from_db()
        self.assertFalse(self.oil.is_active)

    def test_price_quote_applies_discount(self):
        """Test price quote applies the bulk discount"""
        response = self.client.get(f'/api/v1/products/{self.onions.id}/price/?quantity=25')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['unit_price']), Decimal('29.44'))
        self.assertEqual(Decimal(response.data['total_price']), Decimal('736.00'))
        self.assertEqual(Decimal(response.data['discount_applied']), Decimal('8.00'))

    def test_price_quote_rejects_bad_quantity(self):
        """Test price quote rejects an invalid quantity"""
        response = self.client.get(f'/api/v1/products/{self.onions.id}/price/?quantity=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get(f'/api/v1/products/{self.onions.id}/price/?quantity=0')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class SeedCatalogCommandTests(MarketplaceTestCase):

    def test_seed_is_idempotent(self):
        """Test seeding the catalog twice creates no duplicates"""
        call_command('seed_catalog', stdout=StringIO())
        count = Product.objects.count()
        self.assertGreater(count, 0)
        call_command('seed_catalog', stdout=StringIO())
        self.assertEqual(Product.objects.count(), count)
