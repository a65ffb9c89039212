"""
Tests for the vendor, supplier and admin dashboards
"""
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework import status
from marketplace.core.test_utils import TestDataFactory, MarketplaceTestCase
from marketplace.orders.services import update_order_status


class VendorStatsTests(MarketplaceTestCase):

    def setUp(self):
        super().setUp()
        self.vendor = TestDataFactory.create_vendor()
        self.product = TestDataFactory.create_product(base_price='50.00')
        TestDataFactory.create_order(self.vendor, [(self.product, 2)])
        TestDataFactory.create_order(self.vendor, [(self.product, 4)])
        cancelled = TestDataFactory.create_order(self.vendor, [(self.product, 10)])
        update_order_status(cancelled, 'cancelled')
        TestDataFactory.create_order(TestDataFactory.create_vendor(), [(self.product, 1)])

    def test_vendor_stats(self):
        """Test vendor dashboard totals"""
        self.authenticate(self.vendor)
        response = self.client.get('/api/v1/analytics/vendor/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_orders'], 3)
        self.assertEqual(Decimal(response.data['total_spent']), Decimal('300.00'))
        self.assertEqual(response.data['orders_this_month'], 3)
        self.assertEqual(response.data['pending_orders'], 2)

    def test_supplier_cannot_read_vendor_stats(self):
        """Test suppliers are refused the vendor dashboard"""
        self.authenticate(TestDataFactory.create_supplier())
        response = self.client.get('/api/v1/analytics/vendor/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SupplierStatsTests(MarketplaceTestCase):

    def setUp(self):
        super().setUp()
        self.supplier = TestDataFactory.create_supplier()
        self.product = TestDataFactory.create_product()

    def test_no_offers(self):
        """Test supplier dashboard with no offers"""
        self.authenticate(self.supplier)
        response = self.client.get('/api/v1/analytics/supplier/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_supplies'], 0)
        self.assertEqual(Decimal(response.data['revenue']), Decimal('0.00'))
        self.assertEqual(response.data['fulfillment_rate'], 0)

    def test_revenue_and_fulfillment_rate(self):
        """Test supplier revenue and fulfillment rate"""
        TestDataFactory.create_offer(self.supplier, self.product, quantity=10, price='20.00', status='fulfilled')
        TestDataFactory.create_offer(self.supplier, self.product, quantity=3, price='15.50', status='fulfilled')
        TestDataFactory.create_offer(self.supplier, self.product, quantity=50, price='99.00', status='pending')
        TestDataFactory.create_offer(TestDataFactory.create_supplier(), self.product, status='fulfilled')

        self.authenticate(self.supplier)
        response = self.client.get('/api/v1/analytics/supplier/')
        self.assertEqual(response.data['total_supplies'], 3)
        self.assertEqual(Decimal(response.data['revenue']), Decimal('246.50'))
        # 2 of 3 fulfilled
        self.assertEqual(response.data['fulfillment_rate'], 67)
        self.assertEqual(response.data['pending_offers'], 1)


class AdminStatsTests(MarketplaceTestCase):

    def setUp(self):
        super().setUp()
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_vendor()
        TestDataFactory.create_supplier()
        self.product = TestDataFactory.create_product(base_price='10.00')

    def test_admin_stats(self):
        """Test admin dashboard totals"""
        TestDataFactory.create_order(self.vendor, [(self.product, 5)])
        cancelled = TestDataFactory.create_order(self.vendor, [(self.product, 7)])
        update_order_status(cancelled, 'cancelled')
        old = TestDataFactory.create_order(self.vendor, [(self.product, 1)])
        old.order_date = timezone.now() - timedelta(days=3)
        old.save()

        self.authenticate(self.admin)
        response = self.client.get('/api/v1/analytics/admin/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_vendors'], 1)
        self.assertEqual(response.data['total_suppliers'], 1)
        self.assertEqual(response.data['total_orders'], 3)
        self.assertEqual(response.data['orders_today'], 2)
        self.assertEqual(Decimal(response.data['revenue_today']), Decimal('50.00'))

    def test_admin_stats_refresh_after_new_order(self):
        """Test admin dashboard reflects a newly placed order"""
        self.authenticate(self.admin)
        self.assertEqual(self.client.get('/api/v1/analytics/admin/').data['total_orders'], 0)
        TestDataFactory.create_order(self.vendor, [(self.product, 1)])
        self.assertEqual(self.client.get('/api/v1/analytics/admin/').data['total_orders'], 1)

    def test_vendor_cannot_read_admin_stats(self):
        """Test vendors are refused the admin dashboard"""
        self.authenticate(self.vendor)
        response = self.client.get('/api/v1/analytics/admin/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
