"""
Tests for supply offers and daily demand aggregation
"""
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import ValidationError
from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, MarketplaceTestCase
from marketplace.orders.services import update_order_status
from marketplace.supply.models import DailyDemand, SupplyOffer
from marketplace.supply.services import (
    add_demand, release_demand, allocate_offer, change_offer_status, update_pending_offer
)


class DailyDemandServiceTests(MarketplaceTestCase):
    """Additive demand updates per product per day"""

    def setUp(self):
        super().setUp()
        self.product = TestDataFactory.create_product()
        self.supplier = TestDataFactory.create_supplier()
        self.today = timezone.localdate()

    def assertConsistent(self, demand):
        demand.refresh_from_db()
        self.assertEqual(demand.remaining_demand, demand.total_demand - demand.fulfilled_quantity)

    def test_add_creates_then_accumulates(self):
        """Test adding demand creates the row then accumulates"""
        demand = add_demand(self.product, self.today, 10)
        self.assertEqual(demand.total_demand, 10)
        demand = add_demand(self.product, self.today, 5)
        self.assertEqual(demand.total_demand, 15)
        self.assertEqual(DailyDemand.objects.filter(product=self.product).count(), 1)
        self.assertConsistent(demand)

    def test_days_are_kept_apart(self):
        """Test demand is kept per day"""
        add_demand(self.product, self.today, 10)
        add_demand(self.product, self.today - timedelta(days=1), 4)
        self.assertEqual(DailyDemand.objects.get(date=self.today).total_demand, 10)
        self.assertEqual(DailyDemand.objects.get(date=self.today - timedelta(days=1)).total_demand, 4)

    def test_allocation_is_capped_at_remaining(self):
        """Test allocation is capped at remaining demand"""
        add_demand(self.product, self.today, 10)
        offer = TestDataFactory.create_offer(self.supplier, self.product, quantity=25)
        self.assertEqual(allocate_offer(offer), 10)
        demand = DailyDemand.objects.get(product=self.product)
        self.assertEqual(demand.fulfilled_quantity, 10)
        self.assertEqual(demand.remaining_demand, 0)

    def test_allocation_without_demand_allocates_nothing(self):
        """Test allocation without demand allocates nothing"""
        offer = TestDataFactory.create_offer(self.supplier, self.product, quantity=5)
        self.assertEqual(allocate_offer(offer), 0)
        self.assertFalse(DailyDemand.objects.exists())

    def test_release_never_drops_below_fulfilled(self):
        """Test releasing demand never drops below fulfilled"""
        add_demand(self.product, self.today, 10)
        allocate_offer(TestDataFactory.create_offer(self.supplier, self.product, quantity=6))
        demand = release_demand(self.product, self.today, 10)
        self.assertEqual(demand.total_demand, 6)
        self.assertEqual(demand.remaining_demand, 0)
        self.assertConsistent(demand)

    def test_release_without_row_is_a_noop(self):
        """Test releasing demand without a row does nothing"""
        self.assertIsNone(release_demand(self.product, self.today, 3))

    def test_order_then_offer_then_cancel(self):
        """Test order, accepted offer and cancellation together"""
        vendor = TestDataFactory.create_vendor()
        order = TestDataFactory.create_order(vendor, [(self.product, 12)])
        offer = TestDataFactory.create_offer(self.supplier, self.product, quantity=5)
        offer, _ = change_offer_status(offer, 'accepted')
        self.assertEqual(offer.allocated_quantity, 5)

        update_order_status(order, 'cancelled')
        demand = DailyDemand.objects.get(product=self.product)
        self.assertEqual(demand.total_demand, 5)
        self.assertEqual(demand.fulfilled_quantity, 5)
        self.assertEqual(demand.remaining_demand, 0)


class SupplyOfferAPITests(MarketplaceTestCase):
    """Offer creation, editing and admin decisions"""

    def setUp(self):
        super().setUp()
        self.supplier = TestDataFactory.create_supplier()
        self.other_supplier = TestDataFactory.create_supplier()
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_vendor()
        self.product = TestDataFactory.create_product(name='Tomatoes')
        self.today = timezone.localdate()

    def offer_payload(self, **overrides):
        payload = {
            'product': self.product.id,
            'available_quantity': 20,
            'price_per_unit': '35.00',
            'delivery_date': str(self.today + timedelta(days=1)),
        }
        payload.update(overrides)
        return payload

    def test_supplier_creates_pending_offer(self):
        """Test creating a supply offer starts pending"""
        self.authenticate(self.supplier)
        response = self.client.post('/api/v1/supply-offers/', self.offer_payload(status='accepted'))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['supplier'], self.supplier.id)
        self.assertEqual(response.data['demand_date'], str(self.today))
        self.assertEqual(Decimal(response.data['total_value']), Decimal('700.00'))
        self.assertTrue(AuditLog.objects.filter(action='offer_create').exists())

    def test_invalid_offer_rejected(self):
        """Test invalid offer quantity and price are rejected"""
        self.authenticate(self.supplier)
        response = self.client.post('/api/v1/supply-offers/', self.offer_payload(available_quantity=0))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('available_quantity', response.data)
        response = self.client.post('/api/v1/supply-offers/', self.offer_payload(price_per_unit='0.00'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price_per_unit', response.data)

    def test_vendor_cannot_create_offer(self):
        """Test vendors cannot create supply offers"""
        self.authenticate(self.vendor)
        response = self.client.post('/api/v1/supply-offers/', self.offer_payload())
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_cannot_create_offer(self):
        """Test admins cannot create supply offers"""
        self.authenticate(self.admin)
        response = self.client.post('/api/v1/supply-offers/', self.offer_payload())
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_supplier_lists_own_offers_admin_lists_all(self):
        """Test offer listing for suppliers and admins"""
        own = TestDataFactory.create_offer(self.supplier, self.product)
        TestDataFactory.create_offer(self.other_supplier, self.product)

        self.authenticate(self.supplier)
        response = self.client.get('/api/v1/supply-offers/')
        self.assertEqual([o['id'] for o in response.data], [own.id])

        self.authenticate(self.admin)
        response = self.client.get('/api/v1/supply-offers/')
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/supply-offers/?status=accepted')
        self.assertEqual(response.data, [])

    def test_supplier_edits_pending_offer(self):
        """Test editing a pending offer"""
        offer = TestDataFactory.create_offer(self.supplier, self.product)
        self.authenticate(self.supplier)
        response = self.client.patch(f'/api/v1/supply-offers/{offer.id}/', {'available_quantity': 30})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['available_quantity'], 30)

    def test_cannot_edit_other_suppliers_offer(self):
        """Test suppliers cannot edit another supplier's offer"""
        offer = TestDataFactory.create_offer(self.other_supplier, self.product)
        self.authenticate(self.supplier)
        response = self.client.patch(f'/api/v1/supply-offers/{offer.id}/', {'available_quantity': 30})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cannot_edit_decided_offer(self):
        """Test a decided offer cannot be edited"""
        offer = TestDataFactory.create_offer(self.supplier, self.product, status='rejected')
        self.authenticate(self.supplier)
        response = self.client.patch(f'/api/v1/supply-offers/{offer.id}/', {'available_quantity': 30})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_edit_rechecks_status_after_acceptance(self):
        """Test an edit loaded before acceptance cannot change the accepted offer"""
        TestDataFactory.create_order(self.vendor, [(self.product, 15)])
        offer = TestDataFactory.create_offer(self.supplier, self.product, quantity=10)
        stale = SupplyOffer.objects.get(pk=offer.pk)
        change_offer_status(offer, SupplyOffer.STATUS_ACCEPTED)

        with self.assertRaises(ValidationError):
            update_pending_offer(stale, {'available_quantity': 500})

        offer.refresh_from_db()
        self.assertEqual(offer.status, SupplyOffer.STATUS_ACCEPTED)
        self.assertEqual(offer.available_quantity, 10)
        self.assertEqual(offer.allocated_quantity, 10)

    def test_oversized_offer_quantity_rejected(self):
        """Test an offer quantity beyond the cap returns 400"""
        self.authenticate(self.supplier)
        response = self.client.post('/api/v1/supply-offers/', self.offer_payload(available_quantity=10 ** 20))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('available_quantity', response.data)

    def test_admin_accepts_offer_against_demand(self):
        """Test accepting an offer allocates it against demand"""
        TestDataFactory.create_order(self.vendor, [(self.product, 15)])
        offer = TestDataFactory.create_offer(self.supplier, self.product, quantity=10)
        self.authenticate(self.admin)
        response = self.client.patch(f'/api/v1/supply-offers/{offer.id}/status/', {'status': 'accepted'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'accepted')
        self.assertEqual(response.data['allocated_quantity'], 10)

        demand = DailyDemand.objects.get(product=self.product, date=self.today)
        self.assertEqual(demand.fulfilled_quantity, 10)
        self.assertEqual(demand.remaining_demand, 5)
        self.assertTrue(AuditLog.objects.filter(action='offer_status').exists())

    def test_offer_status_transitions(self):
        """Test allowed offer status transitions"""
        offer = TestDataFactory.create_offer(self.supplier, self.product)
        self.authenticate(self.admin)
        url = f'/api/v1/supply-offers/{offer.id}/status/'
        self.assertEqual(self.client.patch(url, {'status': 'fulfilled'}).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.patch(url, {'status': 'accepted'}).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.patch(url, {'status': 'rejected'}).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.patch(url, {'status': 'fulfilled'}).status_code, status.HTTP_200_OK)
        offer.refresh_from_db()
        self.assertEqual(offer.status, SupplyOffer.STATUS_FULFILLED)

    def test_supplier_cannot_decide_offers(self):
        """Test suppliers cannot accept or reject offers"""
        offer = TestDataFactory.create_offer(self.supplier, self.product)
        self.authenticate(self.supplier)
        response = self.client.patch(f'/api/v1/supply-offers/{offer.id}/status/', {'status': 'accepted'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class DailyDemandAPITests(MarketplaceTestCase):

    def setUp(self):
        super().setUp()
        self.supplier = TestDataFactory.create_supplier()
        self.vendor = TestDataFactory.create_vendor()
        self.onions = TestDataFactory.create_product(name='Onions')
        self.oil = TestDataFactory.create_product(name='Oil')
        self.today = timezone.localdate()
        add_demand(self.onions, self.today, 5)
        add_demand(self.oil, self.today, 30)
        add_demand(self.oil, self.today - timedelta(days=1), 7)

    def test_today_sorted_by_remaining(self):
        """Test today's demand sorted by remaining quantity"""
        self.authenticate(self.supplier)
        response = self.client.get('/api/v1/daily-demand/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['product_name'] for row in response.data], ['Oil', 'Onions'])
        self.assertEqual(response.data[0]['remaining_demand'], 30)

    def test_specific_date(self):
        """Test demand for a specific date"""
        self.authenticate(self.supplier)
        yesterday = self.today - timedelta(days=1)
        response = self.client.get(f'/api/v1/daily-demand/?date={yesterday}')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['total_demand'], 7)

    def test_bad_date(self):
        """Test a malformed demand date is rejected"""
        self.authenticate(self.supplier)
        response = self.client.get('/api/v1/daily-demand/?date=yesterday')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/daily-demand/?date=2024-02-30')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_vendor_cannot_view_demand(self):
        """Test vendors cannot view daily demand"""
        self.authenticate(self.vendor)
        response = self.client.get('/api/v1/daily-demand/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
