"""
Tests for the vendor cart, order placement and the order status lifecycle
"""
from decimal import Decimal
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import ValidationError
from marketplace.catalog.pricing import MAX_QUANTITY
from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, MarketplaceTestCase
from marketplace.orders.models import Order, OrderItem, Cart
from marketplace.orders.services import update_order_status
from marketplace.supply.models import DailyDemand


class OrderPlacementTests(MarketplaceTestCase):
    """Placing orders through the API"""

    def setUp(self):
        super().setUp()
        self.vendor = TestDataFactory.create_vendor()
        self.onions = TestDataFactory.create_product(name='Onions', base_price='40.00', threshold=10, percentage='5.00')
        self.oil = TestDataFactory.create_product(name='Oil', base_price='150.00')
        self.authenticate(self.vendor)

    def order_payload(self, items=None, **overrides):
        payload = {
            'delivery_address': '12 Market Road, Pune',
            'items': items if items is not None else [
                {'product': self.onions.id, 'quantity': 10},
                {'product': self.oil.id, 'quantity': 2},
            ],
        }
        payload.update(overrides)
        return payload

    def test_place_order_prices_lines_server_side(self):
        """Test order lines are priced on the server"""
        items = [
            {'product': self.onions.id, 'quantity': 10, 'unit_price': '1.00', 'total_price': '10.00'},
            {'product': self.oil.id, 'quantity': 2},
        ]
        response = self.client.post('/api/v1/orders/', self.order_payload(items=items))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['payment_method'], 'cash_on_delivery')
        self.assertTrue(response.data['order_number'].startswith('ORD-'))

        order = Order.objects.get(pk=response.data['id'])
        onion_line = order.items.get(product=self.onions)
        self.assertEqual(onion_line.unit_price, Decimal('38.00'))
        self.assertEqual(onion_line.discount_applied, Decimal('5.00'))
        self.assertEqual(order.total_amount, Decimal('680.00'))

    def test_item_totals_match_unit_price_times_quantity(self):
        """Test item totals equal unit price times quantity"""
        self.client.post('/api/v1/orders/', self.order_payload())
        for item in OrderItem.objects.all():
            self.assertEqual(item.total_price, item.unit_price * item.quantity)
        order = Order.objects.get()
        self.assertEqual(order.total_amount, sum(item.total_price for item in order.items.all()))

    def test_order_adds_to_daily_demand(self):
        """Test placing an order adds to daily demand"""
        self.client.post('/api/v1/orders/', self.order_payload())
        self.client.post('/api/v1/orders/', self.order_payload(items=[{'product': self.onions.id, 'quantity': 5}]))
        demand = DailyDemand.objects.get(product=self.onions, date=timezone.localdate())
        self.assertEqual(demand.total_demand, 15)
        self.assertEqual(demand.remaining_demand, 15)
        self.assertEqual(demand.fulfilled_quantity, 0)

    def test_order_placement_is_audited(self):
        """Test placing an order writes an audit log"""
        response = self.client.post('/api/v1/orders/', self.order_payload())
        log = AuditLog.objects.get(action='order_place')
        self.assertEqual(log.object_reference, response.data['order_number'])
        self.assertEqual(log.user, self.vendor)

    def test_empty_items_rejected(self):
        """Test an order without items is rejected"""
        response = self.client.post('/api/v1/orders/', self.order_payload(items=[]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)
        self.assertFalse(Order.objects.exists())

    def test_zero_quantity_rejected(self):
        """Test a zero quantity is rejected"""
        response = self.client.post('/api/v1/orders/', self.order_payload(items=[{'product': self.oil.id, 'quantity': 0}]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_oversized_quantity_rejected(self):
        """Test a quantity beyond the per-line cap returns 400"""
        items = [{'product': self.oil.id, 'quantity': 10 ** 20}]
        response = self.client.post('/api/v1/orders/', self.order_payload(items=items))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())

    def test_order_total_beyond_amount_limit_rejected(self):
        """Test an order whose total overflows the amount column returns 400"""
        saffron = TestDataFactory.create_product(name='Saffron', base_price='99999999.99')
        items = [{'product': saffron.id, 'quantity': 1000}]
        response = self.client.post('/api/v1/orders/', self.order_payload(items=items))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(DailyDemand.objects.exists())

    def test_duplicate_product_rejected(self):
        """Test a product listed twice is rejected"""
        items = [{'product': self.oil.id, 'quantity': 1}, {'product': self.oil.id, 'quantity': 2}]
        response = self.client.post('/api/v1/orders/', self.order_payload(items=items))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_inactive_product_rejected(self):
        """Test ordering an inactive product is rejected"""
        self.oil.is_active = False
        self.oil.save()
        response = self.client.post('/api/v1/orders/', self.order_payload())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(DailyDemand.objects.exists())

    def test_blank_delivery_address_rejected(self):
        """Test a blank delivery address is rejected"""
        response = self.client.post('/api/v1/orders/', self.order_payload(delivery_address='  '))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('delivery_address', response.data)

    def test_unsupported_payment_method_rejected(self):
        """Test an unsupported payment method is rejected"""
        response = self.client.post('/api/v1/orders/', self.order_payload(payment_method='card'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_supplier_cannot_place_order(self):
        """Test suppliers cannot place orders"""
        self.authenticate(TestDataFactory.create_supplier())
        response = self.client.post('/api/v1/orders/', self.order_payload())
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unauthenticated_cannot_place_order(self):
        """Test anonymous users cannot place orders"""
        self.client.logout()
        response = self.client.post('/api/v1/orders/', self.order_payload())
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class OrderAccessTests(MarketplaceTestCase):
    """Who can see which orders"""

    def setUp(self):
        super().setUp()
        self.vendor = TestDataFactory.create_vendor()
        self.other_vendor = TestDataFactory.create_vendor()
        self.admin = TestDataFactory.create_admin()
        product = TestDataFactory.create_product()
        self.order = TestDataFactory.create_order(self.vendor, [(product, 3)])
        self.other_order = TestDataFactory.create_order(self.other_vendor, [(product, 1)])

    def test_vendor_lists_only_own_orders(self):
        """Test vendors list only their own orders"""
        self.authenticate(self.vendor)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['id'] for o in response.data], [self.order.id])
        self.assertEqual(len(response.data[0]['items']), 1)

    def test_admin_lists_all_orders(self):
        """Test admins list every order"""
        self.authenticate(self.admin)
        response = self.client.get('/api/v1/admin/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_filter_by_status(self):
        """Test filtering orders by status"""
        update_order_status(self.order, 'confirmed')
        self.authenticate(self.admin)
        response = self.client.get('/api/v1/orders/?status=confirmed')
        self.assertEqual([o['id'] for o in response.data], [self.order.id])

    def test_vendor_cannot_read_other_order(self):
        """Test vendors cannot read another vendor's order"""
        self.authenticate(self.vendor)
        response = self.client.get(f'/api/v1/orders/{self.other_order.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_vendor_cannot_use_admin_order_list(self):
        """Test vendors cannot use the admin order list"""
        self.authenticate(self.vendor)
        response = self.client.get('/api/v1/admin/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class OrderStatusTests(MarketplaceTestCase):
    """Lifecycle transitions and their side effects"""

    def setUp(self):
        super().setUp()
        self.vendor = TestDataFactory.create_vendor()
        self.admin = TestDataFactory.create_admin()
        self.product = TestDataFactory.create_product()
        self.order = TestDataFactory.create_order(self.vendor, [(self.product, 8)])

    def patch_status(self, new_status, url_prefix='/api/v1/admin/orders/'):
        self.authenticate(self.admin)
        return self.client.patch(f'{url_prefix}{self.order.id}/status/', {'status': new_status})

    def test_full_lifecycle(self):
        """Test an order moving through every status"""
        for new_status in ['confirmed', 'processing', 'dispatched', 'delivered']:
            response = self.patch_status(new_status)
            self.assertEqual(response.status_code, status.HTTP_200_OK, new_status)
            self.assertEqual(response.data['status'], new_status)
        self.order.refresh_from_db()
        self.assertIsNotNone(self.order.delivery_date)
        self.assertEqual(AuditLog.objects.filter(action='order_status').count(), 4)

    def test_skipping_a_step_is_rejected(self):
        """Test skipping a lifecycle step is rejected"""
        response = self.patch_status('dispatched')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'pending')

    def test_same_status_is_rejected(self):
        """Test setting the current status again is rejected"""
        response = self.patch_status('pending')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_status_is_rejected(self):
        """Test an unknown status is rejected"""
        response = self.patch_status('lost')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_terminal_states(self):
        """Test delivered and cancelled orders cannot change"""
        for terminal in ['delivered', 'cancelled']:
            self.assertEqual(Order.ALLOWED_TRANSITIONS[terminal], [])
        update_order_status(self.order, 'cancelled')
        with self.assertRaises(ValidationError):
            update_order_status(self.order, 'confirmed')

    def test_transition_table(self):
        """Test allowed order status transitions"""
        allowed = {
            ('pending', 'confirmed'), ('pending', 'cancelled'),
            ('confirmed', 'processing'), ('confirmed', 'cancelled'),
            ('processing', 'dispatched'), ('processing', 'cancelled'),
            ('dispatched', 'delivered'),
        }
        statuses = [choice for choice, _ in Order.STATUS_CHOICES]
        for current in statuses:
            for target in statuses:
                order = Order(status=current)
                self.assertEqual(order.can_transition_to(target), (current, target) in allowed, f'{current}->{target}')

    def test_admin_cancel_releases_demand(self):
        """Test admin cancellation releases daily demand"""
        self.patch_status('confirmed')
        response = self.patch_status('cancelled', url_prefix='/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        demand = DailyDemand.objects.get(product=self.product)
        self.assertEqual(demand.total_demand, 0)
        self.assertEqual(demand.remaining_demand, 0)

    def test_vendor_cannot_change_status(self):
        """Test vendors cannot change order status"""
        self.authenticate(self.vendor)
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/status/', {'status': 'confirmed'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_vendor_cancels_own_pending_order(self):
        """Test vendor cancelling their own pending order"""
        self.authenticate(self.vendor)
        response = self.client.post(f'/api/v1/orders/{self.order.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertTrue(AuditLog.objects.filter(action='order_cancel').exists())
        self.assertEqual(DailyDemand.objects.get(product=self.product).total_demand, 0)

    def test_vendor_cannot_cancel_confirmed_order(self):
        """Test vendors cannot cancel a confirmed order"""
        update_order_status(self.order, 'confirmed')
        self.authenticate(self.vendor)
        response = self.client.post(f'/api/v1/orders/{self.order.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_vendor_cannot_cancel_other_vendors_order(self):
        """Test vendors cannot cancel another vendor's order"""
        self.authenticate(TestDataFactory.create_vendor())
        response = self.client.post(f'/api/v1/orders/{self.order.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CartTests(MarketplaceTestCase):
    """Server-side vendor cart"""

    def setUp(self):
        super().setUp()
        self.vendor = TestDataFactory.create_vendor()
        self.onions = TestDataFactory.create_product(name='Onions', base_price='40.00', threshold=10, percentage='5.00')
        self.oil = TestDataFactory.create_product(name='Oil', base_price='150.00')
        self.authenticate(self.vendor)

    def test_empty_cart(self):
        """Test an empty cart"""
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'], [])
        self.assertEqual(response.data['total_items'], 0)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('0.00'))

    def test_add_merges_quantities_and_reprices(self):
        """Test adding a product twice merges and reprices the line"""
        self.client.post('/api/v1/cart/items/', {'product': self.onions.id, 'quantity': 6})
        response = self.client.post('/api/v1/cart/items/', {'product': self.onions.id, 'quantity': 4})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['items']), 1)
        line = response.data['items'][0]
        self.assertEqual(line['quantity'], 10)
        self.assertEqual(Decimal(line['unit_price']), Decimal('38.00'))
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('380.00'))
        self.assertEqual(Decimal(response.data['total_savings']), Decimal('20.00'))

    def test_cart_totals(self):
        """Test cart totals"""
        self.client.post('/api/v1/cart/items/', {'product': self.onions.id, 'quantity': 10})
        response = self.client.post('/api/v1/cart/items/', {'product': self.oil.id, 'quantity': 2})
        self.assertEqual(response.data['total_items'], 12)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('680.00'))

    def test_prices_follow_current_product_price(self):
        """Test cart prices follow the current product price"""
        self.client.post('/api/v1/cart/items/', {'product': self.oil.id, 'quantity': 1})
        self.oil.base_price = Decimal('160.00')
        self.oil.save()
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('160.00'))

    def test_set_quantity_and_remove_with_zero(self):
        """Test setting a line quantity and removing it with zero"""
        self.client.post('/api/v1/cart/items/', {'product': self.oil.id, 'quantity': 1})
        response = self.client.patch(f'/api/v1/cart/items/{self.oil.id}/', {'quantity': 3})
        self.assertEqual(response.data['items'][0]['quantity'], 3)
        response = self.client.patch(f'/api/v1/cart/items/{self.oil.id}/', {'quantity': 0})
        self.assertEqual(response.data['items'], [])

    def test_remove_item(self):
        """Test removing a cart item"""
        self.client.post('/api/v1/cart/items/', {'product': self.oil.id, 'quantity': 1})
        response = self.client.delete(f'/api/v1/cart/items/{self.oil.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'], [])
        response = self.client.delete(f'/api/v1/cart/items/{self.oil.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_clear_cart(self):
        """Test clearing the cart"""
        self.client.post('/api/v1/cart/items/', {'product': self.oil.id, 'quantity': 1})
        response = self.client.delete('/api/v1/cart/')
        self.assertEqual(response.data['items'], [])

    def test_inactive_product_cannot_be_added(self):
        """Test inactive products cannot be added to the cart"""
        self.oil.is_active = False
        self.oil.save()
        response = self.client.post('/api/v1/cart/items/', {'product': self.oil.id, 'quantity': 1})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_oversized_quantity_cannot_be_added(self):
        """Test adding a quantity beyond the cap returns 400"""
        response = self.client.post('/api/v1/cart/items/', {'product': self.oil.id, 'quantity': 10 ** 20})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Cart.objects.filter(vendor=self.vendor, items__isnull=False).exists())

    def test_merged_quantity_cannot_exceed_cap(self):
        """Test merging into an existing line is refused past the cap"""
        response = self.client.post('/api/v1/cart/items/', {'product': self.oil.id, 'quantity': MAX_QUANTITY})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/cart/items/', {'product': self.oil.id, 'quantity': 1})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('quantity', response.data)
        self.assertEqual(Cart.objects.get(vendor=self.vendor).items.get().quantity, MAX_QUANTITY)

    def test_set_quantity_beyond_cap_rejected(self):
        """Test setting a line quantity beyond the cap returns 400"""
        self.client.post('/api/v1/cart/items/', {'product': self.oil.id, 'quantity': 1})
        response = self.client.patch(f'/api/v1/cart/items/{self.oil.id}/', {'quantity': MAX_QUANTITY + 1})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_checkout_places_order_and_empties_cart(self):
        """Test checkout places an order and empties the cart"""
        self.client.post('/api/v1/cart/items/', {'product': self.onions.id, 'quantity': 10})
        response = self.client.post('/api/v1/cart/checkout/', {'delivery_address': 'Stall 4, FC Road'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('380.00'))
        self.assertFalse(Cart.objects.get(vendor=self.vendor).items.exists())
        self.assertEqual(DailyDemand.objects.get(product=self.onions).total_demand, 10)
        self.assertTrue(AuditLog.objects.filter(action='cart_checkout').exists())

    def test_checkout_empty_cart_rejected(self):
        """Test checking out an empty cart is rejected"""
        response = self.client.post('/api/v1/cart/checkout/', {'delivery_address': 'Stall 4, FC Road'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())

    def test_supplier_has_no_cart(self):
        """Test suppliers have no cart"""
        self.authenticate(TestDataFactory.create_supplier())
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
