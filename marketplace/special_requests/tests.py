"""
Tests for vendor special requests and supplier responses
"""
from rest_framework import status
from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, MarketplaceTestCase
from marketplace.special_requests.models import SpecialRequest, SpecialRequestResponse


class SpecialRequestTests(MarketplaceTestCase):

    def setUp(self):
        super().setUp()
        self.vendor = TestDataFactory.create_vendor()
        self.other_vendor = TestDataFactory.create_vendor()
        self.supplier = TestDataFactory.create_supplier()
        self.other_supplier = TestDataFactory.create_supplier()
        self.admin = TestDataFactory.create_admin()

    def test_vendor_creates_request(self):
        """Test creating a special request as vendor"""
        self.authenticate(self.vendor)
        response = self.client.post('/api/v1/special-requests/', {
            'item_name': 'Kashmiri Chilli',
            'description': 'Whole, deep red',
            'quantity': 5,
            'unit': 'kg',
            'budget_per_unit': '450.00',
            'urgency': 'high',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'open')
        self.assertEqual(response.data['vendor'], self.vendor.id)
        self.assertEqual(response.data['responses'], [])

    def test_invalid_urgency_rejected(self):
        """Test an invalid urgency is rejected"""
        self.authenticate(self.vendor)
        response = self.client.post('/api/v1/special-requests/', {
            'item_name': 'Saffron', 'description': 'x', 'quantity': 1, 'unit': 'g', 'urgency': 'asap',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('urgency', response.data)

    def test_supplier_cannot_create_request(self):
        """Test suppliers cannot create special requests"""
        self.authenticate(self.supplier)
        response = self.client.post('/api/v1/special-requests/', {
            'item_name': 'Saffron', 'description': 'x', 'quantity': 1, 'unit': 'g',
        })
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_listing_by_role(self):
        """Test special request listing per role"""
        own = TestDataFactory.create_special_request(self.vendor)
        TestDataFactory.create_special_request(self.other_vendor)

        self.authenticate(self.vendor)
        response = self.client.get('/api/v1/special-requests/')
        self.assertEqual([r['id'] for r in response.data], [own.id])
        response = self.client.get('/api/v1/special-requests/vendor/')
        self.assertEqual([r['id'] for r in response.data], [own.id])

        self.authenticate(self.supplier)
        response = self.client.get('/api/v1/special-requests/')
        self.assertEqual(len(response.data), 2)
        self.assertIn('vendor_email', response.data[0])

        self.authenticate(self.admin)
        response = self.client.get('/api/v1/special-requests/')
        self.assertEqual(len(response.data), 2)

    def test_supplier_cannot_use_vendor_listing(self):
        """Test suppliers cannot use the vendor request listing"""
        self.authenticate(self.supplier)
        response = self.client.get('/api/v1/special-requests/vendor/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_supplier_responds(self):
        """Test a supplier responding to a request"""
        special_request = TestDataFactory.create_special_request(self.vendor)
        self.authenticate(self.supplier)
        response = self.client.post(f'/api/v1/special-requests/{special_request.id}/respond/', {
            'available_quantity': 5,
            'price_per_unit': '420.00',
            'message': 'Can deliver tomorrow',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['supplier'], self.supplier.id)
        special_request.refresh_from_db()
        self.assertEqual(special_request.status, SpecialRequest.STATUS_RESPONDED)
        self.assertTrue(AuditLog.objects.filter(action='request_respond').exists())

    def test_vendor_cannot_respond(self):
        """Test vendors cannot respond to requests"""
        special_request = TestDataFactory.create_special_request(self.vendor)
        self.authenticate(self.vendor)
        response = self.client.post(f'/api/v1/special-requests/{special_request.id}/respond/', {
            'available_quantity': 5, 'price_per_unit': '420.00',
        })
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_accept_response_rejects_siblings(self):
        """Test accepting a response rejects the others"""
        special_request = TestDataFactory.create_special_request(self.vendor)
        chosen = TestDataFactory.create_special_response(special_request, self.supplier)
        other = TestDataFactory.create_special_response(special_request, self.other_supplier)

        self.authenticate(self.vendor)
        response = self.client.post(f'/api/v1/special-requests/{special_request.id}/responses/{chosen.id}/accept/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'fulfilled')

        chosen.refresh_from_db()
        other.refresh_from_db()
        self.assertEqual(chosen.status, SpecialRequestResponse.STATUS_ACCEPTED)
        self.assertEqual(other.status, SpecialRequestResponse.STATUS_REJECTED)
        self.assertTrue(AuditLog.objects.filter(action='request_accept').exists())

    def test_fulfilled_request_takes_no_more_responses(self):
        """Test a fulfilled request takes no more responses"""
        special_request = TestDataFactory.create_special_request(self.vendor)
        chosen = TestDataFactory.create_special_response(special_request, self.supplier)
        self.authenticate(self.vendor)
        self.client.post(f'/api/v1/special-requests/{special_request.id}/responses/{chosen.id}/accept/')

        self.authenticate(self.other_supplier)
        response = self.client.post(f'/api/v1/special-requests/{special_request.id}/respond/', {
            'available_quantity': 5, 'price_per_unit': '400.00',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_owner_accepts(self):
        """Test only the requesting vendor can accept a response"""
        special_request = TestDataFactory.create_special_request(self.vendor)
        chosen = TestDataFactory.create_special_response(special_request, self.supplier)
        self.authenticate(self.other_vendor)
        response = self.client.post(f'/api/v1/special-requests/{special_request.id}/responses/{chosen.id}/accept/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_accept_response_of_another_request(self):
        """Test accepting a response from another request is rejected"""
        special_request = TestDataFactory.create_special_request(self.vendor)
        elsewhere = TestDataFactory.create_special_response(
            TestDataFactory.create_special_request(self.vendor), self.supplier
        )
        self.authenticate(self.vendor)
        response = self.client.post(f'/api/v1/special-requests/{special_request.id}/responses/{elsewhere.id}/accept/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_vendor_cancels_open_request(self):
        """Test vendor cancelling an open request"""
        special_request = TestDataFactory.create_special_request(self.vendor)
        self.authenticate(self.vendor)
        response = self.client.post(f'/api/v1/special-requests/{special_request.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        response = self.client.post(f'/api/v1/special-requests/{special_request.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
