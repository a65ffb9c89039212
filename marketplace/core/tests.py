"""
Tests for accounts, JWT auth, role gates and the audit trail
"""
from django.core.cache import cache
from django.utils import timezone
from rest_framework import status
from marketplace.core.cache_utils import (
    DASHBOARD_PREFIX, PRODUCTS_LIST_PREFIX, cache_dashboard_stats, cache_products_list,
    invalidate_products_cache, make_cache_key,
)
from marketplace.core.models import AuditLog
from marketplace.core.test_utils import TestDataFactory, AuthenticatedAPIClient, MarketplaceTestCase
from marketplace.core.utils import create_audit_log


class AuthTests(MarketplaceTestCase):
    """Registration, login and token refresh"""

    def register_payload(self, **overrides):
        payload = {
            'email': 'Ravi@Example.com',
            'password': 'Str0ngPass!x',
            'password_confirm': 'Str0ngPass!x',
            'first_name': 'Ravi',
            'last_name': 'Kumar',
            'role': 'vendor',
        }
        payload.update(overrides)
        return payload

    def test_register_vendor_returns_tokens(self):
        """Test vendor registration returns tokens"""
        response = self.client.post('/api/v1/auth/register/', self.register_payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['email'], 'ravi@example.com')
        self.assertEqual(response.data['user']['role'], 'vendor')

    def test_register_supplier(self):
        """Test supplier registration"""
        response = self.client.post('/api/v1/auth/register/', self.register_payload(role='supplier'))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'supplier')

    def test_register_cannot_self_assign_admin(self):
        """Test registration cannot pick the admin role"""
        response = self.client.post('/api/v1/auth/register/', self.register_payload(role='admin'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('role', response.data)

    def test_register_password_mismatch(self):
        """Test registration with mismatched passwords"""
        response = self.client.post('/api/v1/auth/register/', self.register_payload(password_confirm='Other0ne!x'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password_confirm', response.data)

    def test_register_duplicate_email(self):
        """Test registration with an existing email"""
        TestDataFactory.create_vendor(email='ravi@example.com')
        response = self.client.post('/api/v1/auth/register/', self.register_payload(email='ravi@example.com'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_register_duplicate_email_ignores_case(self):
        """Test an email differing only in case is rejected as a duplicate"""
        TestDataFactory.create_vendor(email='Ravi@Example.com')
        response = self.client.post('/api/v1/auth/register/', self.register_payload(email='RAVI@example.COM'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_login_with_email_and_password(self):
        """Test login with email and password"""
        user = TestDataFactory.create_supplier(email='supplier@test.com')
        response = self.client.post('/api/v1/auth/login/', {'email': 'supplier@test.com', 'password': 'testpass123'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['id'], user.id)
        self.assertEqual(response.data['user']['role'], 'supplier')

    def test_login_wrong_password(self):
        """Test login with a wrong password"""
        TestDataFactory.create_vendor(email='vendor@test.com')
        response = self.client.post('/api/v1/auth/login/', {'email': 'vendor@test.com', 'password': 'wrong'})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_email_is_case_insensitive(self):
        """Test login matches the registered email regardless of case"""
        register = self.client.post('/api/v1/auth/register/', self.register_payload(email='Mixed@Test.com'))
        self.assertEqual(register.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/auth/login/', {'email': 'Mixed@Test.com', 'password': 'Str0ngPass!x'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['email'], 'mixed@test.com')

    def test_refresh_token(self):
        """Test refreshing an access token"""
        TestDataFactory.create_vendor(email='vendor@test.com')
        login = self.client.post('/api/v1/auth/login/', {'email': 'vendor@test.com', 'password': 'testpass123'})
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me_requires_token(self):
        """Test profile requires authentication"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_current_user(self):
        """Test profile returns the current user"""
        user = TestDataFactory.create_vendor()
        self.authenticate(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], user.email)

    def test_me_cannot_change_role(self):
        """Test profile update ignores role changes"""
        user = TestDataFactory.create_vendor()
        self.authenticate(user)
        response = self.client.patch('/api/v1/auth/me/', {'role': 'admin', 'phone': '9876543210'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.role, 'vendor')
        self.assertEqual(user.phone, '9876543210')


class AdminUserTests(MarketplaceTestCase):
    """Admin user management and role gates"""

    def setUp(self):
        super().setUp()
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_vendor()
        self.supplier = TestDataFactory.create_supplier()

    def test_list_users_filtered_by_role(self):
        """Test admin user list filtered by role"""
        self.authenticate(self.admin)
        response = self.client.get('/api/v1/admin/users/?role=supplier')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u['id'] for u in response.data], [self.supplier.id])

    def test_non_admin_is_forbidden(self):
        """Test non-admins are refused user management"""
        self.authenticate(self.vendor)
        response = self.client.get('/api/v1/admin/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['detail'], 'Insufficient permissions')

    def test_superuser_passes_admin_gate(self):
        """Test superusers pass the admin gate"""
        superuser = TestDataFactory.create_user(role='vendor', is_superuser=True)
        self.authenticate(superuser)
        response = self.client.get('/api/v1/admin/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_deactivate_user_blocks_login(self):
        """Test a deactivated user cannot log in"""
        self.authenticate(self.admin)
        response = self.client.patch(f'/api/v1/admin/users/{self.vendor.id}/status/', {'is_active': False})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.vendor.refresh_from_db()
        self.assertFalse(self.vendor.is_active)
        self.assertTrue(AuditLog.objects.filter(action='user_status', object_id=str(self.vendor.id)).exists())

        anonymous = AuthenticatedAPIClient()
        login = anonymous.post('/api/v1/auth/login/', {'email': self.vendor.email, 'password': 'testpass123'})
        self.assertEqual(login.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_cannot_deactivate_self(self):
        """Test admins cannot deactivate their own account"""
        self.authenticate(self.admin)
        response = self.client.patch(f'/api/v1/admin/users/{self.admin.id}/status/', {'is_active': False})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AuditLogTests(MarketplaceTestCase):
    """Audit trail visibility"""

    def setUp(self):
        super().setUp()
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_vendor()
        self.other_vendor = TestDataFactory.create_vendor()
        self.own_log = create_audit_log(action='order_place', model_name='Order', object_id=1, user=self.vendor)
        self.other_log = create_audit_log(action='order_place', model_name='Order', object_id=2, user=self.other_vendor)

    def test_create_audit_log_skips_missing_fields(self):
        """Test audit log is skipped without required fields"""
        self.assertIsNone(create_audit_log(action=None, model_name='Order', object_id=1))

    def test_vendor_sees_only_own_logs(self):
        """Test vendors only see their own audit logs"""
        self.authenticate(self.vendor)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([log['id'] for log in response.data], [self.own_log.id])

    def test_admin_sees_all_logs(self):
        """Test admins see every audit log"""
        self.authenticate(self.admin)
        response = self.client.get('/api/v1/audit-logs/?action=order_place')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_vendor_cannot_read_other_log(self):
        """Test vendors cannot read another user's audit log"""
        self.authenticate(self.vendor)
        response = self.client.get(f'/api/v1/audit-logs/{self.other_log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_filter_logs_by_date_range(self):
        """Test audit logs filtered by creation date"""
        self.authenticate(self.admin)
        today = timezone.localdate().isoformat()
        response = self.client.get(f'/api/v1/audit-logs/?date_from={today}&date_to={today}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_malformed_date_filter_is_rejected(self):
        """Test a malformed date filter returns 400"""
        self.authenticate(self.admin)
        response = self.client.get('/api/v1/audit-logs/?date_from=not-a-date')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('date_from', response.data)


class CacheInvalidationTests(MarketplaceTestCase):
    """Prefix-scoped cache invalidation on the local-memory backend"""

    def test_invalidation_only_touches_its_prefix(self):
        """Test account changes leave cached product listings alone"""
        products_key = make_cache_key(PRODUCTS_LIST_PREFIX, search='onion')
        dashboard_key = make_cache_key(DASHBOARD_PREFIX, 'admin')
        cache_products_list(products_key, ['onion'])
        cache_dashboard_stats(dashboard_key, {'total_orders': 0})
        cache.set('unrelated', 'kept')

        TestDataFactory.create_vendor()

        self.assertIsNone(cache.get(dashboard_key))
        self.assertEqual(cache.get(products_key), ['onion'])
        self.assertEqual(cache.get('unrelated'), 'kept')

    def test_invalidate_products_cache_clears_tracked_keys(self):
        """Test every cached product listing is dropped on invalidation"""
        first = make_cache_key(PRODUCTS_LIST_PREFIX, search='onion')
        second = make_cache_key(PRODUCTS_LIST_PREFIX, category='spices')
        cache_products_list(first, ['onion'])
        cache_products_list(second, ['chilli'])

        invalidate_products_cache()

        self.assertIsNone(cache.get(first))
        self.assertIsNone(cache.get(second))
