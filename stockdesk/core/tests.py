"""
Test suite for the core module
Tests: authentication, navigation surface, audit log
"""
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from .models import AuditLog
from .routes import SCREENS, resolve_screen, INVENTORY_ROUTE
from .test_utils import TestDataFactory, AuthenticatedAPIClient
from .utils import create_audit_log


class AuthenticationTests(TestCase):
    """Test JWT login and identity"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='mostrador', password='testpass123')
        self.client = APIClient()

    def test_login(self):
        """Test login returns access and refresh tokens"""
        response = self.client.post('/api/v1/auth/login/', {'username': 'mostrador', 'password': 'testpass123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_wrong_password(self):
        """Test invalid credentials"""
        response = self.client.post('/api/v1/auth/login/', {'username': 'mostrador', 'password': 'nope'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me(self):
        """Test identity carried by the token"""
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)
        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'mostrador')
        self.assertEqual(response.data['id'], str(self.user.id))


class NavigationTests(TestCase):
    """Test screens and unknown-route handling"""

    def test_unknown_route_resolves_to_inventory(self):
        """Test unknown routes fall back to the inventory screen"""
        self.assertEqual(resolve_screen('/nada').route, INVENTORY_ROUTE)
        self.assertEqual(resolve_screen('/precios').title, 'Lista de Precios')

    def test_screen_list(self):
        """Test every screen exposes its API entry point"""
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        response = client.get('/api/v1/screens/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), len(SCREENS))
        endpoints = {screen['route']: screen['endpoint'] for screen in response.data}
        self.assertEqual(endpoints['/'], '/api/v1/products/')
        self.assertEqual(endpoints['/ingreso'], '/api/v1/stock-entry/')
        self.assertEqual(endpoints['/pedidos'], '/api/v1/cart/')

    def test_unknown_path_redirects(self):
        """Test unknown paths land on the inventory listing"""
        response = self.client.get('/inventario/viejo')
        self.assertRedirects(response, '/api/v1/products/', fetch_redirect_response=False)


class AuditLogTests(TestCase):
    """Test audit log recording and admin-only access"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log_requires_fields(self):
        """Test incomplete entries are skipped"""
        self.assertIsNone(create_audit_log(action='create', model_name='Product'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_create_audit_log_failure_is_swallowed(self):
        """Test a failing audit write never breaks the operation"""
        with mock.patch.object(AuditLog.objects, 'create', side_effect=DatabaseError('down')):
            with self.assertLogs('stockdesk.core.utils', level='ERROR'):
                result = create_audit_log(action='create', model_name='Product', object_id='p1')
        self.assertIsNone(result)

    def test_list_admin_only(self):
        """Test only staff can read the audit log"""
        create_audit_log(action='stock_entry', model_name='Product', object_id='p1', changes={'quantity': 5})
        create_audit_log(action='price_change', model_name='Product', object_id='bulk')

        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'action': 'stock_entry'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['changes'], {'quantity': 5})

        log_id = response.data[0]['id']
        response = self.client.get(f'/api/v1/audit-logs/{log_id}/')
        self.assertEqual(response.data['object_id'], 'p1')
