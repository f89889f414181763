"""
Test utilities and factories for creating test data
"""
import random
import shutil
import string
import tempfile
from decimal import Decimal
from pathlib import Path

from django.contrib.auth import get_user_model
from django.test import override_settings
from rest_framework.test import APIClient

from stockdesk.catalog.models import CarLine, Product
from stockdesk.core.views import CustomTokenObtainPairSerializer
from stockdesk.datastore.records import ProductRecord

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_product(code=None, name=None, line=CarLine.FORD, details='', stock=10, price=Decimal('1000'),
                       price_usd=None, details_en=None):
        """Create a product in the remote store"""
        if not code:
            code = TestDataFactory.random_string(5).upper()
        return Product.objects.create(
            code=code,
            name=name or f'Producto {code}',
            line=line,
            details=details,
            stock=stock,
            price=price,
            price_usd=price_usd,
            details_en=details_en,
        )

    @staticmethod
    def product_record(product_id=None, code='796D', name='Bisagra Capot', line=CarLine.FORD.value,
                       details='Pick up 61/66 derecha', stock=10, price=Decimal('1500'), **extra):
        """In-memory product record (no store involved)"""
        return ProductRecord(
            id=product_id or TestDataFactory.random_string(12),
            code=code,
            name=name,
            line=line,
            details=details,
            stock=stock,
            price=price,
            **extra,
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user (token carries the username and staff claims)"""
        refresh = CustomTokenObtainPairSerializer.get_token(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()


class LocalMirrorMixin:
    """
    Runs a TestCase against a throwaway local mirror file
    (DATASTORE_BACKEND=local).
    """

    def setUp(self):
        super().setUp()
        self.mirror_dir = tempfile.mkdtemp()
        self.mirror_path = Path(self.mirror_dir) / 'mirror.json'
        self.mirror_settings = override_settings(
            DATASTORE_BACKEND='local',
            DATASTORE_MIRROR_PATH=str(self.mirror_path),
        )
        self.mirror_settings.enable()

    def tearDown(self):
        self.mirror_settings.disable()
        shutil.rmtree(self.mirror_dir, ignore_errors=True)
        super().tearDown()
