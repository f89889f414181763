"""
Comprehensive test suite for the Exports module
Tests: dictionary translation, export rows, export list endpoints
"""
from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings
from rest_framework import status

from stockdesk.catalog.models import CarLine, Product
from stockdesk.core.models import AuditLog
from stockdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from stockdesk.datastore.exceptions import DataStoreUnavailable
from stockdesk.datastore.remote import RemoteDataStore
from .translator import translate_terms, suggest_english_details, english_details, build_export_rows


class TranslatorTests(TestCase):
    """Test naive word-by-word translation"""

    def test_whole_word_replacement(self):
        """Test dictionary terms are replaced only as whole words"""
        self.assertEqual(suggest_english_details('TENSORES', ''), 'Check strap')
        self.assertEqual(suggest_english_details('TENSORESX', ''), 'Tensoresx')

    def test_multi_word_terms(self):
        """Test multi-word terms and untranslated tokens"""
        self.assertEqual(translate_terms('Pick up 61/ 66 derecha'), 'PICKUP 61/ 66 RIGHT')
        self.assertEqual(suggest_english_details('PICK UP 61/ 66 derecha', 'Bisagra Capot'), 'Pickup 61/ 66 right')

    def test_short_details_fall_back_to_name(self):
        """Test empty or short details use the product name"""
        self.assertEqual(suggest_english_details('', 'Bisagra Capot'), 'Hinge hood')
        self.assertEqual(suggest_english_details('ab', 'Manija Puerta'), 'Handle door')

    def test_override_wins(self):
        """Test a stored English description is used verbatim"""
        product = TestDataFactory.product_record(details='derecha', details_en='Right hood hinge, heavy duty')
        self.assertEqual(english_details(product), 'Right hood hinge, heavy duty')
        product.details_en = ''
        self.assertEqual(english_details(product), 'Right')

    def test_rows_in_code_order(self):
        """Test export rows are ordered by natural code and carry price labels"""
        rows = build_export_rows([
            TestDataFactory.product_record(product_id='a', code='10', price_usd=Decimal('12.5')),
            TestDataFactory.product_record(product_id='b', code='2'),
        ])
        self.assertEqual([row.code for row in rows], ['2', '10'])
        self.assertEqual(rows[0].price_label, '-')
        self.assertEqual(rows[1].price_label, '$12.50')
        self.assertFalse(rows[1].translated)


@override_settings(DATASTORE_BACKEND='remote')
class ExportListAPITests(TestCase):
    """Test export list endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.hinge = TestDataFactory.create_product(code='796D', name='Bisagra Capot', details='derecha',
                                                    price_usd=Decimal('25'))
        self.strap = TestDataFactory.create_product(code='FI508', name='Rienda Puerta', line=CarLine.FIAT,
                                                    details='', details_en='Door check strap')

    def test_preview(self):
        """Test preview rows with translations and overrides"""
        response = self.client.get('/api/v1/export-lists/preview/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['title'], 'EXPORT PRICE LIST')
        rows = {row['code']: row for row in response.data['rows']}
        self.assertEqual(rows['796D']['description'], 'Right')
        self.assertEqual(rows['796D']['price_label'], '$25.00')
        self.assertEqual(rows['FI508']['description'], 'Door check strap')
        self.assertTrue(rows['FI508']['has_override'])
        self.assertEqual(rows['FI508']['price_label'], '-')

    def test_preview_filters(self):
        """Test line filter"""
        response = self.client.get('/api/v1/export-lists/preview/', {'line': 'FIAT'})
        self.assertEqual([row['code'] for row in response.data['rows']], ['FI508'])

    def test_pdf(self):
        """Test export PDF and file name"""
        response = self.client.get('/api/v1/export-lists/pdf/', {'title': 'Export Chile'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.content.startswith(b'%PDF'))
        self.assertEqual(response['Content-Disposition'], 'attachment; filename="Jobuzetti_Export_Export_Chile.pdf"')

    def test_editor_defaults(self):
        """Test editor starts from the suggestion when there is no override"""
        response = self.client.get(f'/api/v1/export-lists/products/{self.hinge.id}/')
        self.assertEqual(response.data['details_en'], 'Right')
        self.assertEqual(response.data['price_usd'], '25.00')

    def test_save_export_fields(self):
        """Test saving USD price and English description"""
        url = f'/api/v1/export-lists/products/{self.hinge.id}/'
        response = self.client.patch(url, {'price_usd': '31.90', 'details_en': 'Right hood hinge'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product = Product.objects.get(pk=self.hinge.id)
        self.assertEqual(product.price_usd, Decimal('31.90'))
        self.assertEqual(product.details_en, 'Right hood hinge')
        self.assertEqual(response.data['details_en'], 'Right hood hinge')
        self.assertTrue(AuditLog.objects.filter(action='update', object_id=self.hinge.id).exists())

    def test_save_negative_price_rejected(self):
        """Test USD prices cannot be negative"""
        url = f'/api/v1/export-lists/products/{self.hinge.id}/'
        response = self.client.patch(url, {'price_usd': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_translate(self):
        """Test translation suggestions from text or from a stored product"""
        response = self.client.post('/api/v1/export-lists/translate/', {'details': 'Bisagra izquierda'}, format='json')
        self.assertEqual(response.data['suggestion'], 'Hinge left')
        response = self.client.post('/api/v1/export-lists/translate/', {'product_id': self.strap.id}, format='json')
        self.assertEqual(response.data['suggestion'], 'Strap door')
        response = self.client.post('/api/v1/export-lists/translate/', {'product_id': 'missing'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_save_survives_failed_reread(self):
        """Test saved export fields are echoed back when the product cannot be read back"""
        url = f'/api/v1/export-lists/products/{self.hinge.id}/'
        stored = RemoteDataStore().get(self.hinge.id)
        with mock.patch.object(RemoteDataStore, 'get', side_effect=[stored, DataStoreUnavailable('down')]), \
                self.assertLogs('stockdesk.datastore.gateway', level='WARNING'):
            response = self.client.patch(url, {'price_usd': '31.90', 'details_en': 'Right hood hinge'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['details_en'], 'Right hood hinge')
        self.assertEqual(response.data['price_usd'], '31.90')
        self.assertEqual(Product.objects.get(pk=self.hinge.id).price_usd, Decimal('31.90'))
