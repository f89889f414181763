"""
Comprehensive test suite for the Pricing module
Tests: percentage math, price list preview/PDF, persistent bulk updates
"""
from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework import status

from stockdesk.catalog.models import CarLine, Product
from stockdesk.core.models import AuditLog
from stockdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .adjustment import (
    adjust_price, round_price, format_percentage, signed_percentage, confirmation_summary,
    adjustment_caption, build_price_list_rows,
)


class AdjustmentTests(TestCase):
    """Test percentage adjustment helpers"""

    def test_adjust_price(self):
        """Test positive and negative adjustments stay unrounded"""
        self.assertEqual(adjust_price(Decimal('1000'), 10), Decimal('1100'))
        self.assertEqual(adjust_price(Decimal('1000'), Decimal('-5')), Decimal('950'))
        self.assertEqual(adjust_price(Decimal('1555'), Decimal('10.5')), Decimal('1718.275'))

    def test_adjust_missing_price(self):
        """Test products without a price adjust to 0"""
        self.assertEqual(adjust_price(None, 10), Decimal('0'))
        self.assertEqual(adjust_price(Decimal('0'), 10), Decimal('0'))

    def test_inverse_adjustment_within_tolerance(self):
        """Test applying p then the inverse percentage returns the original price"""
        price = Decimal('44306')
        raised = adjust_price(price, 10)
        inverse = (Decimal('100') / Decimal('110') - 1) * 100
        restored = adjust_price(raised, inverse)
        self.assertLess(abs(restored - price), Decimal('0.01'))

    def test_round_price_half_up(self):
        """Test rounding to whole units"""
        self.assertEqual(round_price(Decimal('115.5')), Decimal('116'))
        self.assertEqual(round_price(Decimal('115.49')), Decimal('115'))

    def test_format_percentage(self):
        """Test percentages print without trailing zeros"""
        self.assertEqual(format_percentage(Decimal('10.00')), '10')
        self.assertEqual(format_percentage(Decimal('10.50')), '10.5')
        self.assertEqual(format_percentage(-5), '-5')
        self.assertEqual(signed_percentage(10), '+10%')
        self.assertEqual(signed_percentage(-5), '-5%')

    def test_confirmation_summary(self):
        """Test confirmation text for all products and for selected lines"""
        self.assertEqual(
            confirmation_summary(10, []),
            "¿Estás seguro de aplicar un +10% a TODOS los productos?\n\n"
            "Esta acción modificará la BASE DE DATOS permanentemente.",
        )
        self.assertIn('las marcas seleccionadas (2)', confirmation_summary(-5, ['FORD', 'FIAT']))

    def test_adjustment_caption(self):
        """Test price list header notes"""
        self.assertEqual(adjustment_caption(10), 'Aumento aplicado: +10%')
        self.assertEqual(adjustment_caption(-5), 'Descuento aplicado: -5%')
        self.assertEqual(adjustment_caption(0), '')

    def test_rows_printable(self):
        """Test rows without a resulting price are not printable"""
        rows = build_price_list_rows([
            TestDataFactory.product_record(product_id='a', price=Decimal('1000')),
            TestDataFactory.product_record(product_id='b', price=None),
        ], 10)
        self.assertTrue(rows[0].printable)
        self.assertFalse(rows[1].printable)
        self.assertEqual(rows[0].to_json()['adjusted_price'], '1100.00')


@override_settings(DATASTORE_BACKEND='remote')
class PriceListAPITests(TestCase):
    """Test transient price list endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.hinge = TestDataFactory.create_product(code='796D', line=CarLine.FORD, price=Decimal('1000'))
        self.lock = TestDataFactory.create_product(code='10', line=CarLine.FORD, price=Decimal('2000'))
        self.strap = TestDataFactory.create_product(code='FI508', line=CarLine.FIAT, price=None)

    def test_preview_orders_by_line_then_code(self):
        """Test preview rows and ordering"""
        response = self.client.get('/api/v1/price-lists/preview/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['code'] for row in response.data['rows']], ['FI508', '10', '796D'])
        self.assertEqual(response.data['title'], 'Lista de Precios General')

    def test_preview_with_adjustment_writes_nothing(self):
        """Test a what-if adjustment never touches stored prices"""
        response = self.client.get('/api/v1/price-lists/preview/', {'adjustment': '10', 'line': 'FORD'})
        rows = {row['code']: row for row in response.data['rows']}
        self.assertEqual(rows['796D']['adjusted_price'], '1100.00')
        self.assertEqual(rows['10']['adjusted_price'], '2200.00')
        self.assertEqual(response.data['adjustment_note'], 'Aumento aplicado: +10%')
        self.hinge.refresh_from_db()
        self.assertEqual(self.hinge.price, Decimal('1000'))

    def test_preview_exclusions(self):
        """Test excluded products are left out"""
        response = self.client.get('/api/v1/price-lists/preview/', {'exclude': f'{self.hinge.id},{self.lock.id}'})
        self.assertEqual([row['code'] for row in response.data['rows']], ['FI508'])

    def test_pdf_download(self):
        """Test PDF generation and file name"""
        response = self.client.get('/api/v1/price-lists/pdf/', {'title': 'Lista Mayorista'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))
        self.assertEqual(response['Content-Disposition'], 'attachment; filename="Lista_Precios_Lista_Mayorista.pdf"')

    def test_pdf_inline(self):
        """Test inline display option"""
        response = self.client.get('/api/v1/price-lists/pdf/', {'inline': 'true'})
        self.assertTrue(response['Content-Disposition'].startswith('inline;'))


@override_settings(DATASTORE_BACKEND='remote')
class BulkPriceUpdateAPITests(TestCase):
    """Test persistent bulk price update endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.hinge = TestDataFactory.create_product(code='796D', line=CarLine.FORD, price=Decimal('1000'))
        self.lock = TestDataFactory.create_product(code='10', line=CarLine.FORD, price=Decimal('2000'))
        self.strap = TestDataFactory.create_product(code='FI508', line=CarLine.FIAT, price=Decimal('500'))

    def test_preview_counts_scope(self):
        """Test confirmation summary and products in scope"""
        response = self.client.post('/api/v1/pricing/bulk-update/preview/',
                                    {'percentage': '10', 'lines': ['FORD']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['in_scope'], 2)
        self.assertIn('+10%', response.data['summary'])

    def test_commit_requires_confirmation(self):
        """Test nothing is written without confirmation"""
        response = self.client.post('/api/v1/pricing/bulk-update/commit/',
                                    {'percentage': '10', 'lines': ['FORD']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.hinge.refresh_from_db()
        self.assertEqual(self.hinge.price, Decimal('1000'))

    def test_commit_selected_lines(self):
        """Test FORD +10% updates only FORD prices"""
        response = self.client.post('/api/v1/pricing/bulk-update/commit/',
                                    {'percentage': '10', 'lines': ['FORD'], 'confirm': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Se actualizaron 2 precios correctamente (Ajuste: 10%).')
        self.assertEqual(Product.objects.get(pk=self.hinge.id).price, Decimal('1100'))
        self.assertEqual(Product.objects.get(pk=self.lock.id).price, Decimal('2200'))
        self.assertEqual(Product.objects.get(pk=self.strap.id).price, Decimal('500'))
        self.assertTrue(AuditLog.objects.filter(action='price_change').exists())

    def test_commit_zero_percentage(self):
        """Test a zero percentage is a no-op"""
        response = self.client.post('/api/v1/pricing/bulk-update/commit/',
                                    {'percentage': '0', 'confirm': True}, format='json')
        self.assertEqual(response.data['message'], 'El porcentaje es 0, no se realizaron cambios.')
        self.assertFalse(AuditLog.objects.filter(action='price_change').exists())

    def test_commit_invalid_line(self):
        """Test unknown lines are rejected"""
        response = self.client.post('/api/v1/pricing/bulk-update/commit/',
                                    {'percentage': '10', 'lines': ['LADA'], 'confirm': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
