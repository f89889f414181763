"""
Test suite for PDF documents
"""
from datetime import datetime
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from stockdesk.core.test_utils import TestDataFactory
from stockdesk.datastore.records import OrderRecord
from stockdesk.exports.translator import build_export_rows
from stockdesk.pricing.adjustment import build_price_list_rows
from .renderer import (
    format_ars, format_amount, document_filename, remito_prefix, issue_date,
    remito_rows, remito_total, render_price_list, render_remito, render_export_list,
)


class FormattingTests(TestCase):
    """Test number, date and file name helpers"""

    def test_format_ars(self):
        """Test es-AR grouping with two decimals"""
        self.assertEqual(format_ars(Decimal('44306')), '44.306,00')
        self.assertEqual(format_ars(Decimal('1234567.5')), '1.234.567,50')
        self.assertEqual(format_ars(None), '0,00')

    def test_format_amount(self):
        """Test whole amounts print without decimals"""
        self.assertEqual(format_amount(Decimal('4500.00')), '4500')
        self.assertEqual(format_amount(Decimal('99.5')), '99.50')

    def test_document_filename(self):
        """Test whitespace in labels becomes underscores"""
        self.assertEqual(document_filename('Lista_Precios', 'Lista de Precios  General'),
                         'Lista_Precios_Lista_de_Precios_General.pdf')

    @override_settings(DOCUMENT_BRAND='Acme')
    def test_brand_prefix(self):
        """Test the remito prefix follows the configured brand"""
        self.assertEqual(remito_prefix(), 'Remito_Acme')

    @override_settings(TIME_ZONE='UTC')
    def test_issue_date(self):
        """Test day/month/year issue date"""
        when = timezone.make_aware(datetime(2024, 3, 5, 12, 0))
        self.assertEqual(issue_date(when), '05/03/2024')


class RemitoTests(TestCase):
    """Test remito rows and rendering"""

    def setUp(self):
        product = TestDataFactory.product_record(product_id='p1', price=Decimal('1500'))
        self.items = [{**product.to_json(), 'quantity': 3}]

    def test_rows_and_total(self):
        """Test unit price times quantity"""
        rows = remito_rows(self.items)
        self.assertEqual(rows[0].subtotal, Decimal('4500'))
        self.assertEqual(rows[0].description, 'Bisagra Capot - Pick up 61/66 derecha')
        self.assertEqual(format_amount(remito_total(rows)), '4500')

    def test_rows_without_price(self):
        """Test items without price count as 0"""
        rows = remito_rows([{'code': 'X', 'name': 'Resorte', 'quantity': 2}])
        self.assertEqual(remito_total(rows), Decimal('0'))

    def test_render_remito(self):
        """Test a remito is a PDF document"""
        order = OrderRecord(id='a1b2c3d4e5', customer_name='Taller Gomez', items=self.items, total_items=3)
        self.assertEqual(order.reference, 'A1B2C3D4')
        self.assertTrue(render_remito(order).startswith(b'%PDF'))

    def test_render_long_remito_paginates(self):
        """Test many lines render across pages"""
        items = [{**self.items[0], 'code': f'C{i}'} for i in range(120)]
        order = OrderRecord(id='bulk', customer_name='Taller Gomez', items=items, total_items=360)
        pdf = render_remito(order)
        self.assertTrue(pdf.startswith(b'%PDF'))
        self.assertGreater(pdf.count(b'/Type /Page') - pdf.count(b'/Type /Pages'), 1)


class ListDocumentTests(TestCase):
    """Test price and export list rendering"""

    def test_price_list(self):
        """Test price list with adjustment note"""
        rows = build_price_list_rows([
            TestDataFactory.product_record(product_id='a', price=Decimal('1000')),
            TestDataFactory.product_record(product_id='b', price=None),
        ], 10)
        pdf = render_price_list(rows, 'Lista de Precios General', 'Aumento aplicado: +10%')
        self.assertTrue(pdf.startswith(b'%PDF'))

    def test_export_list(self):
        """Test export list rendering"""
        rows = build_export_rows([TestDataFactory.product_record(product_id='a', price_usd=Decimal('10'))])
        self.assertTrue(render_export_list(rows, 'EXPORT PRICE LIST').startswith(b'%PDF'))
