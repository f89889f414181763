"""
Comprehensive test suite for the Catalog module
Tests: query engine, bulk import parsing, product and stock intake endpoints
"""
import os
import tempfile
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status

from stockdesk.core.models import AuditLog
from stockdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient, LocalMirrorMixin
from stockdesk.datastore.exceptions import DataStoreUnavailable
from stockdesk.datastore.remote import RemoteDataStore
from .importer import parse_bulk_text, infer_line, parse_number
from .models import CarLine, Product
from .query import (
    natural_key, stock_status, filter_products, sort_products, price_list_order,
    suggest_products, find_by_code, search_orderable, ORDER_SEARCH_FIELDS,
)


def record(code, name='Bisagra', line='FORD', stock=10, details='', product_id=None):
    return TestDataFactory.product_record(product_id=product_id or code, code=code, name=name, line=line,
                                          stock=stock, details=details)


class QueryEngineTests(TestCase):
    """Test pure catalog query functions"""

    def setUp(self):
        self.products = [
            record('10', name='Cierre de Capot', line='FORD', stock=3),
            record('2', name='bisagra capot', line='CHEVROLET', stock=25, details='Pick up derecha'),
            record('796D', name='Bisagra Capot', line='FORD', stock=0),
            record('FI508', name='Rienda Puerta', line='FIAT', stock=100),
        ]

    def test_natural_code_order(self):
        """Test digit runs compare numerically"""
        codes = [p.code for p in sort_products(self.products, 'code')]
        self.assertEqual(codes, ['2', '10', '796D', 'FI508'])

    def test_natural_key_case_insensitive(self):
        """Test codes compare without case"""
        self.assertEqual(natural_key('796d'), natural_key('796D'))

    def test_sort_desc_by_stock(self):
        """Test numeric descending stock order"""
        stocks = [p.stock for p in sort_products(self.products, 'stock', 'desc')]
        self.assertEqual(stocks, [100, 25, 3, 0])

    def test_sort_by_name_case_insensitive(self):
        """Test name order ignores case"""
        names = [p.name for p in sort_products(self.products, 'name')]
        self.assertEqual(names[0].lower(), 'bisagra capot')

    def test_text_search_on_details(self):
        """Test inventory search covers details"""
        result = filter_products(self.products, 'derecha')
        self.assertEqual([p.code for p in result], ['2'])

    def test_text_search_ignores_details_for_orders(self):
        """Test order search only covers name and code"""
        self.assertEqual(filter_products(self.products, 'derecha', ORDER_SEARCH_FIELDS), [])

    def test_line_filter_and_exclusions(self):
        """Test line membership and excluded ids"""
        result = filter_products(self.products, lines=['FORD'], exclude=['10'])
        self.assertEqual([p.code for p in result], ['796D'])

    def test_empty_line_set_means_all(self):
        """Test no selected lines keeps every product"""
        self.assertEqual(len(filter_products(self.products, lines=[])), 4)

    def test_price_list_order(self):
        """Test line first, then natural code"""
        codes = [p.code for p in price_list_order(self.products)]
        self.assertEqual(codes, ['2', 'FI508', '10', '796D'])

    def test_stock_status(self):
        """Test stock thresholds"""
        self.assertEqual(stock_status(21), 'high')
        self.assertEqual(stock_status(20), 'medium')
        self.assertEqual(stock_status(6), 'medium')
        self.assertEqual(stock_status(5), 'low')
        self.assertEqual(stock_status(0), 'out')
        self.assertEqual(stock_status(-2), 'out')

    def test_suggestions_limit(self):
        """Test stock-entry suggestions are capped at six"""
        products = [record(f'B{i}') for i in range(10)]
        self.assertEqual(len(suggest_products(products, 'b')), 6)
        self.assertEqual(suggest_products(products, ''), [])

    def test_find_by_code_prefers_exact_match(self):
        """Test the exact code wins over an earlier partial match"""
        products = [record('796DX'), record('796D')]
        self.assertEqual(find_by_code(products, '796d').code, '796D')
        self.assertEqual(find_by_code(products, '96D').code, '796DX')
        self.assertIsNone(find_by_code(products, 'ZZZ'))

    def test_order_search_in_stock_only(self):
        """Test the order picker skips products without stock and returns at most five"""
        result = search_orderable(self.products, 'capot')
        self.assertEqual([p.code for p in result], ['10', '2'])
        many = [record(f'M{i}', name='Manija') for i in range(8)]
        self.assertEqual(len(search_orderable(many, 'manija')), 5)


class BulkImportParserTests(TestCase):
    """Test bulk import text parsing"""

    def test_semicolon_line(self):
        """Test the reference spreadsheet row"""
        result = parse_bulk_text('796D;Bisagra Capot;FORD;PICK UP 61/ 66 derecha;0;44306')
        self.assertEqual(result.errors, [])
        product = result.products[0]
        self.assertEqual(product['code'], '796D')
        self.assertEqual(product['line'], 'FORD')
        self.assertEqual(product['stock'], 0)
        self.assertEqual(product['price'], Decimal('44306'))
        self.assertEqual(product['details'], 'PICK UP 61/ 66 derecha')

    def test_header_is_skipped(self):
        """Test header rows are never imported and not counted as errors"""
        text = 'CÓDIGO;NOMBRE;LÍNEA;DETALLES;STOCK;PRECIO\n796D;Bisagra;FORD;derecha;1;10'
        result = parse_bulk_text(text)
        self.assertEqual(len(result.products), 1)
        self.assertEqual(result.errors, [])
        self.assertEqual(parse_bulk_text('code,name,line,details').products, [])

    def test_short_line_counts_one_error(self):
        """Test a row with fewer than four columns is skipped with exactly one error"""
        result = parse_bulk_text('796D;Bisagra;FORD;derecha;1;10\n\nX1;Solo dos\n797I,Bisagra,FORD,izquierda')
        self.assertEqual(len(result.products), 2)
        self.assertEqual(result.errors, ['Línea 3: Formato inválido (Faltan columnas)'])

    def test_comma_separator(self):
        """Test comma separated rows when no semicolon is present"""
        product = parse_bulk_text('A1,Manija,fiat,exterior,5,1200').products[0]
        self.assertEqual(product['line'], 'FIAT')
        self.assertEqual(product['price'], Decimal('1200'))

    def test_line_inference(self):
        """Test line rules and the UNIVERSAL default"""
        self.assertEqual(infer_line('Mercedes'), CarLine.MERCEDES.value)
        self.assertEqual(infer_line('VOLKSWAGEN AMAROK'), CarLine.VOLKSWAGEN.value)
        self.assertEqual(infer_line('chevy'), CarLine.CHEVROLET.value)
        self.assertEqual(infer_line('Honda Civic'), CarLine.HONDA.value)
        self.assertEqual(infer_line('Lada'), CarLine.UNIVERSAL.value)
        self.assertEqual(infer_line(' toyota '), CarLine.TOYOTA.value)

    def test_number_cleanup(self):
        """Test non-numeric characters are stripped and garbage becomes 0"""
        self.assertEqual(parse_number('$ 1500'), Decimal('1500'))
        self.assertEqual(parse_number('abc'), Decimal('0'))
        self.assertEqual(parse_number('1.2.3'), Decimal('0'))
        self.assertEqual(parse_number(''), Decimal('0'))

    def test_missing_numeric_columns(self):
        """Test four-column rows import with zero stock and price"""
        product = parse_bulk_text('A1;Manija;FIAT;exterior').products[0]
        self.assertEqual(product['stock'], 0)
        self.assertEqual(product['price'], Decimal('0'))

    def test_out_of_range_numbers_are_rejected(self):
        """Test prices and stock beyond the stored column size skip the row"""
        result = parse_bulk_text(
            'A1;Bisagra;FORD;x;1;1234567890123456789\n'
            'A2;Bisagra;FORD;x;99999999999;10\n'
            'A3;Bisagra;FORD;x;1;999999999999.99'
        )
        self.assertEqual([p['code'] for p in result.products], ['A3'])
        self.assertEqual(result.errors, [
            'Línea 1: Valor numérico fuera de rango',
            'Línea 2: Valor numérico fuera de rango',
        ])

    def test_summary_messages(self):
        """Test success and empty summaries"""
        result = parse_bulk_text('A1;Manija;FIAT;x\nbad')
        self.assertEqual(result.summary(), '¡Éxito! Se cargaron 1 productos. (Filas omitidas: 1)')
        self.assertEqual(parse_bulk_text('A1;Manija;FIAT;x').summary(), '¡Éxito! Se cargaron 1 productos.')
        self.assertEqual(parse_bulk_text('bad').summary(), 'No se encontraron productos válidos para importar.')


@override_settings(DATASTORE_BACKEND='remote')
class ProductAPITests(TestCase):
    """Test product endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(code='796D', name='Bisagra Capot', stock=50,
                                                      details='Pick up 61/66 derecha')
        TestDataFactory.create_product(code='FI508', name='Rienda Puerta', line=CarLine.FIAT, stock=3)

    def test_requires_authentication(self):
        """Test anonymous requests are rejected"""
        self.client.logout()
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_products(self):
        """Test inventory listing with stock status"""
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]['code'], '796D')
        self.assertEqual(response.data[0]['stock_status'], 'high')
        self.assertEqual(response['X-Data-Store'], 'remote')

    def test_list_products_filtered(self):
        """Test search, line filter and sorting parameters"""
        response = self.client.get('/api/v1/products/', {'line': 'FIAT'})
        self.assertEqual([p['code'] for p in response.data], ['FI508'])
        response = self.client.get('/api/v1/products/', {'search': 'derecha'})
        self.assertEqual([p['code'] for p in response.data], ['796D'])
        response = self.client.get('/api/v1/products/', {'sort': 'stock', 'order': 'asc'})
        self.assertEqual([p['code'] for p in response.data], ['FI508', '796D'])

    def test_list_invalid_sort(self):
        """Test an unknown sort field is rejected"""
        response = self.client.get('/api/v1/products/', {'sort': 'price'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_product(self):
        """Test new product entry"""
        data = {'code': '1001', 'name': 'Cierre de Capot', 'line': 'FORD', 'stock': 20, 'price': '2200'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Producto creado exitosamente')
        product = Product.objects.get(code='1001')
        self.assertEqual(product.price, Decimal('2200'))
        self.assertIsNone(product.price_usd)
        self.assertTrue(AuditLog.objects.filter(action='create', object_reference='1001').exists())

    def test_create_product_requires_fields(self):
        """Test code, name and line are required"""
        response = self.client.post('/api/v1/products/', {'code': '1001'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)
        self.assertIn('line', response.data)

    def test_create_product_invalid_line(self):
        """Test lines outside the closed set are rejected"""
        data = {'code': '1001', 'name': 'Cierre', 'line': 'LADA'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_product(self):
        """Test product detail"""
        response = self.client.get(f'/api/v1/products/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Bisagra Capot')

    def test_get_missing_product(self):
        """Test unknown product returns 404"""
        response = self.client.get('/api/v1/products/missing/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_patch_product(self):
        """Test manual edit with audit trail"""
        data = {'price': '1999.50', 'details_en': 'Right hood hinge'}
        response = self.client.patch(f'/api/v1/products/{self.product.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.price, Decimal('1999.50'))
        self.assertEqual(self.product.details_en, 'Right hood hinge')
        log = AuditLog.objects.get(action='update', object_id=self.product.id)
        self.assertIn('price', log.changes)
        self.assertEqual(log.username, self.user.username)

    def test_patch_survives_failed_reread(self):
        """Test a saved edit answers with the edited record when the read back fails"""
        stored = RemoteDataStore().get(self.product.id)
        with mock.patch.object(RemoteDataStore, 'get', side_effect=[stored, DataStoreUnavailable('down')]):
            response = self.client.patch(f'/api/v1/products/{self.product.id}/', {'stock': 44}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock'], 44)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 44)
        self.assertTrue(AuditLog.objects.filter(action='update', object_id=self.product.id).exists())

    def test_patch_with_null_keeps_value(self):
        """Test null fields do not clear stored values"""
        response = self.client.patch(f'/api/v1/products/{self.product.id}/', {'price': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.price, Decimal('1000'))

    def test_write_failure_returns_generic_error(self):
        """Test a store outage on write returns 503 with the generic alert"""
        with mock.patch.object(RemoteDataStore, 'insert', side_effect=DataStoreUnavailable('down')):
            data = {'code': '1001', 'name': 'Cierre', 'line': 'FORD'}
            response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertIn('message', response.data)
        self.assertFalse(Product.objects.filter(code='1001').exists())

    def test_line_list(self):
        """Test the closed set of lines"""
        response = self.client.get('/api/v1/lines/')
        self.assertEqual(len(response.data), 12)
        self.assertIn({'value': 'MERCEDES BENZ', 'label': 'MERCEDES BENZ'}, response.data)


@override_settings(DATASTORE_BACKEND='remote')
class BulkImportAPITests(TestCase):
    """Test bulk import endpoint and management command"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_bulk_import(self):
        """Test valid rows are stored and skipped rows reported"""
        text = (
            'CÓDIGO;NOMBRE;LÍNEA;DETALLES;STOCK;PRECIO\n'
            '796D;Bisagra Capot;FORD;PICK UP 61/ 66 derecha;0;44306\n'
            '797I;Bisagra Capot;Volkswagen;izquierda;4;44306\n'
            'rota'
        )
        response = self.client.post('/api/v1/products/bulk-import/', {'text': text}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created'], 2)
        self.assertEqual(response.data['message'], '¡Éxito! Se cargaron 2 productos. (Filas omitidas: 1)')
        self.assertEqual(response.data['store_message'], 'Se cargaron 2 productos correctamente.')
        self.assertEqual(Product.objects.get(code='796D').price, Decimal('44306'))
        self.assertEqual(Product.objects.get(code='797I').line, 'VOLKSWAGEN')
        self.assertFalse(Product.objects.filter(code__iexact='código').exists())
        self.assertTrue(AuditLog.objects.filter(action='bulk_import').exists())

    def test_bulk_import_nothing_valid(self):
        """Test text without valid rows writes nothing"""
        response = self.client.post('/api/v1/products/bulk-import/', {'text': 'CODE;NAME\nrota'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'No se encontraron productos válidos para importar.')
        self.assertEqual(Product.objects.count(), 0)

    def test_import_products_command(self):
        """Test the import command reads a file through the gateway"""
        with tempfile.NamedTemporaryFile('w', suffix='.csv', delete=False, encoding='utf-8') as f:
            f.write('CODIGO;NOMBRE;LINEA;DETALLES;STOCK;PRECIO\nA1;Manija;FIAT;exterior;5;1200\n')
            path = f.name
        try:
            out = StringIO()
            call_command('import_products', path, stdout=out)
        finally:
            os.unlink(path)
        self.assertIn('Se cargaron 1 productos correctamente.', out.getvalue())
        self.assertEqual(Product.objects.get(code='A1').stock, 5)

    def test_import_products_dry_run(self):
        """Test dry run parses without writing"""
        with tempfile.NamedTemporaryFile('w', suffix='.csv', delete=False, encoding='utf-8') as f:
            f.write('A1;Manija;FIAT;exterior;5;1200\n')
            path = f.name
        try:
            call_command('import_products', path, '--dry-run', stdout=StringIO())
        finally:
            os.unlink(path)
        self.assertEqual(Product.objects.count(), 0)


class BulkImportLocalMirrorTests(LocalMirrorMixin, TestCase):
    """Test bulk import against the local mirror"""

    def setUp(self):
        super().setUp()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_oversized_price_never_reaches_the_mirror(self):
        """Test an oversized price is rejected and the inventory stays readable"""
        response = self.client.post('/api/v1/products/bulk-import/',
                                    {'text': 'A1;Bisagra;FORD;x;1;1234567890123456789'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors'], ['Línea 1: Valor numérico fuera de rango'])

        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('A1', [p['code'] for p in response.data])


@override_settings(DATASTORE_BACKEND='remote')
class StockEntryAPITests(TestCase):
    """Test stock intake endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(code='796D', name='Bisagra Capot', stock=50)
        TestDataFactory.create_product(code='796DX', name='Bisagra Capot Reforzada', stock=2)

    def test_suggestions(self):
        """Test code/name autocomplete"""
        response = self.client.get('/api/v1/stock-entry/suggestions/', {'q': '796'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_lookup_exact_first(self):
        """Test exact code lookup"""
        response = self.client.get('/api/v1/stock-entry/lookup/', {'code': '796d'})
        self.assertEqual(response.data['id'], self.product.id)

    def test_lookup_not_found(self):
        """Test unknown code lookup"""
        response = self.client.get('/api/v1/stock-entry/lookup/', {'code': 'ZZZ'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_stock_entry(self):
        """Test received units are added to stock"""
        data = {'product_id': self.product.id, 'quantity': 10}
        response = self.client.post('/api/v1/stock-entry/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['product']['stock'], 60)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 60)
        self.assertTrue(AuditLog.objects.filter(action='stock_entry', object_id=self.product.id).exists())

    def test_stock_entry_requires_positive_quantity(self):
        """Test zero or negative quantities are rejected before any write"""
        for quantity in (0, -5):
            data = {'product_id': self.product.id, 'quantity': quantity}
            response = self.client.post('/api/v1/stock-entry/', data, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 50)

    def test_stock_entry_unknown_product(self):
        """Test intake for an unknown product"""
        response = self.client.post('/api/v1/stock-entry/', {'product_id': 'missing', 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_stock_entry_survives_failed_reread(self):
        """Test stored intake is reported even when the product cannot be read back"""
        data = {'product_id': self.product.id, 'quantity': 5}
        with mock.patch.object(RemoteDataStore, 'get', side_effect=DataStoreUnavailable('down')), \
                self.assertLogs('stockdesk.datastore.gateway', level='WARNING'):
            response = self.client.post('/api/v1/stock-entry/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['product'])
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 55)
