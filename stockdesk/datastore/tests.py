"""
Test suite for the data store gateway
Tests: remote tier, local mirror, tier selection, fallback and bulk price updates
"""
import json
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import TestCase, override_settings

from stockdesk.catalog.models import CarLine, Product
from stockdesk.core.test_utils import TestDataFactory, LocalMirrorMixin
from stockdesk.orders.models import Order
from .exceptions import DataStoreUnavailable, RecordNotFound
from .gateway import (
    DataStoreGateway, MSG_NO_MATCHING_PRODUCTS, MSG_PERCENTAGE_ZERO, get_gateway,
)
from .local import LocalMirrorDataStore, ORDERS_COLLECTION, PRODUCTS_COLLECTION, SAMPLE_PRODUCTS
from .records import OrderRecord, ProductRecord, json_safe, strip_undefined
from .remote import RemoteDataStore


class RecordTests(TestCase):
    """Test record conversion helpers"""

    def test_strip_undefined(self):
        """Test None values are removed and falsy values kept"""
        self.assertEqual(
            strip_undefined({'a': None, 'b': 0, 'c': '', 'd': 'x'}),
            {'b': 0, 'c': '', 'd': 'x'},
        )

    def test_product_record_from_document(self):
        """Test documents with string prices are converted to Decimal"""
        record = ProductRecord.from_document('1', {'code': '796D', 'name': 'Bisagra', 'price': '1500', 'stock': '3'})
        self.assertEqual(record.price, Decimal('1500'))
        self.assertEqual(record.stock, 3)
        self.assertEqual(record.line, CarLine.UNIVERSAL.value)
        self.assertIsNone(record.price_usd)

    def test_product_record_to_document_skips_none(self):
        """Test undefined optional fields never reach a write"""
        record = TestDataFactory.product_record(product_id='1')
        document = record.to_document()
        self.assertNotIn('price_usd', document)
        self.assertNotIn('id', document)

    def test_json_safe(self):
        """Test decimals become strings recursively"""
        self.assertEqual(json_safe({'items': [{'price': Decimal('1.50')}]}), {'items': [{'price': '1.50'}]})

    def test_order_reference(self):
        """Test the printable reference is the first 8 characters upper-cased"""
        order = OrderRecord(customer_name='Taller', items=[], total_items=0, id='abcdef1234567890')
        self.assertEqual(order.reference, 'ABCDEF12')


class RemoteDataStoreTests(TestCase):
    """Test the database-backed tier"""

    def setUp(self):
        self.store = RemoteDataStore(batch_size=2)
        self.product = TestDataFactory.create_product(code='796D', stock=10, price=Decimal('1500'))

    def test_is_available(self):
        """Test the health check passes on a reachable database"""
        self.assertTrue(self.store.is_available())

    def test_adjust_stock_by(self):
        """Test stock increments are applied in place"""
        self.store.adjust_stock_by(self.product.id, 5)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 15)

    def test_adjust_stock_missing_product(self):
        """Test adjusting an unknown product raises RecordNotFound"""
        with self.assertRaises(RecordNotFound):
            self.store.adjust_stock_by('missing', 1)

    def test_update_missing_product(self):
        """Test updating an unknown product raises RecordNotFound"""
        with self.assertRaises(RecordNotFound):
            self.store.update('missing', {'name': 'X'})

    def test_insert_many_in_batches(self):
        """Test bulk insert writes every document across batches"""
        documents = [{'code': f'C{i}', 'name': f'Producto {i}', 'line': 'FORD', 'stock': i} for i in range(5)]
        created = self.store.insert_many(documents)
        self.assertEqual(created, 5)
        self.assertEqual(Product.objects.filter(code__startswith='C').count(), 5)

    def test_create_order_decrements_stock(self):
        """Test the order is stored and stock decremented together"""
        order = OrderRecord(
            customer_name='Taller Norte',
            items=[{'id': self.product.id, 'code': '796D', 'quantity': 3}],
            total_items=3,
        )
        order_id = self.store.create_order(order)
        self.assertEqual(order.id, order_id)
        self.assertTrue(Order.objects.filter(pk=order_id).exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)

    def test_create_order_is_all_or_nothing(self):
        """Test a missing product rolls back the order and the other decrements"""
        order = OrderRecord(
            customer_name='Taller Norte',
            items=[
                {'id': self.product.id, 'quantity': 2},
                {'id': 'missing', 'quantity': 1},
            ],
            total_items=3,
        )
        with self.assertRaises(RecordNotFound):
            self.store.create_order(order)
        self.assertEqual(Order.objects.count(), 0)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)

    def test_database_error_becomes_unavailable(self):
        """Test database failures surface as DataStoreUnavailable"""
        from django.db import OperationalError
        with mock.patch.object(Product.objects, 'using', side_effect=OperationalError('connection refused')):
            with self.assertRaises(DataStoreUnavailable):
                self.store.fetch_all()


class LocalMirrorDataStoreTests(LocalMirrorMixin, TestCase):
    """Test the JSON mirror used in degraded mode"""

    def setUp(self):
        super().setUp()
        self.store = LocalMirrorDataStore(self.mirror_path)

    def read_mirror(self):
        with open(self.mirror_path, encoding='utf-8') as f:
            return json.load(f)

    def test_seeds_sample_products(self):
        """Test a missing mirror is created with the sample catalog"""
        products = self.store.fetch_all()
        self.assertEqual(len(products), len(SAMPLE_PRODUCTS))
        self.assertEqual(products[0].code, '796D')
        self.assertTrue(self.mirror_path.exists())
        self.assertEqual(self.read_mirror()[ORDERS_COLLECTION], [])

    def test_truncated_mirror_is_left_untouched(self):
        """Test an unreadable file raises and is never overwritten"""
        for index in range(40):
            self.store.insert({'code': f'T{index}', 'name': 'Tensor', 'line': 'FORD', 'stock': index})
        content = self.mirror_path.read_bytes()
        truncated = content[:len(content) // 2]
        self.mirror_path.write_bytes(truncated)

        with self.assertLogs('stockdesk.datastore.local', level='ERROR'):
            with self.assertRaises(DataStoreUnavailable):
                self.store.fetch_all()
        with self.assertLogs('stockdesk.datastore.local', level='ERROR'):
            with self.assertRaises(DataStoreUnavailable):
                self.store.adjust_stock_by('1', 1)
        self.assertEqual(self.mirror_path.read_bytes(), truncated)

    def test_writes_leave_no_temp_files(self):
        """Test each write swaps in a finished file without leftovers"""
        self.store.fetch_all()
        self.store.update('1', {'stock': 3})
        self.store.insert({'code': 'X9', 'name': 'Manija', 'line': 'FIAT'})
        self.assertEqual([p.name for p in self.mirror_path.parent.iterdir()], [self.mirror_path.name])
        self.assertEqual(self.store.get('1').stock, 3)

    def test_insert_and_get(self):
        """Test inserted products get a fresh id and no undefined fields"""
        record = self.store.insert({'code': 'X1', 'name': 'Manija', 'line': 'FIAT', 'price': None})
        stored = self.store.get(record.id)
        self.assertEqual(stored.code, 'X1')
        document = next(doc for doc in self.read_mirror()[PRODUCTS_COLLECTION] if doc['id'] == record.id)
        self.assertNotIn('price', document)

    def test_update_and_adjust_stock(self):
        """Test partial updates and stock increments persist"""
        self.store.update('1', {'details_en': 'Hood hinge'})
        self.store.adjust_stock_by('1', 7)
        product = self.store.get('1')
        self.assertEqual(product.details_en, 'Hood hinge')
        self.assertEqual(product.stock, 57)

    def test_update_prices(self):
        """Test batched price changes are written"""
        updated = self.store.update_prices([('1', Decimal('1650')), ('2', Decimal('1650'))])
        self.assertEqual(updated, 2)
        self.assertEqual(self.store.get('1').price, Decimal('1650'))

    def test_create_order(self):
        """Test orders land in the orders collection with stock decremented"""
        order = OrderRecord(customer_name='Cliente', items=[{'id': '5', 'quantity': 4}], total_items=4)
        order_id = self.store.create_order(order)
        self.assertEqual(self.store.get('5').stock, 96)
        orders = self.read_mirror()[ORDERS_COLLECTION]
        self.assertEqual(len(orders), 1)
        self.assertEqual(orders[0]['id'], order_id)

    def test_create_order_missing_product_writes_nothing(self):
        """Test a missing product leaves stock and orders untouched"""
        order = OrderRecord(
            customer_name='Cliente',
            items=[{'id': '5', 'quantity': 4}, {'id': 'missing', 'quantity': 1}],
            total_items=5,
        )
        with self.assertRaises(RecordNotFound):
            self.store.create_order(order)
        self.assertEqual(self.store.get('5').stock, 100)
        self.assertEqual(self.read_mirror()[ORDERS_COLLECTION], [])


class GatewayBulkPriceTests(TestCase):
    """Test persistent percentage updates through the gateway"""

    def setUp(self):
        self.gateway = DataStoreGateway(RemoteDataStore())
        self.ford_a = TestDataFactory.create_product(code='F1', line=CarLine.FORD, price=Decimal('1000'))
        self.ford_b = TestDataFactory.create_product(code='F2', line=CarLine.FORD, price=Decimal('2000'))
        self.fiat = TestDataFactory.create_product(code='FI1', line=CarLine.FIAT, price=Decimal('500'))

    def test_percentage_on_one_line(self):
        """Test +10% on FORD rounds to whole units and leaves other lines untouched"""
        message = self.gateway.bulk_adjust_price(Decimal('10'), ['FORD'])
        self.assertEqual(message, "Se actualizaron 2 precios correctamente (Ajuste: 10%).")
        self.ford_a.refresh_from_db()
        self.ford_b.refresh_from_db()
        self.fiat.refresh_from_db()
        self.assertEqual(self.ford_a.price, Decimal('1100'))
        self.assertEqual(self.ford_b.price, Decimal('2200'))
        self.assertEqual(self.fiat.price, Decimal('500'))

    def test_all_lines_when_none_selected(self):
        """Test an empty line selection applies to every product"""
        message = self.gateway.bulk_adjust_price(Decimal('-5'), [])
        self.assertIn('3 precios', message)
        self.assertIn('-5%', message)
        self.fiat.refresh_from_db()
        self.assertEqual(self.fiat.price, Decimal('475'))

    def test_rounding_half_up(self):
        """Test halves round away from zero"""
        product = TestDataFactory.create_product(code='R1', line=CarLine.HONDA, price=Decimal('105'))
        self.gateway.bulk_adjust_price(Decimal('10'), ['HONDA'])
        product.refresh_from_db()
        self.assertEqual(product.price, Decimal('116'))

    def test_zero_percentage_writes_nothing(self):
        """Test a zero percentage returns the no-op message without any write"""
        with mock.patch.object(RemoteDataStore, 'update_prices') as update_prices:
            message = self.gateway.bulk_adjust_price(0, ['FORD'])
        self.assertEqual(message, MSG_PERCENTAGE_ZERO)
        update_prices.assert_not_called()

    def test_empty_scope(self):
        """Test a selection with no products returns the no-match message"""
        self.assertEqual(self.gateway.bulk_adjust_price(10, ['TOYOTA']), MSG_NO_MATCHING_PRODUCTS)

    def test_products_without_price_are_skipped(self):
        """Test unpriced products are neither written nor counted"""
        unpriced = TestDataFactory.create_product(code='U1', line=CarLine.DODGE, price=None)
        message = self.gateway.bulk_adjust_price(10, ['DODGE'])
        self.assertEqual(message, "Se actualizaron 0 precios correctamente (Ajuste: 10%).")
        unpriced.refresh_from_db()
        self.assertIsNone(unpriced.price)

    def test_bulk_insert_message(self):
        """Test bulk insert reports the created count"""
        message = self.gateway.bulk_insert([{'code': 'B1', 'name': 'Rienda', 'line': 'FIAT', 'price': None}])
        self.assertEqual(message, "Se cargaron 1 productos correctamente.")

    def test_update_ignores_undefined_fields(self):
        """Test None values do not overwrite stored fields"""
        self.gateway.update(self.fiat.id, {'price': None, 'name': 'Rienda Puerta'})
        self.fiat.refresh_from_db()
        self.assertEqual(self.fiat.name, 'Rienda Puerta')
        self.assertEqual(self.fiat.price, Decimal('500'))


class GatewaySelectionTests(LocalMirrorMixin, TestCase):
    """Test tier selection and degraded-mode fallback"""

    def test_forced_local_backend(self):
        """Test DATASTORE_BACKEND=local always uses the mirror"""
        gateway = get_gateway()
        self.assertEqual(gateway.backend, 'local')
        self.assertFalse(gateway.degraded)

    def test_forced_remote_backend(self):
        """Test DATASTORE_BACKEND=remote never touches the mirror"""
        with override_settings(DATASTORE_BACKEND='remote'):
            gateway = get_gateway()
        self.assertEqual(gateway.backend, 'remote')
        self.assertIsNone(gateway.fallback)

    def test_auto_falls_back_when_remote_unavailable(self):
        """Test a failing health check selects the mirror in degraded mode"""
        with override_settings(DATASTORE_BACKEND='auto'), \
                mock.patch.object(RemoteDataStore, 'is_available', return_value=False), \
                self.assertLogs('stockdesk.datastore.gateway', level='WARNING'):
            gateway = get_gateway()
        self.assertEqual(gateway.backend, 'local')
        self.assertTrue(gateway.degraded)
        self.assertEqual(len(gateway.fetch_all()), len(SAMPLE_PRODUCTS))

    def test_auto_uses_remote_when_available(self):
        """Test a healthy remote store is selected with the mirror as read fallback"""
        with override_settings(DATASTORE_BACKEND='auto'):
            gateway = get_gateway()
        self.assertEqual(gateway.backend, 'remote')
        self.assertIsNotNone(gateway.fallback)

    def test_read_falls_back_to_mirror(self):
        """Test a failed remote read is served from the mirror"""
        remote = mock.Mock(spec=RemoteDataStore)
        remote.name = 'remote'
        remote.fetch_all.side_effect = DataStoreUnavailable('down')
        gateway = DataStoreGateway(remote, fallback=LocalMirrorDataStore(self.mirror_path))
        products = gateway.fetch_all()
        self.assertEqual(len(products), len(SAMPLE_PRODUCTS))
        self.assertTrue(gateway.degraded)

    def test_write_failure_is_not_redirected(self):
        """Test a failed remote write propagates instead of writing to the mirror"""
        remote = mock.Mock(spec=RemoteDataStore)
        remote.name = 'remote'
        remote.adjust_stock_by.side_effect = DataStoreUnavailable('down')
        mirror = LocalMirrorDataStore(self.mirror_path)
        gateway = DataStoreGateway(remote, fallback=mirror)
        with self.assertRaises(DataStoreUnavailable):
            gateway.adjust_stock_by('1', 5)
        self.assertEqual(mirror.get('1').stock, 50)

    def test_bulk_price_aborts_when_remote_read_fails(self):
        """Test a bulk price update never computes prices from the mirror"""
        remote = mock.Mock(spec=RemoteDataStore)
        remote.name = 'remote'
        remote.fetch_all.side_effect = DataStoreUnavailable('down')
        mirror = LocalMirrorDataStore(self.mirror_path)
        gateway = DataStoreGateway(remote, fallback=mirror)
        with self.assertLogs('stockdesk.datastore.gateway', level='WARNING'):
            with self.assertRaises(DataStoreUnavailable):
                gateway.bulk_adjust_price(Decimal('10'), ['FORD'])
        remote.update_prices.assert_not_called()
        self.assertFalse(gateway.degraded)
        self.assertEqual(mirror.get('1').price, Decimal('1500'))

    def test_check_datastore_command(self):
        """Test the status command reports the active tier and product count"""
        out = StringIO()
        call_command('check_datastore', stdout=out)
        output = out.getvalue()
        self.assertIn('Active tier: local', output)
        self.assertIn(f'Products: {len(SAMPLE_PRODUCTS)}', output)
