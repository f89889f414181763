"""
Comprehensive test suite for the Orders module
Tests: session cart, checkout all-or-nothing semantics, order endpoints
"""
from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings
from rest_framework import status

from stockdesk.core.models import AuditLog
from stockdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from stockdesk.datastore.exceptions import DataStoreUnavailable, RecordNotFound
from stockdesk.datastore.gateway import get_gateway
from stockdesk.datastore.remote import RemoteDataStore
from .cart import Cart
from .checkout import CheckoutError, MSG_MISSING_DATA, checkout
from .models import Order


class CartTests(TestCase):
    """Test cart rules on product snapshots"""

    def setUp(self):
        self.product = TestDataFactory.product_record(product_id='p1', stock=2, price=Decimal('1500'))
        self.cart = Cart()

    def test_add_new_line(self):
        """Test first add creates a line with quantity 1"""
        self.assertTrue(self.cart.add(self.product))
        self.assertEqual(self.cart.find('p1').quantity, 1)

    def test_add_existing_line_up_to_stock(self):
        """Test adding again increments until the stock ceiling, then is a no-op"""
        self.cart.add(self.product)
        self.assertTrue(self.cart.add(self.product))
        self.assertFalse(self.cart.add(self.product))
        self.assertEqual(self.cart.find('p1').quantity, 2)
        self.assertEqual(len(self.cart.items), 1)

    def test_add_out_of_stock(self):
        """Test products without stock are never added"""
        product = TestDataFactory.product_record(product_id='p2', stock=0)
        self.assertFalse(self.cart.add(product))
        self.assertTrue(self.cart.is_empty())

    def test_set_quantity_bounds(self):
        """Test quantity floor of 1 and ceiling at the snapshot stock"""
        self.cart.add(self.product)
        self.assertTrue(self.cart.set_quantity('p1', 1))
        self.assertEqual(self.cart.find('p1').quantity, 2)
        self.assertFalse(self.cart.set_quantity('p1', 1))
        self.assertEqual(self.cart.find('p1').quantity, 2)
        self.cart.set_quantity('p1', -10)
        self.assertEqual(self.cart.find('p1').quantity, 1)

    def test_remove_and_totals(self):
        """Test totals over several lines"""
        other = TestDataFactory.product_record(product_id='p2', code='797I', stock=5, price=None)
        self.cart.add(self.product)
        self.cart.add(self.product)
        self.cart.add(other)
        self.assertEqual(self.cart.total_items, 3)
        self.assertEqual(self.cart.total_amount, Decimal('3000'))
        self.assertTrue(self.cart.remove('p2'))
        self.assertFalse(self.cart.remove('p2'))
        self.assertEqual(self.cart.total_items, 2)

    def test_session_storage(self):
        """Test the cart survives a trip through the session"""
        session = {}
        self.cart.customer_name = 'Taller Gomez'
        self.cart.add(self.product)
        self.cart.save(session)
        restored = Cart.from_session(session)
        self.assertEqual(restored.customer_name, 'Taller Gomez')
        self.assertEqual(restored.find('p1').quantity, 1)
        self.assertEqual(restored.find('p1').product.price, Decimal('1500'))
        self.assertEqual(restored.find('p1').product.stock, 2)


@override_settings(DATASTORE_BACKEND='remote')
class CheckoutTests(TestCase):
    """Test checkout against the remote store"""

    def setUp(self):
        self.product = TestDataFactory.create_product(code='796D', stock=10, price=Decimal('1500'))
        self.gateway = get_gateway()
        self.cart = Cart(customer_name='Taller Gomez')
        record = self.gateway.get(self.product.id)
        for _ in range(3):
            self.cart.add(record)

    def test_checkout_stores_order_and_decrements_stock(self):
        """Test order document, stock decrement and remito"""
        result = checkout(self.cart, self.gateway)
        order = Order.objects.get(pk=result.order.id)
        self.assertEqual(order.customer_name, 'Taller Gomez')
        self.assertEqual(order.total_items, 3)
        self.assertEqual(order.status, 'completed')
        self.assertEqual(order.items[0]['quantity'], 3)
        self.assertEqual(order.items[0]['code'], '796D')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)
        self.assertTrue(result.pdf.startswith(b'%PDF'))
        self.assertEqual(result.filename, f'Remito_Jobuzetti_{result.order.id}.pdf')

    def test_checkout_requires_customer_and_items(self):
        """Test missing customer name or empty cart"""
        unnamed = Cart(items=self.cart.items)
        with self.assertRaisesMessage(CheckoutError, MSG_MISSING_DATA):
            checkout(unnamed, self.gateway, customer_name='  ')
        with self.assertRaises(CheckoutError):
            checkout(Cart(customer_name='Taller Gomez'), self.gateway)
        self.assertEqual(Order.objects.count(), 0)

    def test_blank_customer_uses_cart_name(self):
        """Test a blank name falls back to the one kept in the cart"""
        result = checkout(self.cart, self.gateway, customer_name='')
        self.assertEqual(result.order.customer_name, 'Taller Gomez')
        self.assertEqual(Order.objects.get(pk=result.order.id).customer_name, 'Taller Gomez')

    def test_remito_failure_keeps_stored_order(self):
        """Test a remito that fails to render leaves the stored order without a PDF"""
        with mock.patch('stockdesk.orders.checkout.render_remito', side_effect=RuntimeError('font missing')), \
                self.assertLogs('stockdesk.orders.checkout', level='ERROR'):
            result = checkout(self.cart, self.gateway)
        self.assertIsNone(result.pdf)
        self.assertTrue(Order.objects.filter(pk=result.order.id).exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)

    def test_checkout_failure_writes_nothing(self):
        """Test an order for a deleted product rolls back every decrement"""
        other = TestDataFactory.create_product(code='797I', stock=4)
        self.cart.add(self.gateway.get(other.id))
        other.delete()
        with self.assertRaises(RecordNotFound):
            checkout(self.cart, self.gateway)
        self.assertEqual(Order.objects.count(), 0)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
        self.assertEqual(self.cart.total_items, 4)


@override_settings(DATASTORE_BACKEND='remote')
class CartAPITests(TestCase):
    """Test cart and checkout endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(code='796D', name='Bisagra Capot', stock=2,
                                                      price=Decimal('1500'), details='derecha')

    def add(self, product_id=None):
        return self.client.post('/api/v1/cart/items/', {'product_id': product_id or self.product.id}, format='json')

    def test_empty_cart(self):
        """Test a new session starts with an empty cart"""
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'], [])
        self.assertEqual(response.data['total_items'], 0)

    def test_add_item_until_stock(self):
        """Test adding past the stock is a no-op"""
        self.assertTrue(self.add().data['changed'])
        self.assertTrue(self.add().data['changed'])
        response = self.add()
        self.assertFalse(response.data['changed'])
        self.assertEqual(response.data['items'][0]['quantity'], 2)
        self.assertEqual(response.data['total_amount'], '3000.00')

    def test_add_unknown_product(self):
        """Test unknown products are rejected"""
        response = self.add('missing')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_change_quantity(self):
        """Test quantity delta endpoint"""
        self.add()
        url = f'/api/v1/cart/items/{self.product.id}/quantity/'
        response = self.client.post(url, {'delta': 1}, format='json')
        self.assertEqual(response.data['items'][0]['quantity'], 2)
        response = self.client.post(url, {'delta': -5}, format='json')
        self.assertEqual(response.data['items'][0]['quantity'], 1)
        response = self.client.post('/api/v1/cart/items/missing/quantity/', {'delta': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_remove_and_clear(self):
        """Test line removal and clearing the cart"""
        self.add()
        response = self.client.delete(f'/api/v1/cart/items/{self.product.id}/')
        self.assertTrue(response.data['changed'])
        self.assertEqual(response.data['items'], [])
        self.add()
        response = self.client.post('/api/v1/cart/clear/')
        self.assertEqual(response.data['items'], [])

    def test_set_customer_name(self):
        """Test customer name is kept in the session"""
        self.client.patch('/api/v1/cart/', {'customer_name': 'Taller Gomez'}, format='json')
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.data['customer_name'], 'Taller Gomez')

    def test_checkout_returns_remito(self):
        """Test checkout stores the order, returns the PDF and empties the cart"""
        self.add()
        response = self.client.post('/api/v1/cart/checkout/', {'customer_name': 'Taller Gomez'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))
        order_id = response['X-Order-Id']
        self.assertIn(f'Remito_Jobuzetti_{order_id}.pdf', response['Content-Disposition'])
        self.assertEqual(response['X-Message'], 'Pedido procesado correctamente.')

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 1)
        self.assertTrue(AuditLog.objects.filter(action='order_checkout', object_id=order_id).exists())
        self.assertEqual(self.client.get('/api/v1/cart/').data['items'], [])

    def test_checkout_without_customer(self):
        """Test checkout needs a customer name"""
        self.add()
        response = self.client.post('/api/v1/cart/checkout/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], MSG_MISSING_DATA)

    def test_checkout_blank_customer_uses_session_name(self):
        """Test a blank name in the request keeps the name saved in the session"""
        self.client.patch('/api/v1/cart/', {'customer_name': 'Taller'}, format='json')
        self.add()
        response = self.client.post('/api/v1/cart/checkout/', {'customer_name': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Order.objects.get(pk=response['X-Order-Id']).customer_name, 'Taller')

    def test_checkout_remito_failure_clears_cart(self):
        """Test a stored order empties the cart even when the remito cannot be rendered"""
        self.add()
        with mock.patch('stockdesk.orders.checkout.render_remito', side_effect=RuntimeError('font missing')), \
                self.assertLogs('stockdesk.orders.checkout', level='ERROR'):
            response = self.client.post('/api/v1/cart/checkout/', {'customer_name': 'Taller Gomez'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Pedido procesado, pero no se pudo generar el remito.')
        order = Order.objects.get(pk=response.data['order_id'])
        self.assertEqual(order.total_items, 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 1)
        self.assertEqual(self.client.get('/api/v1/cart/').data['items'], [])

    def test_checkout_store_failure_keeps_cart(self):
        """Test a failed order write leaves stock and cart untouched"""
        self.add()
        with mock.patch.object(RemoteDataStore, 'create_order', side_effect=DataStoreUnavailable('down')):
            response = self.client.post('/api/v1/cart/checkout/', {'customer_name': 'Taller Gomez'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['message'], 'Error al procesar el pedido.')
        self.assertEqual(Order.objects.count(), 0)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 2)
        self.assertEqual(len(self.client.get('/api/v1/cart/').data['items']), 1)

    def test_product_search(self):
        """Test order picker only lists in-stock matches"""
        TestDataFactory.create_product(code='797I', name='Bisagra Capot', stock=0)
        response = self.client.get('/api/v1/orders/product-search/', {'q': 'bisagra'})
        self.assertEqual([p['code'] for p in response.data], ['796D'])
