"""
Remote tier: product and order documents stored in the database.
"""
import logging
from contextlib import contextmanager

from django.db import DEFAULT_DB_ALIAS, DatabaseError, connections, transaction
from django.db.models import F
from django.utils import timezone

from stockdesk.catalog.models import Product, new_record_id
from stockdesk.orders.models import Order
from .base import DataStore, chunked
from .exceptions import DataStoreUnavailable, RecordNotFound
from .records import PRODUCT_FIELDS, ProductRecord

logger = logging.getLogger(__name__)


def product_to_record(product):
    return ProductRecord.from_document(
        product.id,
        {name: getattr(product, name) for name in PRODUCT_FIELDS},
    )


@contextmanager
def remote_call(operation):
    try:
        yield
    except DatabaseError as e:
        logger.error(f"Remote data store call '{operation}' failed: {str(e)}")
        raise DataStoreUnavailable(str(e)) from e


class RemoteDataStore(DataStore):
    name = 'remote'

    def __init__(self, using=DEFAULT_DB_ALIAS, batch_size=450):
        super().__init__(batch_size=batch_size)
        self.using = using

    def _products(self):
        return Product.objects.using(self.using)

    def is_available(self):
        try:
            connections[self.using].ensure_connection()
            self._products().exists()
        except DatabaseError as e:
            logger.warning(f"Remote data store health check failed: {str(e)}")
            return False
        return True

    def fetch_all(self):
        with remote_call('fetch_all'):
            return [product_to_record(p) for p in self._products().all()]

    def get(self, product_id):
        with remote_call('get'):
            product = self._products().filter(pk=product_id).first()
        return product_to_record(product) if product else None

    def insert(self, document):
        with remote_call('insert'):
            product = self._products().create(id=new_record_id(), **document)
        return product_to_record(product)

    def update(self, product_id, fields):
        with remote_call('update'):
            # QuerySet.update() skips auto_now, so the timestamp is set explicitly
            updated = self._products().filter(pk=product_id).update(updated_at=timezone.now(), **fields)
        if not updated:
            raise RecordNotFound(product_id)

    def insert_many(self, documents):
        created = 0
        with remote_call('insert_many'):
            for batch in chunked(list(documents), self.batch_size):
                with transaction.atomic(using=self.using):
                    self._products().bulk_create([Product(id=new_record_id(), **doc) for doc in batch])
                created += len(batch)
        return created

    def adjust_stock_by(self, product_id, delta):
        with remote_call('adjust_stock_by'):
            # F() increment, applied in the database
            updated = self._products().filter(pk=product_id).update(
                stock=F('stock') + int(delta),
                updated_at=timezone.now(),
            )
        if not updated:
            raise RecordNotFound(product_id)

    def update_prices(self, changes):
        updated = 0
        with remote_call('update_prices'):
            for batch in chunked(list(changes), self.batch_size):
                with transaction.atomic(using=self.using):
                    now = timezone.now()
                    products = [Product(id=product_id, price=price, updated_at=now) for product_id, price in batch]
                    self._products().bulk_update(products, ['price', 'updated_at'])
                updated += len(batch)
        return updated

    def create_order(self, order):
        with remote_call('create_order'):
            with transaction.atomic(using=self.using):
                stored = Order.objects.using(self.using).create(id=new_record_id(), **order.to_document())
                for item in order.items:
                    # F() decrement, applied in the database
                    decremented = self._products().filter(pk=item['id']).update(
                        stock=F('stock') - int(item['quantity']),
                        updated_at=timezone.now(),
                    )
                    if not decremented:
                        # Raising inside the atomic block rolls the order back too
                        raise RecordNotFound(item['id'])
        order.id = stored.id
        return stored.id
