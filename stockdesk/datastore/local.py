"""
Local tier: a persistent JSON mirror used when the remote store is down.

The file holds two collections, products and orders, and is seeded with a
small sample catalog when the file does not exist yet. An unreadable file is
never rewritten: reads and writes fail until it is repaired.
"""
import json
import logging
import os
import tempfile
import threading
from copy import deepcopy
from pathlib import Path

from django.core.serializers.json import DjangoJSONEncoder

from stockdesk.catalog.models import new_record_id
from .base import DataStore
from .exceptions import DataStoreUnavailable, RecordNotFound
from .records import ProductRecord, strip_undefined, to_decimal

logger = logging.getLogger(__name__)

PRODUCTS_COLLECTION = 'productos'
ORDERS_COLLECTION = 'movimientos'

SAMPLE_PRODUCTS = [
    {'id': '1', 'code': '796D', 'name': 'Bisagra Capot', 'line': 'FORD', 'details': 'Pick up 61/66 derecha', 'stock': 50, 'price': 1500},
    {'id': '2', 'code': '797I', 'name': 'Bisagra Capot', 'line': 'FORD', 'details': 'Pick up 61/66 izquierda', 'stock': 45, 'price': 1500},
    {'id': '3', 'code': '1001', 'name': 'Cierre de Capot', 'line': 'FORD', 'details': 'Pick up 74/81', 'stock': 20, 'price': 2200},
    {'id': '4', 'code': '810D', 'name': 'Bisagra Capot', 'line': 'CHEVROLET', 'details': 'Pick up 60/66 derecha', 'stock': 12, 'price': 1800},
    {'id': '5', 'code': 'FI508', 'name': 'Rienda Puerta', 'line': 'FIAT', 'details': 'Ducato/Boxer 96/03', 'stock': 100, 'price': 950},
]

# One lock per process: the mirror is a single file rewritten on every write
_mirror_lock = threading.RLock()


class LocalMirrorDataStore(DataStore):
    name = 'local'

    def __init__(self, path, batch_size=450):
        super().__init__(batch_size=batch_size)
        self.path = Path(path)

    def is_available(self):
        return True

    def _read(self):
        if not self.path.exists():
            data = {PRODUCTS_COLLECTION: deepcopy(SAMPLE_PRODUCTS), ORDERS_COLLECTION: []}
            self._write(data)
            return data
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.error(f"Local mirror at {self.path} is unreadable, leaving it untouched: {str(e)}")
            raise DataStoreUnavailable(f"Local mirror unreadable: {str(e)}") from e
        if not isinstance(data, dict):
            logger.error(f"Local mirror at {self.path} does not hold a collection map, leaving it untouched")
            raise DataStoreUnavailable("Local mirror unreadable: unexpected content")
        data.setdefault(PRODUCTS_COLLECTION, [])
        data.setdefault(ORDERS_COLLECTION, [])
        return data

    def _write(self, data):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Unique temp file per write, swapped in with an atomic rename
        tmp = tempfile.NamedTemporaryFile(
            'w', encoding='utf-8', dir=self.path.parent,
            prefix=f'.{self.path.name}.', suffix='.tmp', delete=False,
        )
        tmp_path = Path(tmp.name)
        try:
            with tmp:
                json.dump(data, tmp, cls=DjangoJSONEncoder, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

    @staticmethod
    def _find(products, product_id):
        for doc in products:
            if str(doc.get('id')) == str(product_id):
                return doc
        raise RecordNotFound(product_id)

    def fetch_all(self):
        with _mirror_lock:
            data = self._read()
        return [ProductRecord.from_document(doc.get('id'), doc) for doc in data[PRODUCTS_COLLECTION]]

    def get(self, product_id):
        with _mirror_lock:
            data = self._read()
        for doc in data[PRODUCTS_COLLECTION]:
            if str(doc.get('id')) == str(product_id):
                return ProductRecord.from_document(doc['id'], doc)
        return None

    def insert(self, document):
        doc = {**strip_undefined(document), 'id': new_record_id()}
        with _mirror_lock:
            data = self._read()
            data[PRODUCTS_COLLECTION].append(doc)
            self._write(data)
        return ProductRecord.from_document(doc['id'], doc)

    def update(self, product_id, fields):
        with _mirror_lock:
            data = self._read()
            doc = self._find(data[PRODUCTS_COLLECTION], product_id)
            doc.update(strip_undefined(fields))
            self._write(data)

    def insert_many(self, documents):
        docs = [{**strip_undefined(document), 'id': new_record_id()} for document in documents]
        with _mirror_lock:
            data = self._read()
            data[PRODUCTS_COLLECTION].extend(docs)
            self._write(data)
        return len(docs)

    def adjust_stock_by(self, product_id, delta):
        with _mirror_lock:
            data = self._read()
            doc = self._find(data[PRODUCTS_COLLECTION], product_id)
            doc['stock'] = int(doc.get('stock') or 0) + int(delta)
            self._write(data)

    def update_prices(self, changes):
        changes = list(changes)
        with _mirror_lock:
            data = self._read()
            for product_id, price in changes:
                self._find(data[PRODUCTS_COLLECTION], product_id)['price'] = to_decimal(price)
            self._write(data)
        return len(changes)

    def create_order(self, order):
        with _mirror_lock:
            data = self._read()
            products = data[PRODUCTS_COLLECTION]
            # Resolve every item before touching stock so a missing product writes nothing
            targets = [(self._find(products, item['id']), int(item['quantity'])) for item in order.items]
            for doc, quantity in targets:
                doc['stock'] = int(doc.get('stock') or 0) - quantity
            order_id = new_record_id()
            data[ORDERS_COLLECTION].append({**order.to_document(), 'id': order_id})
            self._write(data)
        order.id = order_id
        return order_id
