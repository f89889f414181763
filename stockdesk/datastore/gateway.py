"""
Data store gateway: the single entry point views use for persistence.

`get_gateway()` picks the active tier on every call. With the default `auto`
backend the remote tier is health-checked first; when it fails the gateway
runs in degraded mode against the local JSON mirror.
"""
import logging
from typing import List, Optional

from django.conf import settings

from stockdesk.pricing.adjustment import adjust_price, format_percentage, round_price, to_percentage
from .base import DataStore
from .exceptions import DataStoreUnavailable
from .local import LocalMirrorDataStore
from .records import OrderRecord, ProductRecord, strip_undefined
from .remote import RemoteDataStore

logger = logging.getLogger(__name__)

BACKEND_AUTO = 'auto'
BACKEND_REMOTE = 'remote'
BACKEND_LOCAL = 'local'

MSG_PERCENTAGE_ZERO = "El porcentaje es 0, no se realizaron cambios."
MSG_NO_MATCHING_PRODUCTS = "No hay productos que coincidan con el filtro."


class DataStoreGateway:
    def __init__(self, store: DataStore, fallback: Optional[DataStore] = None, degraded: bool = False):
        self.store = store
        self.fallback = fallback
        self.degraded = degraded

    @property
    def backend(self):
        return self.store.name

    # Reads

    def fetch_all(self) -> List[ProductRecord]:
        try:
            return self.store.fetch_all()
        except DataStoreUnavailable:
            if self.fallback is None:
                raise
            logger.warning("[Storage] Remote store read failed, falling back to local mirror.")
            self.degraded = True
            return self.fallback.fetch_all()

    def get(self, product_id) -> Optional[ProductRecord]:
        try:
            return self.store.get(product_id)
        except DataStoreUnavailable:
            if self.fallback is None:
                raise
            logger.warning("[Storage] Remote store read failed, falling back to local mirror.")
            self.degraded = True
            return self.fallback.get(product_id)

    def reload(self, product_id, expected: Optional[ProductRecord] = None) -> Optional[ProductRecord]:
        """Product as stored after a write on this tier; `expected` when it cannot be read back"""
        try:
            return self.store.get(product_id) or expected
        except DataStoreUnavailable as e:
            logger.warning(f"[Storage] Re-read of product {product_id} after write failed: {str(e)}")
            return expected

    # Writes (never redirected to the mirror once a remote call fails)

    def insert(self, fields: dict) -> ProductRecord:
        return self.store.insert(strip_undefined(fields))

    def update(self, product_id, fields: dict) -> None:
        cleaned = strip_undefined(fields)
        if not cleaned:
            return
        self.store.update(product_id, cleaned)

    def bulk_insert(self, documents: List[dict]) -> str:
        created = self.store.insert_many([strip_undefined(doc) for doc in documents])
        logger.info(f"Bulk insert stored {created} products ({self.backend})")
        return f"Se cargaron {created} productos correctamente."

    def adjust_stock_by(self, product_id, delta: int) -> None:
        self.store.adjust_stock_by(product_id, int(delta))

    def bulk_adjust_price(self, percentage, lines=None) -> str:
        """
        Persistently apply a percentage to every priced product of the given
        lines (all lines when empty). Prices are rounded to whole units.
        """
        percentage = to_percentage(percentage)
        if percentage == 0:
            return MSG_PERCENTAGE_ZERO

        lines = list(lines or [])
        # Read and write the same tier; a failed remote read aborts the update
        try:
            products = self.store.fetch_all()
        except DataStoreUnavailable:
            logger.warning(f"Bulk price update aborted, {self.backend} store read failed")
            raise
        in_scope = [p for p in products if not lines or p.line in lines]
        if not in_scope:
            return MSG_NO_MATCHING_PRODUCTS

        changes = [
            (product.id, round_price(adjust_price(product.price, percentage)))
            for product in in_scope
            if product.price is not None
        ]
        updated = self.store.update_prices(changes) if changes else 0
        logger.info(f"Bulk price update {format_percentage(percentage)}% on {lines or 'all lines'}: {updated} products ({self.backend})")
        return f"Se actualizaron {updated} precios correctamente (Ajuste: {format_percentage(percentage)}%)."

    def create_order(self, order: OrderRecord) -> str:
        order_id = self.store.create_order(order)
        logger.info(f"Order {order_id} stored for '{order.customer_name}' with {order.total_items} items ({self.backend})")
        return order_id


def get_local_store():
    return LocalMirrorDataStore(settings.DATASTORE_MIRROR_PATH, batch_size=settings.DATASTORE_BATCH_SIZE)


def get_gateway() -> DataStoreGateway:
    backend = getattr(settings, 'DATASTORE_BACKEND', BACKEND_AUTO)
    batch_size = getattr(settings, 'DATASTORE_BATCH_SIZE', 450)

    if backend == BACKEND_LOCAL:
        return DataStoreGateway(get_local_store())

    remote = RemoteDataStore(batch_size=batch_size)
    if backend == BACKEND_REMOTE:
        return DataStoreGateway(remote)

    if remote.is_available():
        return DataStoreGateway(remote, fallback=get_local_store())

    logger.warning("[Storage] Remote store unavailable, running in degraded mode against the local mirror.")
    return DataStoreGateway(get_local_store(), degraded=True)
