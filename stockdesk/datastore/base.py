from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from .records import OrderRecord, ProductRecord


def chunked(items, size):
    """Split a list into consecutive batches of at most `size` items"""
    for start in range(0, len(items), size):
        yield items[start:start + size]


class DataStore(ABC):
    """
    One persistence tier for product and order documents.

    Implementations: RemoteDataStore (database through the Django ORM) and
    LocalMirrorDataStore (JSON file used in degraded mode).
    """
    name = 'base'

    def __init__(self, batch_size: int = 450):
        self.batch_size = max(1, int(batch_size))

    @abstractmethod
    def is_available(self) -> bool:
        """Health check used when selecting the active tier"""

    @abstractmethod
    def fetch_all(self) -> List[ProductRecord]:
        """Every product document"""

    @abstractmethod
    def get(self, product_id: str) -> Optional[ProductRecord]:
        """A single product or None"""

    @abstractmethod
    def insert(self, document: dict) -> ProductRecord:
        """Create a product with a fresh id"""

    @abstractmethod
    def update(self, product_id: str, fields: dict) -> None:
        """Overwrite the given fields of one product"""

    @abstractmethod
    def insert_many(self, documents: List[dict]) -> int:
        """Create products in batches of `batch_size`; returns the count"""

    @abstractmethod
    def adjust_stock_by(self, product_id: str, delta: int) -> None:
        """Atomic increment of the stock field"""

    @abstractmethod
    def update_prices(self, changes: Iterable[Tuple[str, Decimal]]) -> int:
        """Write new prices in batches of `batch_size`; returns the count"""

    @abstractmethod
    def create_order(self, order: OrderRecord) -> str:
        """Store the order and decrement stock for its items, all or nothing"""
