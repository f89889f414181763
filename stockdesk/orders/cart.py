"""
Session-backed shopping cart of the order screen.

Each line is a snapshot of the product taken when it was added, so quantity
limits are checked against the stock seen at that moment. The cart is stored
in the user session as JSON-safe data and survives data store outages.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from stockdesk.datastore.records import ProductRecord

SESSION_KEY = 'cart'


@dataclass
class CartItem:
    product: ProductRecord
    quantity: int = 1

    @property
    def id(self):
        return self.product.id

    @property
    def unit_price(self) -> Decimal:
        return self.product.price or Decimal('0')

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_json(self):
        return {**self.product.to_json(), 'quantity': self.quantity}

    @classmethod
    def from_json(cls, data):
        return cls(product=ProductRecord.from_document(data['id'], data), quantity=int(data.get('quantity') or 1))


@dataclass
class Cart:
    items: List[CartItem] = field(default_factory=list)
    customer_name: str = ''

    def find(self, product_id) -> Optional[CartItem]:
        for item in self.items:
            if item.id == str(product_id):
                return item
        return None

    def add(self, product: ProductRecord) -> bool:
        """
        One more unit of `product`. Returns False when nothing changed: the
        line already holds the whole stock, or the product has none.
        """
        item = self.find(product.id)
        if item is not None:
            if item.quantity >= product.stock:
                return False
            item.quantity += 1
            return True
        if product.stock <= 0:
            return False
        self.items.append(CartItem(product=product, quantity=1))
        return True

    def set_quantity(self, product_id, delta: int) -> bool:
        """Apply `delta` with a floor of 1; ignored when it would exceed the snapshot stock"""
        item = self.find(product_id)
        if item is None:
            return False
        new_quantity = max(1, item.quantity + int(delta))
        if new_quantity > item.product.stock:
            return False
        item.quantity = new_quantity
        return True

    def remove(self, product_id) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.id != str(product_id)]
        return len(self.items) != before

    def clear(self):
        self.items = []

    def is_empty(self):
        return not self.items

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_amount(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal('0'))

    def order_items(self):
        """Embedded product snapshots of the order document"""
        return [item.to_json() for item in self.items]

    def to_json(self):
        return {
            'customer_name': self.customer_name,
            'items': [
                {**item.to_json(), 'subtotal': str(item.subtotal)}
                for item in self.items
            ],
            'total_items': self.total_items,
            'total_amount': str(self.total_amount),
        }

    # Session storage

    @classmethod
    def from_session(cls, session):
        data = session.get(SESSION_KEY) or {}
        return cls(
            items=[CartItem.from_json(item) for item in data.get('items', [])],
            customer_name=data.get('customer_name', ''),
        )

    def save(self, session):
        # Reassigned on every change so the session is marked modified
        session[SESSION_KEY] = {
            'customer_name': self.customer_name,
            'items': [item.to_json() for item in self.items],
        }
