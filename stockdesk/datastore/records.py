"""
In-memory records exchanged with the data store tiers.

Both tiers store documents: a flat field map per product and per order.
Records convert to and from those documents; fields left undefined (None) are
stripped before every write.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from stockdesk.catalog.models import CarLine

PRODUCT_FIELDS = ('code', 'name', 'line', 'details', 'stock', 'price', 'image_url', 'price_usd', 'details_en')

ORDER_STATUS_COMPLETED = 'completed'
ORDER_STATUS_PENDING = 'pending'


def strip_undefined(data):
    return {key: value for key, value in data.items() if value is not None}


def to_decimal(value):
    if value is None or value == '':
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def json_safe(value):
    """Decimals become strings and datetimes ISO strings, recursively"""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    return value


@dataclass
class ProductRecord:
    id: str
    code: str
    name: str
    line: str = CarLine.UNIVERSAL.value
    details: str = ''
    stock: int = 0
    price: Optional[Decimal] = None
    image_url: Optional[str] = None
    price_usd: Optional[Decimal] = None
    details_en: Optional[str] = None

    @classmethod
    def from_document(cls, doc_id, data):
        return cls(
            id=str(doc_id),
            code=str(data.get('code') or ''),
            name=str(data.get('name') or ''),
            line=str(data.get('line') or CarLine.UNIVERSAL.value),
            details=str(data.get('details') or ''),
            stock=int(data.get('stock') or 0),
            price=to_decimal(data.get('price')),
            image_url=data.get('image_url'),
            price_usd=to_decimal(data.get('price_usd')),
            details_en=data.get('details_en'),
        )

    def to_document(self):
        return strip_undefined({name: getattr(self, name) for name in PRODUCT_FIELDS})

    def to_json(self):
        return json_safe({'id': self.id, **self.to_document()})


@dataclass
class OrderRecord:
    customer_name: str
    items: list
    total_items: int
    date: datetime = field(default_factory=timezone.now)
    status: str = ORDER_STATUS_COMPLETED
    id: Optional[str] = None

    @classmethod
    def from_document(cls, doc_id, data):
        date = data.get('date')
        if isinstance(date, str):
            date = parse_datetime(date)
        return cls(
            id=str(doc_id),
            customer_name=data.get('customer_name', ''),
            items=list(data.get('items') or []),
            total_items=int(data.get('total_items') or 0),
            date=date or timezone.now(),
            status=data.get('status') or ORDER_STATUS_COMPLETED,
        )

    def to_document(self):
        return strip_undefined({
            'customer_name': self.customer_name,
            'date': self.date,
            'items': json_safe(self.items),
            'total_items': self.total_items,
            'status': self.status,
        })

    @property
    def reference(self):
        """Short printable reference of the order"""
        return (self.id or '').upper()[:8]
