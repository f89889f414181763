"""
Catalog query engine.

Pure functions over the in-memory product list returned by the gateway:
text search, line filters, exclusion sets, sorting and the stock-entry
helpers. Every request re-evaluates them over a fresh fetch.
"""
import re
from typing import Iterable, List, Optional

from stockdesk.datastore.records import ProductRecord

# Fields the text search covers on each screen
INVENTORY_SEARCH_FIELDS = ('name', 'code', 'details')
PRICE_LIST_SEARCH_FIELDS = ('name', 'code', 'details')
ORDER_SEARCH_FIELDS = ('name', 'code')
EXPORT_SEARCH_FIELDS = ('name', 'code')
STOCK_ENTRY_SEARCH_FIELDS = ('code', 'name')

SORT_CODE = 'code'
SORT_NAME = 'name'
SORT_LINE = 'line'
SORT_STOCK = 'stock'
SORT_FIELDS = (SORT_CODE, SORT_NAME, SORT_LINE, SORT_STOCK)

ORDER_ASC = 'asc'
ORDER_DESC = 'desc'

STOCK_HIGH = 'high'
STOCK_MEDIUM = 'medium'
STOCK_LOW = 'low'
STOCK_OUT = 'out'

SUGGESTION_LIMIT = 6
ORDER_SEARCH_LIMIT = 5

_NATURAL_CHUNK = re.compile(r'(\d+)')


def natural_key(value):
    """
    Sort key for alphanumeric codes: digit runs compare numerically, the rest
    case-insensitively ("2" < "10", "796d" == "796D").
    """
    key = []
    for chunk in _NATURAL_CHUNK.split(str(value or '')):
        if not chunk:
            continue
        if chunk.isdigit():
            key.append((0, int(chunk), ''))
        else:
            key.append((1, 0, chunk.casefold()))
    return tuple(key)


def stock_status(stock):
    if stock <= 0:
        return STOCK_OUT
    if stock > 20:
        return STOCK_HIGH
    if stock > 5:
        return STOCK_MEDIUM
    return STOCK_LOW


def matches_text(product: ProductRecord, term: str, fields: Iterable[str]) -> bool:
    if not term:
        return True
    needle = term.casefold()
    return any(needle in str(getattr(product, name) or '').casefold() for name in fields)


def filter_products(products: Iterable[ProductRecord], term: str = '', fields: Iterable[str] = INVENTORY_SEARCH_FIELDS,
                    lines: Optional[Iterable[str]] = None, exclude: Optional[Iterable[str]] = None,
                    in_stock_only: bool = False) -> List[ProductRecord]:
    """
    Keep products matching the text term on `fields`, belonging to one of
    `lines` (all lines when empty) and not listed in `exclude`.
    """
    fields = tuple(fields)
    line_set = set(lines or [])
    excluded = {str(product_id) for product_id in (exclude or [])}
    term = (term or '').strip()
    return [
        product for product in products
        if matches_text(product, term, fields)
        and (not line_set or product.line in line_set)
        and product.id not in excluded
        and (not in_stock_only or product.stock > 0)
    ]


def _sort_key(field):
    if field == SORT_CODE:
        return lambda product: natural_key(product.code)
    if field == SORT_NAME:
        return lambda product: product.name.casefold()
    if field == SORT_LINE:
        return lambda product: product.line
    if field == SORT_STOCK:
        return lambda product: product.stock
    raise ValueError(f"Unknown sort field: {field}")


def sort_products(products: Iterable[ProductRecord], field: str = SORT_CODE, order: str = ORDER_ASC) -> List[ProductRecord]:
    return sorted(products, key=_sort_key(field), reverse=(order == ORDER_DESC))


def price_list_order(products: Iterable[ProductRecord]) -> List[ProductRecord]:
    """Line first, then natural code order"""
    return sorted(products, key=lambda product: (product.line, natural_key(product.code)))


def suggest_products(products: Iterable[ProductRecord], term: str, limit: int = SUGGESTION_LIMIT) -> List[ProductRecord]:
    term = (term or '').strip()
    if not term:
        return []
    return filter_products(products, term, STOCK_ENTRY_SEARCH_FIELDS)[:limit]


def find_by_code(products: Iterable[ProductRecord], term: str) -> Optional[ProductRecord]:
    """Exact code match first (case-insensitive), otherwise the first partial code match"""
    term = (term or '').strip().casefold()
    if not term:
        return None
    products = list(products)
    for product in products:
        if product.code.casefold() == term:
            return product
    for product in products:
        if term in product.code.casefold():
            return product
    return None


def search_orderable(products: Iterable[ProductRecord], term: str, limit: int = ORDER_SEARCH_LIMIT) -> List[ProductRecord]:
    """Product picker of the order screen: in-stock matches on name or code"""
    term = (term or '').strip()
    if not term:
        return []
    return filter_products(products, term, ORDER_SEARCH_FIELDS, in_stock_only=True)[:limit]
