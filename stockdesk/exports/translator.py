"""
Naive Spanish to English translation of part descriptions for export lists.

A fixed dictionary of auto-part terms is applied word by word; anything not
in the dictionary is kept as is. Operators can override the result per
product (details_en), and a stored override always wins.
"""
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List

from stockdesk.catalog.query import natural_key
from stockdesk.datastore.records import ProductRecord

# Applied in this order
DICTIONARY = (
    ('DERECHA', 'RIGHT'),
    ('IZQUIERDA', 'LEFT'),
    ('DELANTERA', 'FRONT'),
    ('TRASERA', 'REAR'),
    ('CAPOT', 'HOOD'),
    ('PUERTA', 'DOOR'),
    ('PORTON', 'TAILGATE'),
    ('BISAGRA', 'HINGE'),
    ('CIERRE', 'LATCH'),
    ('CABLE', 'CABLE'),
    ('RESORTE', 'SPRING'),
    ('RETEN', 'RETAINER'),
    ('JUEGO', 'SET'),
    ('SOPORTE', 'BRACKET'),
    ('MANIJA', 'HANDLE'),
    ('CERRADURA', 'LOCK'),
    ('COMANDO', 'CONTROL'),
    ('TENSORES', 'CHECK STRAP'),
    ('RIENDA', 'STRAP'),
    ('CAMION', 'TRUCK'),
    ('PICK UP', 'PICKUP'),
    ('LATERAL', 'SIDE'),
    ('CENTRAL', 'CENTRAL'),
    ('SUPERIOR', 'UPPER'),
    ('INFERIOR', 'LOWER'),
)

# Word boundaries are ASCII-only: accented letters count as separators
_PATTERNS = tuple(
    (re.compile(rf'\b{re.escape(spanish)}\b', re.IGNORECASE | re.ASCII), english)
    for spanish, english in DICTIONARY
)

MIN_DETAILS_LENGTH = 3


def translate_terms(text):
    translated = (text or '').upper()
    for pattern, english in _PATTERNS:
        translated = pattern.sub(english, translated)
    return translated


def suggest_english_details(details, name):
    """
    Translate the details; when they are empty or too short, translate the
    product name instead. Only the first character stays upper-case.
    """
    translated = translate_terms(details)
    if len(translated) < MIN_DETAILS_LENGTH:
        translated = translate_terms(name)
    return translated[:1] + translated[1:].lower()


def english_details(product: ProductRecord):
    """Stored override if present, otherwise the dictionary translation"""
    if product.details_en:
        return product.details_en
    return suggest_english_details(product.details, product.name)


@dataclass
class ExportRow:
    id: str
    code: str
    line: str
    description: str
    stock: int
    price_usd: Decimal
    suggestion: str
    translated: bool

    @property
    def price_label(self):
        return '-' if not self.price_usd else f"${self.price_usd:.2f}"

    def to_json(self):
        return {
            'id': self.id,
            'code': self.code,
            'line': self.line,
            'description': self.description,
            'stock': self.stock,
            'price_usd': str(self.price_usd),
            'price_label': self.price_label,
            'suggestion': self.suggestion,
            'has_override': self.translated,
        }


def export_order(products: Iterable[ProductRecord]) -> List[ProductRecord]:
    return sorted(products, key=lambda product: natural_key(product.code))


def build_export_rows(products: Iterable[ProductRecord]) -> List[ExportRow]:
    """Rows shared by the export preview and the export PDF"""
    rows = []
    for product in export_order(products):
        suggestion = suggest_english_details(product.details, product.name)
        rows.append(ExportRow(
            id=product.id,
            code=product.code,
            line=product.line,
            description=product.details_en or suggestion,
            stock=product.stock,
            price_usd=product.price_usd or Decimal('0'),
            suggestion=suggestion,
            translated=bool(product.details_en),
        ))
    return rows


def editor_defaults(product: ProductRecord):
    """Initial values of the inline export editor"""
    return {
        'price_usd': str(product.price_usd or Decimal('0')),
        'details_en': english_details(product),
    }
