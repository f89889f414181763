"""
Bulk product import from pasted spreadsheet text.

One product per line: code, name, line, details, stock, price. Lines are
split on ';' when they contain one, otherwise on ','.
"""
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List

from .models import CarLine

HEADER_TOKENS = ('CÓDIGO', 'CODIGO', 'CODE')
MIN_COLUMNS = 4

# Applied in order when the raw line is not one of the known values
LINE_INFERENCE_RULES = (
    ('MERCEDES', CarLine.MERCEDES),
    ('VOLKS', CarLine.VOLKSWAGEN),
    ('CHEV', CarLine.CHEVROLET),
    ('HONDA', CarLine.HONDA),
)

_NON_NUMERIC = re.compile(r'[^0-9.]')

# Largest values the product columns hold (price: 14 digits, 2 decimals)
MAX_PRICE = Decimal('999999999999.99')
MAX_STOCK = 2147483647

MSG_NOTHING_TO_IMPORT = "No se encontraron productos válidos para importar."


@dataclass
class ImportResult:
    products: List[dict] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def summary(self, created=None):
        """Status message for the user; `created` defaults to the parsed count"""
        if not self.products:
            return MSG_NOTHING_TO_IMPORT
        count = len(self.products) if created is None else created
        message = f"¡Éxito! Se cargaron {count} productos."
        if self.errors:
            message += f" (Filas omitidas: {len(self.errors)})"
        return message


def infer_line(raw):
    value = (raw or '').upper().strip()
    if value in CarLine.values:
        return value
    for token, line in LINE_INFERENCE_RULES:
        if token in value:
            return line.value
    return CarLine.UNIVERSAL.value


def parse_number(raw):
    """Keep only digits and dots; anything unparseable counts as 0"""
    cleaned = _NON_NUMERIC.sub('', raw or '')
    if not cleaned:
        return Decimal('0')
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal('0')


def is_header(first_field):
    return first_field.upper().strip() in HEADER_TOKENS


def parse_line(line):
    separator = ';' if ';' in line else ','
    return line.split(separator)


def parse_bulk_text(text) -> ImportResult:
    result = ImportResult()
    for index, line in enumerate((text or '').strip().split('\n'), start=1):
        if not line.strip():
            continue

        parts = parse_line(line)
        if is_header(parts[0]):
            continue

        if len(parts) < MIN_COLUMNS:
            result.errors.append(f"Línea {index}: Formato inválido (Faltan columnas)")
            continue

        code, name, raw_line, details = parts[:4]
        stock_raw = parts[4] if len(parts) > 4 else ''
        price_raw = parts[5] if len(parts) > 5 else ''

        stock = parse_number(stock_raw)
        price = parse_number(price_raw)
        if stock > MAX_STOCK or price > MAX_PRICE:
            result.errors.append(f"Línea {index}: Valor numérico fuera de rango")
            continue

        result.products.append({
            'code': code.strip(),
            'name': name.strip(),
            'line': infer_line(raw_line),
            'details': details.strip(),
            'stock': int(stock),
            'price': price,
            'image_url': '',
        })
    return result
