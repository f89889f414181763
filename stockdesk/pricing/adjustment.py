"""
Percentage price adjustments.

Both the transient preview (price lists rendered with a what-if percentage)
and the persistent bulk update share `adjust_price`; only the persistent path
rounds to whole currency units before writing.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import List

HUNDRED = Decimal('100')
ONE = Decimal('1')
CENT = Decimal('0.01')


def to_percentage(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def adjust_price(price, percentage) -> Decimal:
    """price * (1 + percentage / 100), unrounded"""
    if not price:
        return Decimal('0')
    return Decimal(str(price)) * (ONE + to_percentage(percentage) / HUNDRED)


def round_price(value) -> Decimal:
    """Round to whole currency units, halves away from zero"""
    return Decimal(str(value)).quantize(ONE, rounding=ROUND_HALF_UP)


def format_percentage(percentage) -> str:
    """10 -> '10', 10.50 -> '10.5', -5 -> '-5'"""
    value = to_percentage(percentage)
    if value == value.to_integral_value():
        return str(value.quantize(ONE))
    return format(value.normalize(), 'f')


def signed_percentage(percentage) -> str:
    value = to_percentage(percentage)
    return f"{'+' if value > 0 else ''}{format_percentage(value)}%"


def confirmation_summary(percentage, lines) -> str:
    """Text shown before a persistent bulk update is confirmed"""
    scope = 'TODOS los productos' if not lines else f'las marcas seleccionadas ({len(lines)})'
    return (
        f"¿Estás seguro de aplicar un {signed_percentage(percentage)} a {scope}?\n\n"
        "Esta acción modificará la BASE DE DATOS permanentemente."
    )


def adjustment_caption(percentage) -> str:
    """Header note printed on a price list generated with an adjustment"""
    value = to_percentage(percentage)
    if value > 0:
        return f"Aumento aplicado: +{format_percentage(value)}%"
    if value < 0:
        return f"Descuento aplicado: {format_percentage(value)}%"
    return ''


@dataclass
class PriceListRow:
    id: str
    code: str
    line: str
    name: str
    details: str
    stock: int
    base_price: Decimal
    adjusted_price: Decimal

    @property
    def printable(self):
        """Rows without a resulting price are left out of the document"""
        return self.adjusted_price != 0

    def to_json(self):
        return {
            'id': self.id,
            'code': self.code,
            'line': self.line,
            'name': self.name,
            'details': self.details,
            'stock': self.stock,
            'base_price': str(self.base_price),
            'adjusted_price': str(self.adjusted_price.quantize(CENT, rounding=ROUND_HALF_UP)),
        }


def build_price_list_rows(products, percentage=0) -> List[PriceListRow]:
    """Rows shared by the price-list preview and the price-list PDF (already ordered)"""
    return [
        PriceListRow(
            id=product.id,
            code=product.code,
            line=product.line,
            name=product.name,
            details=product.details,
            stock=product.stock,
            base_price=product.price or Decimal('0'),
            adjusted_price=adjust_price(product.price, percentage),
        )
        for product in products
    ]
