"""
Navigation surface of the stock manager.

Each screen keeps the route identifier the help assistant is keyed on and the
name of the API endpoint that serves it.
"""
from dataclasses import dataclass

from django.urls import reverse


@dataclass(frozen=True)
class Screen:
    route: str
    title: str
    url_name: str


INVENTORY_ROUTE = '/'

SCREENS = (
    Screen(INVENTORY_ROUTE, 'Inventario General', 'product-list-create'),
    Screen('/ingreso', 'Ingreso de Stock', 'stock-entry'),
    Screen('/nuevo-producto', 'Nuevo Producto', 'product-list-create'),
    Screen('/pedidos', 'Pedidos / Remito', 'cart-detail'),
    Screen('/precios', 'Lista de Precios', 'price-list-preview'),
    Screen('/exportacion', 'Lista de Exportación (USD)', 'export-list-preview'),
)

SCREENS_BY_ROUTE = {screen.route: screen for screen in SCREENS}


def resolve_screen(route):
    """Return the screen for a route; unknown routes resolve to the inventory."""
    return SCREENS_BY_ROUTE.get(route) or SCREENS_BY_ROUTE[INVENTORY_ROUTE]


def screen_endpoint(screen):
    return reverse(screen.url_name)
