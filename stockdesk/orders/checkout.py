"""
Order checkout: turn the session cart into a stored order and its remito.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from stockdesk.datastore.records import OrderRecord, ORDER_STATUS_COMPLETED
from stockdesk.documents.renderer import document_filename, remito_prefix, render_remito
from .cart import Cart

logger = logging.getLogger(__name__)

MSG_MISSING_DATA = "Ingrese nombre de cliente y agregue productos."


class CheckoutError(Exception):
    """The cart or the customer name is not ready for checkout"""


@dataclass
class CheckoutResult:
    order: OrderRecord
    pdf: Optional[bytes]

    @property
    def filename(self):
        return document_filename(remito_prefix(), self.order.id)


def checkout(cart: Cart, gateway, customer_name=None) -> CheckoutResult:
    """
    Store the order (stock decrements included, all or nothing) and render
    its remito. A blank customer name falls back to the one kept in the cart.
    Store errors propagate; the caller keeps the cart untouched unless this
    returns. Once the order is stored a failed remito only leaves `pdf` empty.
    """
    customer_name = (customer_name or '').strip() or (cart.customer_name or '').strip()
    if not customer_name or cart.is_empty():
        raise CheckoutError(MSG_MISSING_DATA)

    order = OrderRecord(
        customer_name=customer_name,
        items=cart.order_items(),
        total_items=cart.total_items,
        status=ORDER_STATUS_COMPLETED,
    )
    gateway.create_order(order)
    logger.info(f"Checkout of order {order.reference} for '{customer_name}': {order.total_items} items")

    try:
        pdf = render_remito(order)
    except Exception as e:
        logger.error(f"Remito for stored order {order.reference} could not be rendered: {str(e)}")
        pdf = None
    return CheckoutResult(order=order, pdf=pdf)
