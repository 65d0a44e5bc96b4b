"""Stock decrement on payment.

Runs after the PAID transition has committed. Each line is decremented on
its own; a catalog failure is logged and the next line is still attempted.
"""

import json

import structlog
from protean.utils.mixins import handle

from freshcart.catalogue import get_catalog
from freshcart.domain import freshcart
from freshcart.order.events import OrderPaid
from freshcart.order.order import Order

logger = structlog.get_logger(__name__)


@freshcart.event_handler(part_of=Order)
class StockDecrementHandler:
    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        catalog = get_catalog()
        for line in json.loads(event.items or "[]"):
            try:
                catalog.decrement_stock(line["product_id"], line["quantity"])
            except Exception as exc:
                logger.error(
                    "Stock decrement failed",
                    order_id=str(event.order_id),
                    product_id=line.get("product_id"),
                    quantity=line.get("quantity"),
                    error=str(exc),
                )
