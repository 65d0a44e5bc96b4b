"""Fulfillment creation: command, handler and the shared factory step."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.fulfillment.fulfillment import OrderFulfillment
from freshcart.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


def open_fulfillment(order) -> OrderFulfillment:
    """Create and stage the one fulfillment record ``order`` may have.

    Runs inside the caller's unit of work, so the PAID transition and the
    fulfillment it produces are committed together.
    """
    repo = current_domain.repository_for(OrderFulfillment)
    if repo.find_for_order(str(order.id)) is not None:
        raise ValidationError({"order_id": [f"Order {order.order_number} already has a fulfillment"]})

    ff = OrderFulfillment.create_for_order(order)
    repo.add(ff)
    logger.info(
        "Fulfillment created",
        fulfillment_id=str(ff.id),
        order_id=str(order.id),
        total_items_ordered=ff.total_items_ordered,
    )
    return ff


@freshcart.command(part_of="OrderFulfillment")
class CreateFulfillment:
    """Open a fulfillment for a paid order that does not have one yet."""

    order_id = Identifier(required=True)


@freshcart.command_handler(part_of=OrderFulfillment)
class CreateFulfillmentHandler:
    @handle(CreateFulfillment)
    def create_fulfillment(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        if OrderStatus(order.status) in (OrderStatus.PENDING, OrderStatus.CANCELLED):
            raise ValidationError({"order_id": [f"Cannot fulfill an order in {order.status} state"]})
        return open_fulfillment(order)
