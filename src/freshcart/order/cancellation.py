"""Order cancellation: command, handler and the slot-releasing entry point.

Cancelling an order does not touch its fulfillment; staff cancel that
separately when they mean to.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.order.order import Order
from freshcart.timeslot.capacity import release_slot
from freshcart.timeslot.slot import slot_start
from freshcart.utils.timestamps import utc_now_naive

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    actor = String(required=True, max_length=100)


@freshcart.command_handler(part_of=Order)
class CancellationHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(command.reason, command.actor)
        repo.add(order)
        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            order_number=order.order_number,
            reason=command.reason,
            actor=command.actor,
        )
        return order


def release_order_slot(order: Order) -> bool:
    """Hand the order's slot capacity back if the slot has not started yet.

    Runs after the cancellation has committed; a failure here is logged and
    leaves the cancellation in place.
    """
    if not order.slot_date or not order.slot_start_time:
        return False

    if slot_start(order.slot_date, order.slot_start_time) <= utc_now_naive():
        logger.info("Slot already started, keeping its capacity", order_id=str(order.id), slot_id=order.slot_id)
        return False

    try:
        release_slot(order.slot_date, order.slot_start_time, order.item_count)
    except (ValidationError, ObjectNotFoundError) as exc:
        logger.error(
            "Failed to release slot for cancelled order",
            order_id=str(order.id),
            slot_id=order.slot_id,
            error=str(exc),
        )
        return False
    return True


def cancel_order(order_id: str, reason: str, actor: str) -> Order:
    """Cancel a PENDING, PAID or PROCESSING order and release its slot reservation."""
    order = current_domain.process(CancelOrder(order_id=order_id, reason=reason, actor=actor), asynchronous=False)
    release_order_slot(order)
    return order
