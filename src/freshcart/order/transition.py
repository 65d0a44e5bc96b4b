"""Generic order status transitions and the status history query."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.fulfillment.creation import open_fulfillment
from freshcart.order.cancellation import cancel_order
from freshcart.order.order import Order, OrderStatus, StatusHistoryEntry

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="Order")
class TransitionOrder:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    note = String(max_length=500)
    actor = String(required=True, max_length=100)


@freshcart.command_handler(part_of=Order)
class TransitionHandler:
    @handle(TransitionOrder)
    def transition(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        target = OrderStatus(command.status)

        order.transition_to(target, note=command.note, actor=command.actor)
        repo.add(order)
        if target == OrderStatus.PAID:
            open_fulfillment(order)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
            actor=command.actor,
        )
        return order


def transition_order(order_id: str, status: str, note: str | None, actor: str) -> Order:
    """Move an order along a legal edge. Cancellation also releases the slot."""
    try:
        target = OrderStatus(status)
    except ValueError:
        raise ValidationError({"status": [f"Unknown order status '{status}'"]}) from None

    if target == OrderStatus.CANCELLED:
        return cancel_order(order_id, note or "Cancelled", actor)

    return current_domain.process(
        TransitionOrder(order_id=order_id, status=status, note=note, actor=actor),
        asynchronous=False,
    )


def get_status_history(order_id: str) -> list[StatusHistoryEntry]:
    """Every committed transition of the order, oldest first."""
    return current_domain.repository_for(Order).get(order_id).status_history
