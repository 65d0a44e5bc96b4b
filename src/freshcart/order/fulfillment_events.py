"""Order progression driven by fulfillment events.

When staff start picking, a PAID order becomes PROCESSING. When a pickup
order's fulfillment completes, the order becomes READY_FOR_PICKUP; delivery
orders wait for staff to dispatch them. These reactions are best-effort: an
order that has moved on (cancelled, refunded) is left alone and the
fulfillment write that triggered the event is never affected.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from freshcart.domain import freshcart
from freshcart.fulfillment.events import FulfillmentCompleted, FulfillmentStarted
from freshcart.fulfillment.fulfillment import OrderFulfillment
from freshcart.order.order import FulfillmentType, Order, OrderStatus

logger = structlog.get_logger(__name__)


def _advance(order_id: str, expected: OrderStatus, target: OrderStatus, note: str, actor: str) -> None:
    repo = current_domain.repository_for(Order)
    try:
        order = repo.get(order_id)
        if OrderStatus(order.status) != expected:
            logger.info(
                "Order not in expected state, skipping progression",
                order_id=order_id,
                status=order.status,
                expected=expected.value,
                target=target.value,
            )
            return
        order.transition_to(target, note=note, actor=actor)
        repo.add(order)
    except (ValidationError, ObjectNotFoundError) as exc:
        logger.error(
            "Failed to advance order from fulfillment event",
            order_id=order_id,
            target=target.value,
            error=str(exc),
        )


@freshcart.event_handler(part_of=OrderFulfillment)
class OrderProgressionHandler:
    """Moves orders forward as their fulfillment progresses."""

    @handle(FulfillmentStarted)
    def on_fulfillment_started(self, event: FulfillmentStarted) -> None:
        _advance(
            str(event.order_id),
            expected=OrderStatus.PAID,
            target=OrderStatus.PROCESSING,
            note="Fulfillment started",
            actor=event.started_by,
        )

    @handle(FulfillmentCompleted)
    def on_fulfillment_completed(self, event: FulfillmentCompleted) -> None:
        if event.fulfillment_type != FulfillmentType.PICKUP.value:
            logger.info("Delivery order packed, awaiting dispatch", order_id=str(event.order_id))
            return
        _advance(
            str(event.order_id),
            expected=OrderStatus.PROCESSING,
            target=OrderStatus.READY_FOR_PICKUP,
            note="All items packed",
            actor=event.completed_by,
        )
