"""Internal staff notes on an order."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.order.order import Order

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="Order")
class AddOrderNotes:
    order_id = Identifier(required=True)
    notes = Text(required=True)
    actor = String(required=True, max_length=100)


@freshcart.command_handler(part_of=Order)
class OrderNotesHandler:
    @handle(AddOrderNotes)
    def add_notes(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.add_internal_notes(command.notes, command.actor)
        repo.add(order)
        logger.info("Order notes added", order_id=str(order.id), actor=command.actor)
        return order


def add_order_notes(order_id: str, notes: str, actor: str) -> Order:
    return current_domain.process(
        AddOrderNotes(order_id=order_id, notes=notes, actor=actor),
        asynchronous=False,
    )
