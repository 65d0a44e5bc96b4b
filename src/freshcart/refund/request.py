"""Refund requests: the entry point of the refund ledger."""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.errors import InvalidTransition, RefundExceedsOrderTotal
from freshcart.order.numbering import next_refund_number
from freshcart.order.order import REFUNDABLE_STATUSES, Order, OrderStatus
from freshcart.refund.refund import Refund, RefundReason

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="Refund")
class CreateRefund:
    refund_number = String(required=True, max_length=20)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    reason = String(required=True, choices=RefundReason)
    customer_explanation = Text()


@freshcart.command_handler(part_of=Refund)
class CreateRefundHandler:
    @handle(CreateRefund)
    def create_refund(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)

        amount = round(command.amount, 2)
        if amount <= 0:
            raise RefundExceedsOrderTotal({"amount": ["Refund amount must be greater than zero"]})

        repo = current_domain.repository_for(Refund)
        already_refunded = repo.completed_total_for_order(str(order.id))
        if amount + already_refunded > order.total + 0.005:
            raise RefundExceedsOrderTotal(
                {
                    "amount": [
                        f"Refund of {amount:.2f} would exceed the order total of {order.total:.2f} "
                        f"({already_refunded:.2f} already refunded)"
                    ]
                }
            )

        # A fully refunded order fails the limit above, never this check
        if OrderStatus(order.status) not in REFUNDABLE_STATUSES:
            raise InvalidTransition({"order_id": [f"Cannot refund an order in {order.status} state"]})

        refund = Refund.request(
            refund_number=command.refund_number,
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            amount=amount,
            reason=command.reason,
            customer_explanation=command.customer_explanation,
        )
        repo.add(refund)
        logger.info(
            "Refund requested",
            refund_id=str(refund.id),
            refund_number=refund.refund_number,
            order_id=str(order.id),
            amount=amount,
        )
        return refund


def create_refund(order_id: str, amount: float, reason: str, customer_explanation: str | None = None) -> Refund:
    return current_domain.process(
        CreateRefund(
            refund_number=next_refund_number(),
            order_id=order_id,
            amount=amount,
            reason=reason,
            customer_explanation=customer_explanation,
        ),
        asynchronous=False,
    )
