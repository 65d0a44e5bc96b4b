"""Payment outcomes: confirmation (gateway or manual) and declines.

Confirming payment moves the order to PAID and opens its fulfillment in the
same unit of work.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.fulfillment.creation import open_fulfillment
from freshcart.order.order import Order, PaymentMethod

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="Order")
class ConfirmPayment:
    """The gateway (or a staff member taking cash/check) confirmed payment."""

    order_id = Identifier(required=True)
    payment_method = String(required=True, choices=PaymentMethod, default=PaymentMethod.CARD.value)
    payment_reference = String(max_length=255)
    actor = String(default="payment-gateway", max_length=100)


@freshcart.command(part_of="Order")
class RecordPaymentFailure:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@freshcart.command_handler(part_of=Order)
class PaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.confirm_payment(
            payment_method=command.payment_method,
            payment_reference=command.payment_reference,
            actor=command.actor or "payment-gateway",
        )
        repo.add(order)
        open_fulfillment(order)
        logger.info(
            "Payment confirmed",
            order_id=str(order.id),
            order_number=order.order_number,
            payment_method=command.payment_method,
        )
        return order

    @handle(RecordPaymentFailure)
    def record_payment_failure(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_failure(command.reason)
        repo.add(order)
        logger.warning("Payment failed", order_id=str(order.id), reason=command.reason)
        return order


def confirm_payment(
    order_id: str,
    payment_reference: str | None = None,
    payment_method: str = PaymentMethod.CARD.value,
    actor: str = "payment-gateway",
) -> Order:
    return current_domain.process(
        ConfirmPayment(
            order_id=order_id,
            payment_method=payment_method,
            payment_reference=payment_reference,
            actor=actor,
        ),
        asynchronous=False,
    )


def record_payment_failure(order_id: str, reason: str) -> Order:
    return current_domain.process(RecordPaymentFailure(order_id=order_id, reason=reason), asynchronous=False)
