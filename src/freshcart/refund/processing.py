"""Moving approved refunds through the payment gateway and onto the order.

``issue_refund`` asks the gateway to transfer the money, keyed by the refund id
so a replayed request never pays out twice. ``complete_refund`` applies the
refunded amount to the order and completes the refund in one unit of work,
serialized per order so two refunds of the same order never race on
``refunded_amount``.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.errors import InvalidTransition
from freshcart.gateway import get_gateway
from freshcart.order.order import Order
from freshcart.refund.refund import Refund, RefundStatus
from freshcart.settings import setting
from freshcart.utils.locks import key_lock, retry_on_conflict

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="Refund")
class ProcessRefund:
    refund_id = Identifier(required=True)
    gateway_refund_id = String(required=True, max_length=255)
    actor = String(default="system", max_length=100)


@freshcart.command(part_of="Refund")
class CompleteRefund:
    refund_id = Identifier(required=True)
    actor = String(default="system", max_length=100)


@freshcart.command(part_of="Refund")
class FailRefund:
    refund_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    actor = String(default="system", max_length=100)


@freshcart.command_handler(part_of=Refund)
class RefundProcessingHandler:
    @handle(ProcessRefund)
    def process(self, command):
        repo = current_domain.repository_for(Refund)
        refund = repo.get(command.refund_id)
        refund.start_processing(command.gateway_refund_id)
        repo.add(refund)
        logger.info(
            "Refund processing started",
            refund_id=str(refund.id),
            gateway_refund_id=command.gateway_refund_id,
        )
        return refund

    @handle(CompleteRefund)
    def complete(self, command):
        refund_repo = current_domain.repository_for(Refund)
        refund = refund_repo.get(command.refund_id)
        if RefundStatus(refund.status) == RefundStatus.COMPLETED:
            logger.info("Refund already completed", refund_id=str(refund.id))
            return refund

        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(refund.order_id)

        # Order guards run first so a rejected completion leaves both untouched
        order.apply_refund(str(refund.id), refund.amount, command.actor, refund_number=refund.refund_number)
        refund.complete()

        order_repo.add(order)
        refund_repo.add(refund)
        logger.info(
            "Refund completed",
            refund_id=str(refund.id),
            order_id=str(order.id),
            amount=refund.amount,
            order_refunded_amount=order.refunded_amount,
            order_status=order.status,
        )
        return refund

    @handle(FailRefund)
    def fail(self, command):
        repo = current_domain.repository_for(Refund)
        refund = repo.get(command.refund_id)
        refund.fail(command.reason)
        repo.add(refund)
        logger.warning("Refund failed", refund_id=str(refund.id), reason=command.reason)
        return refund


def process_refund(refund_id: str, gateway_refund_id: str, actor: str = "system") -> Refund:
    return current_domain.process(
        ProcessRefund(refund_id=refund_id, gateway_refund_id=gateway_refund_id, actor=actor),
        asynchronous=False,
    )


def issue_refund(refund_id: str, actor: str = "system") -> Refund:
    """Send an approved refund to the gateway and mark it PROCESSING."""
    refund = current_domain.repository_for(Refund).get(refund_id)
    if RefundStatus(refund.status) != RefundStatus.APPROVED:
        raise InvalidTransition({"status": [f"Only approved refunds can be issued, refund is {refund.status}"]})

    order = current_domain.repository_for(Order).get(refund.order_id)
    result = get_gateway().create_refund(
        payment_reference=order.payment_reference or str(order.id),
        amount=refund.amount,
        reason=refund.reason,
        idempotency_key=str(refund.id),
    )
    if not result.success:
        logger.warning("Gateway declined refund", refund_id=refund_id, reason=result.failure_reason)
        raise ValidationError({"gateway": [result.failure_reason or "Refund declined by gateway"]})

    return process_refund(refund_id, result.gateway_refund_id, actor)


def complete_refund(refund_id: str, actor: str = "system") -> Refund:
    """Complete a PROCESSING refund and apply it to its order.

    Completing an already completed refund returns it unchanged.
    """
    refund = current_domain.repository_for(Refund).get(refund_id)
    key = f"order:{refund.order_id}"
    with key_lock(key):
        return retry_on_conflict(
            lambda: current_domain.process(CompleteRefund(refund_id=refund_id, actor=actor), asynchronous=False),
            attempts=setting("reservation_attempts"),
            key=key,
        )


def fail_refund(refund_id: str, reason: str, actor: str = "system") -> Refund:
    return current_domain.process(FailRefund(refund_id=refund_id, reason=reason, actor=actor), asynchronous=False)
