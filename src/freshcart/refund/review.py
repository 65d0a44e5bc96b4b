"""Administrative refund decisions: approve or reject a pending request."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.errors import require_admin
from freshcart.refund.refund import Refund

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="Refund")
class ApproveRefund:
    refund_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    actor_role = String(max_length=50)
    notes = Text()


@freshcart.command(part_of="Refund")
class RejectRefund:
    refund_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    actor_role = String(max_length=50)
    reason = String(required=True, max_length=500)


@freshcart.command_handler(part_of=Refund)
class RefundReviewHandler:
    @handle(ApproveRefund)
    def approve(self, command):
        require_admin(command.actor_role, "approve refunds")
        repo = current_domain.repository_for(Refund)
        refund = repo.get(command.refund_id)
        refund.approve(command.actor, notes=command.notes)
        repo.add(refund)
        logger.info("Refund approved", refund_id=str(refund.id), approved_by=command.actor)
        return refund

    @handle(RejectRefund)
    def reject(self, command):
        require_admin(command.actor_role, "reject refunds")
        repo = current_domain.repository_for(Refund)
        refund = repo.get(command.refund_id)
        refund.reject(command.actor, command.reason)
        repo.add(refund)
        logger.info("Refund rejected", refund_id=str(refund.id), rejected_by=command.actor, reason=command.reason)
        return refund
