"""Refund aggregate (CQRS): one refund request against one order.

State Machine:
    PENDING → {APPROVED, REJECTED}
    APPROVED → PROCESSING → {COMPLETED, FAILED}

REJECTED, COMPLETED and FAILED are terminal. A failed refund is never
retried in place; a new refund is requested instead.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String, Text

from freshcart.domain import freshcart
from freshcart.errors import InvalidTransition
from freshcart.refund.events import (
    RefundApproved,
    RefundCompleted,
    RefundFailed,
    RefundProcessingStarted,
    RefundRejected,
    RefundRequested,
)
from freshcart.utils.timestamps import as_naive_utc


class RefundStatus(Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    REJECTED = "Rejected"
    FAILED = "Failed"


class RefundReason(Enum):
    CUSTOMER_REQUEST = "Customer_Request"
    WRONG_ITEM = "Wrong_Item"
    MISSING_ITEM = "Missing_Item"
    QUALITY_ISSUE = "Quality_Issue"
    LATE_DELIVERY = "Late_Delivery"
    OTHER = "Other"


_VALID_TRANSITIONS = {
    RefundStatus.PENDING: {RefundStatus.APPROVED, RefundStatus.REJECTED},
    RefundStatus.APPROVED: {RefundStatus.PROCESSING},
    RefundStatus.PROCESSING: {RefundStatus.COMPLETED, RefundStatus.FAILED},
    RefundStatus.COMPLETED: set(),
    RefundStatus.REJECTED: set(),
    RefundStatus.FAILED: set(),
}

# Refunds still on their way to the customer
OPEN_STATUSES = {RefundStatus.PENDING, RefundStatus.APPROVED, RefundStatus.PROCESSING}


@freshcart.aggregate
class Refund:
    refund_number = String(required=True, max_length=20, unique=True)
    order_id = Identifier(required=True)
    order_number = String(max_length=20)
    user_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.01)
    reason = String(required=True, choices=RefundReason)
    customer_explanation = Text()
    status = String(choices=RefundStatus, default=RefundStatus.PENDING.value)
    admin_notes = Text()
    rejection_reason = String(max_length=500)
    processed_by = String(max_length=100)
    gateway_refund_id = String(max_length=255)
    requested_at = DateTime()
    approved_at = DateTime()
    rejected_at = DateTime()
    processing_at = DateTime()
    completed_at = DateTime()
    failed_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def request(
        cls,
        refund_number: str,
        order_id: str,
        order_number: str,
        user_id: str,
        amount: float,
        reason: str,
        customer_explanation: str | None = None,
    ) -> "Refund":
        now = datetime.now(UTC)
        refund = cls(
            refund_number=refund_number,
            order_id=order_id,
            order_number=order_number,
            user_id=user_id,
            amount=round(amount, 2),
            reason=reason,
            customer_explanation=customer_explanation,
            status=RefundStatus.PENDING.value,
            requested_at=now,
            updated_at=now,
        )
        refund.raise_(
            RefundRequested(
                refund_id=str(refund.id),
                refund_number=refund_number,
                order_id=order_id,
                user_id=user_id,
                amount=refund.amount,
                reason=reason,
                requested_at=now,
            )
        )
        return refund

    @property
    def is_open(self) -> bool:
        return RefundStatus(self.status) in OPEN_STATUSES

    def _assert_can_transition(self, target_status: RefundStatus) -> None:
        current = RefundStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(
                {"status": [f"Cannot transition refund from {current.value} to {target_status.value}"]}
            )

    def approve(self, actor: str, notes: str | None = None) -> None:
        self._assert_can_transition(RefundStatus.APPROVED)
        now = datetime.now(UTC)
        self.status = RefundStatus.APPROVED.value
        self.processed_by = actor
        if notes:
            self.admin_notes = notes
        self.approved_at = now
        self.updated_at = now
        self.raise_(
            RefundApproved(refund_id=str(self.id), order_id=str(self.order_id), approved_by=actor, approved_at=now)
        )

    def reject(self, actor: str, reason: str) -> None:
        self._assert_can_transition(RefundStatus.REJECTED)
        now = datetime.now(UTC)
        self.status = RefundStatus.REJECTED.value
        self.processed_by = actor
        self.rejection_reason = reason
        self.rejected_at = now
        self.updated_at = now
        self.raise_(
            RefundRejected(
                refund_id=str(self.id),
                order_id=str(self.order_id),
                rejected_by=actor,
                reason=reason,
                rejected_at=now,
            )
        )

    def start_processing(self, gateway_refund_id: str) -> None:
        self._assert_can_transition(RefundStatus.PROCESSING)
        now = datetime.now(UTC)
        self.status = RefundStatus.PROCESSING.value
        self.gateway_refund_id = gateway_refund_id
        self.processing_at = now
        self.updated_at = now
        self.raise_(
            RefundProcessingStarted(
                refund_id=str(self.id),
                order_id=str(self.order_id),
                gateway_refund_id=gateway_refund_id,
                started_at=now,
            )
        )

    def complete(self) -> None:
        self._assert_can_transition(RefundStatus.COMPLETED)
        now = datetime.now(UTC)
        self.status = RefundStatus.COMPLETED.value
        self.completed_at = now
        self.updated_at = now
        self.raise_(
            RefundCompleted(refund_id=str(self.id), order_id=str(self.order_id), amount=self.amount, completed_at=now)
        )

    def fail(self, reason: str) -> None:
        self._assert_can_transition(RefundStatus.FAILED)
        now = datetime.now(UTC)
        self.status = RefundStatus.FAILED.value
        self.admin_notes = f"Failed: {reason}"
        self.failed_at = now
        self.updated_at = now
        self.raise_(RefundFailed(refund_id=str(self.id), order_id=str(self.order_id), reason=reason, failed_at=now))


@freshcart.repository(part_of=Refund)
class RefundRepository:
    def _newest_first(self, refunds) -> list[Refund]:
        return sorted(refunds, key=lambda r: as_naive_utc(r.requested_at), reverse=True)

    def find_for_order(self, order_id: str) -> list[Refund]:
        return self._newest_first(self._dao.query.filter(order_id=order_id).all().items)

    def find_for_user(self, user_id: str) -> list[Refund]:
        return self._newest_first(self._dao.query.filter(user_id=user_id).all().items)

    def find_by_status(self, status: str | None = None) -> list[Refund]:
        query = self._dao.query
        if status:
            query = query.filter(status=status)
        return self._newest_first(query.all().items)

    def completed_total_for_order(self, order_id: str) -> float:
        completed = self._dao.query.filter(order_id=order_id, status=RefundStatus.COMPLETED.value).all().items
        return round(sum(r.amount for r in completed), 2)
