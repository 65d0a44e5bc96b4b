"""Refund domain events."""

from protean.fields import DateTime, Float, Identifier, String

from freshcart.domain import freshcart


@freshcart.event(part_of="Refund")
class RefundRequested:
    __version__ = 1

    refund_id = Identifier(required=True)
    refund_number = String(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    amount = Float(required=True)
    reason = String(required=True)
    requested_at = DateTime(required=True)


@freshcart.event(part_of="Refund")
class RefundApproved:
    __version__ = 1

    refund_id = Identifier(required=True)
    order_id = Identifier(required=True)
    approved_by = String(required=True)
    approved_at = DateTime(required=True)


@freshcart.event(part_of="Refund")
class RefundRejected:
    __version__ = 1

    refund_id = Identifier(required=True)
    order_id = Identifier(required=True)
    rejected_by = String(required=True)
    reason = String(required=True)
    rejected_at = DateTime(required=True)


@freshcart.event(part_of="Refund")
class RefundProcessingStarted:
    """The gateway accepted the refund transfer."""

    __version__ = 1

    refund_id = Identifier(required=True)
    order_id = Identifier(required=True)
    gateway_refund_id = String(required=True)
    started_at = DateTime(required=True)


@freshcart.event(part_of="Refund")
class RefundCompleted:
    __version__ = 1

    refund_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    completed_at = DateTime(required=True)


@freshcart.event(part_of="Refund")
class RefundFailed:
    __version__ = 1

    refund_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)
