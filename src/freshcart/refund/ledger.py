"""Read side of the refund ledger: lookups and aggregate figures."""

from protean.utils.globals import current_domain

from freshcart.refund.refund import Refund, RefundStatus


def refunds_for_order(order_id: str) -> list[Refund]:
    return current_domain.repository_for(Refund).find_for_order(order_id)


def refunds_for_user(user_id: str) -> list[Refund]:
    return current_domain.repository_for(Refund).find_for_user(user_id)


def list_refunds(order_id: str | None = None, user_id: str | None = None, status: str | None = None) -> list[Refund]:
    repo = current_domain.repository_for(Refund)
    if order_id:
        refunds = repo.find_for_order(order_id)
    elif user_id:
        refunds = repo.find_for_user(user_id)
    else:
        return repo.find_by_status(status)

    if status:
        refunds = [r for r in refunds if r.status == status]
    return refunds


def has_pending_refund(order_id: str) -> bool:
    """True while any refund for the order has not reached a terminal state."""
    return any(r.is_open for r in refunds_for_order(order_id))


def refund_stats() -> dict:
    """Counts per bucket plus the total amount actually paid back.

    ``approved`` includes refunds already handed to the gateway.
    """
    refunds = current_domain.repository_for(Refund).find_by_status()
    counts = {status: 0 for status in RefundStatus}
    total_refunded = 0.0
    for refund in refunds:
        status = RefundStatus(refund.status)
        counts[status] += 1
        if status == RefundStatus.COMPLETED:
            total_refunded += refund.amount

    return {
        "pending": counts[RefundStatus.PENDING],
        "approved": counts[RefundStatus.APPROVED] + counts[RefundStatus.PROCESSING],
        "completed": counts[RefundStatus.COMPLETED],
        "rejected": counts[RefundStatus.REJECTED],
        "failed": counts[RefundStatus.FAILED],
        "total_refunded_amount": round(total_refunded, 2),
    }
