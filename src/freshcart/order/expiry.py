"""Unpaid order expiry: cancels PENDING orders whose payment window closed.

Meant to be triggered periodically by an external scheduler (cron, K8s
CronJob) through the maintenance API or ``manage.py expire-orders``. Each
order is cancelled through the normal cancellation path, which also returns
its slot capacity. Running two sweeps at once is harmless: an order already
cancelled by one is rejected by the other's transition check and skipped.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from freshcart.order.cancellation import cancel_order
from freshcart.order.order import Order
from freshcart.settings import setting

logger = structlog.get_logger(__name__)

EXPIRY_NOTE = "Payment window expired"


def expire_unpaid_orders(older_than_minutes: int | None = None, as_of: datetime | None = None) -> int:
    """Cancel unpaid PENDING orders placed before the cutoff. Returns how many were cancelled."""
    as_of = as_of or datetime.now(UTC)
    threshold_minutes = setting("pending_order_ttl_minutes") if older_than_minutes is None else older_than_minutes
    cutoff = as_of - timedelta(minutes=threshold_minutes)

    logger.info("Checking for unpaid orders", cutoff=cutoff.isoformat(), threshold_minutes=threshold_minutes)

    stale = current_domain.repository_for(Order).find_unpaid_before(cutoff)
    if not stale:
        logger.info("No unpaid orders past their payment window")
        return 0

    expired_count = 0
    for order in stale:
        try:
            cancel_order(str(order.id), EXPIRY_NOTE, "system")
            expired_count += 1
            logger.info("Expired unpaid order", order_id=str(order.id), order_number=order.order_number)
        except (ValidationError, ObjectNotFoundError) as exc:
            logger.warning("Failed to expire unpaid order", order_id=str(order.id), error=str(exc))

    logger.info("Unpaid order sweep complete", expired_count=expired_count)
    return expired_count
