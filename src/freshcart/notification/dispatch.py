"""Customer status emails.

Reacts to ``OrderStatusChanged`` after the transition has committed. Delivery
is best-effort: a failed send is logged and never reaches the order write.
"""

import structlog
from protean.utils.mixins import handle

from freshcart.domain import freshcart
from freshcart.notification import EMAIL, get_channel
from freshcart.notification.messages import render_status_email
from freshcart.order.events import OrderStatusChanged
from freshcart.order.order import Order

logger = structlog.get_logger(__name__)


@freshcart.event_handler(part_of=Order)
class StatusNotificationDispatcher:
    @handle(OrderStatusChanged)
    def on_status_changed(self, event: OrderStatusChanged) -> None:
        if not event.notify_customer:
            return
        if not event.customer_email:
            logger.info("No customer email on order, skipping notification", order_id=str(event.order_id))
            return

        try:
            subject, body = render_status_email(
                event.new_status, event.order_number, event.customer_name, note=event.note
            )
            result = get_channel(EMAIL).send(to=event.customer_email, subject=subject, body=body)
        except Exception as exc:
            logger.error(
                "Status notification failed",
                order_id=str(event.order_id),
                status=event.new_status,
                error=str(exc),
            )
            return

        if result.get("status") != "sent":
            logger.warning(
                "Status notification not delivered",
                order_id=str(event.order_id),
                status=event.new_status,
                error=result.get("error"),
            )
            return

        logger.info(
            "Status notification sent",
            order_id=str(event.order_id),
            status=event.new_status,
            message_id=result.get("message_id"),
        )
