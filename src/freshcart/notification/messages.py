"""Customer-facing wording for order status emails."""

from freshcart.order.order import OrderStatus

STATUS_MESSAGES = {
    OrderStatus.PAID: "Your order has been confirmed and is being prepared!",
    OrderStatus.PROCESSING: "Your order is being picked and packed.",
    OrderStatus.READY_FOR_PICKUP: "Your order is ready for pickup!",
    OrderStatus.OUT_FOR_DELIVERY: "Your order is out for delivery!",
    OrderStatus.DELIVERED: "Your order has been delivered!",
    OrderStatus.COMPLETED: "Your order is complete!",
    OrderStatus.CANCELLED: "Your order has been cancelled.",
}


def render_status_email(
    status: str, order_number: str, customer_name: str | None, note: str | None = None
) -> tuple[str, str]:
    """Return ``(subject, body)`` for a status change, or raise KeyError for unknown statuses."""
    message = STATUS_MESSAGES[OrderStatus(status)]
    greeting = f"Hi {customer_name}," if customer_name else "Hi,"
    lines = [greeting, "", message, "", f"Order number: {order_number}"]
    if note and OrderStatus(status) == OrderStatus.CANCELLED:
        lines.append(f"Reason: {note}")
    lines += ["", "Thank you for shopping with FreshCart."]
    return f"Order {order_number}: {message}", "\n".join(lines)
