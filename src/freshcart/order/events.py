"""Order domain events.

Events are versioned, immutable facts. ``OrderStatusChanged`` is raised for
every committed transition; its ``notify_customer`` flag tells the
notification dispatcher whether the customer should hear about it.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from freshcart.domain import freshcart


@freshcart.event(part_of="Order")
class OrderPlaced:
    """A customer checked out and the order is awaiting payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    item_count = Integer(required=True)
    fulfillment_type = String(required=True)
    slot_id = String()
    subtotal = Float(required=True)
    tax = Float(required=True)
    delivery_fee = Float()
    discount = Float()
    total = Float(required=True)
    placed_at = DateTime(required=True)


@freshcart.event(part_of="Order")
class OrderStatusChanged:
    """An order moved along one edge of its lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    customer_email = String()
    customer_name = String()
    fulfillment_type = String()
    previous_status = String(required=True)
    new_status = String(required=True)
    note = String()
    actor = String(required=True)
    notify_customer = Boolean(default=False)
    changed_at = DateTime(required=True)


@freshcart.event(part_of="Order")
class OrderPaid:
    """Payment for the order was confirmed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_method = String(required=True)
    payment_reference = String()
    items = Text(required=True)  # JSON: list of {product_id, quantity}
    total = Float(required=True)
    paid_at = DateTime(required=True)


@freshcart.event(part_of="Order")
class OrderPaymentFailed:
    """A payment attempt for the order was declined."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@freshcart.event(part_of="Order")
class RefundAppliedToOrder:
    """A completed refund was added to the order's refunded amount."""

    __version__ = 1

    order_id = Identifier(required=True)
    refund_id = Identifier(required=True)
    amount = Float(required=True)
    refunded_amount = Float(required=True)
    payment_status = String(required=True)
    applied_at = DateTime(required=True)


@freshcart.event(part_of="Order")
class OrderNotesAdded:
    """Staff appended an internal note to the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    notes = Text(required=True)
    added_by = String(required=True)
    added_at = DateTime(required=True)
