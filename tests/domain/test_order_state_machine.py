"""Order state machine: legal edges, guards and the status history they leave."""

import pytest

from freshcart.errors import InvalidTransition
from freshcart.order.events import OrderPaid, OrderStatusChanged
from freshcart.order.order import Order, OrderStatus, PaymentStatus


def _make_order(fulfillment_type="Pickup"):
    return Order.place(
        order_number="ORD-2026-0042",
        user_id="user-001",
        customer_email="sam@example.com",
        customer_name="Sam",
        items_data=[{"product_id": "eggs", "product_name": "Eggs", "quantity": 1, "unit_price": 6.0}],
        fulfillment_type=fulfillment_type,
        tax_rate=0.08,
        delivery_address="1 Main St" if fulfillment_type == "Delivery" else None,
    )


_PATH_TO = {
    OrderStatus.PENDING: [],
    OrderStatus.PAID: [OrderStatus.PAID],
    OrderStatus.PROCESSING: [OrderStatus.PAID, OrderStatus.PROCESSING],
    OrderStatus.READY_FOR_PICKUP: [OrderStatus.PAID, OrderStatus.PROCESSING, OrderStatus.READY_FOR_PICKUP],
    OrderStatus.OUT_FOR_DELIVERY: [OrderStatus.PAID, OrderStatus.PROCESSING, OrderStatus.OUT_FOR_DELIVERY],
    OrderStatus.DELIVERED: [
        OrderStatus.PAID,
        OrderStatus.PROCESSING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    ],
    OrderStatus.COMPLETED: [
        OrderStatus.PAID,
        OrderStatus.PROCESSING,
        OrderStatus.READY_FOR_PICKUP,
        OrderStatus.COMPLETED,
    ],
    OrderStatus.CANCELLED: [OrderStatus.CANCELLED],
}


def _order_at(status):
    order = _make_order()
    for step in _PATH_TO[status]:
        order.transition_to(step, note=f"to {step.value}", actor="staff-1")
    order._events.clear()
    return order


class TestLegalTransitions:
    @pytest.mark.parametrize(
        "start,target",
        [
            (OrderStatus.PENDING, OrderStatus.PAID),
            (OrderStatus.PENDING, OrderStatus.CANCELLED),
            (OrderStatus.PAID, OrderStatus.PROCESSING),
            (OrderStatus.PAID, OrderStatus.CANCELLED),
            (OrderStatus.PROCESSING, OrderStatus.READY_FOR_PICKUP),
            (OrderStatus.PROCESSING, OrderStatus.OUT_FOR_DELIVERY),
            (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
            (OrderStatus.READY_FOR_PICKUP, OrderStatus.COMPLETED),
            (OrderStatus.READY_FOR_PICKUP, OrderStatus.DELIVERED),
            (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED),
            (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.COMPLETED),
        ],
    )
    def test_edge_is_allowed(self, start, target):
        order = _order_at(start)
        order.transition_to(target, actor="staff-1")
        assert order.status == target.value


class TestIllegalTransitions:
    @pytest.mark.parametrize(
        "start,target",
        [
            (OrderStatus.PENDING, OrderStatus.PROCESSING),
            (OrderStatus.PENDING, OrderStatus.COMPLETED),
            (OrderStatus.PAID, OrderStatus.DELIVERED),
            (OrderStatus.READY_FOR_PICKUP, OrderStatus.CANCELLED),
            (OrderStatus.DELIVERED, OrderStatus.PROCESSING),
            (OrderStatus.COMPLETED, OrderStatus.CANCELLED),
            (OrderStatus.CANCELLED, OrderStatus.PAID),
        ],
    )
    def test_edge_is_rejected(self, start, target):
        order = _order_at(start)
        history_before = len(order.history)

        with pytest.raises(InvalidTransition):
            order.transition_to(target, actor="staff-1")

        assert order.status == start.value
        assert len(order.history) == history_before
        assert order._events == []

    def test_refunded_requires_full_refund(self):
        order = _order_at(OrderStatus.PAID)
        with pytest.raises(InvalidTransition):
            order.transition_to(OrderStatus.REFUNDED, actor="admin")


class TestStatusHistory:
    def test_every_transition_is_logged_in_order(self):
        order = _order_at(OrderStatus.COMPLETED)
        statuses = [entry.status for entry in order.status_history]
        assert statuses == ["Pending", "Paid", "Processing", "Ready_For_Pickup", "Completed"]
        assert [entry.sequence for entry in order.status_history] == [1, 2, 3, 4, 5]

    def test_entry_records_previous_status_and_actor(self):
        order = _order_at(OrderStatus.PAID)
        order.transition_to(OrderStatus.PROCESSING, note="Picking", actor="staff-9")
        last = order.status_history[-1]
        assert last.previous_status == "Paid"
        assert last.actor == "staff-9"
        assert last.note == "Picking"


class TestStatusEvents:
    def test_status_change_event(self):
        order = _order_at(OrderStatus.PAID)
        order.transition_to(OrderStatus.PROCESSING, actor="staff-1")
        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "Paid"
        assert event.new_status == "Processing"
        assert event.notify_customer is True

    def test_confirm_payment_raises_order_paid(self):
        order = _make_order()
        order.confirm_payment("Cash", None, "staff-2")
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.paid_at is not None
        assert isinstance(order._events[-1], OrderPaid)

    def test_payment_failure_keeps_order_pending(self):
        order = _make_order()
        order.record_payment_failure("Card declined")
        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.FAILED.value

    def test_cancel_records_reason_and_timestamp(self):
        order = _order_at(OrderStatus.PAID)
        order.cancel("Changed my mind", "user-001")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "Changed my mind"
        assert order.cancelled_at is not None


class TestNotificationAllowlist:
    @pytest.mark.parametrize(
        "target,expected",
        [
            (OrderStatus.PAID, True),
            (OrderStatus.CANCELLED, True),
        ],
    )
    def test_from_pending(self, target, expected):
        order = _make_order()
        order.transition_to(target, actor="staff-1")
        changed = [e for e in order._events if isinstance(e, OrderStatusChanged)]
        assert changed[-1].notify_customer is expected

    def test_refunded_is_not_auto_notified(self):
        order = _order_at(OrderStatus.PAID)
        order.apply_refund("refund-1", order.total, "admin")
        changed = [e for e in order._events if isinstance(e, OrderStatusChanged)]
        assert changed[-1].new_status == "Refunded"
        assert changed[-1].notify_customer is False
