"""Shared BDD fixtures and step definitions for the order engine."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from freshcart.order.events import OrderPaid, OrderStatusChanged, RefundAppliedToOrder
from freshcart.order.order import Order, OrderStatus

# Map event name strings to classes for dynamic lookup
_EVENT_CLASSES = {
    "OrderPaid": OrderPaid,
    "OrderStatusChanged": OrderStatusChanged,
    "RefundAppliedToOrder": RefundAppliedToOrder,
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


def _place(unit_price, quantity=1, fulfillment_type="Pickup"):
    return Order.place(
        order_number="ORD-2026-0042",
        user_id="user-042",
        items_data=[
            {"product_id": "hamper", "product_name": "Gift Hamper", "quantity": quantity, "unit_price": unit_price}
        ],
        fulfillment_type=fulfillment_type,
        tax_rate=0.08,
        customer_email="kim@example.com",
        customer_name="Kim",
        delivery_address="9 Harbour Road" if fulfillment_type == "Delivery" else None,
        slot_date="2026-11-02",
        slot_start_time="10:00",
        slot_id="2026-11-02_1000",
    )


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a placed pickup order", target_fixture="order")
def placed_pickup_order():
    order = _place(92.59)
    order._events.clear()
    return order


@given("a placed delivery order", target_fixture="order")
def placed_delivery_order():
    order = _place(92.59, fulfillment_type="Delivery")
    order._events.clear()
    return order


@given("the order is paid")
def order_is_paid(order):
    order.confirm_payment("Card", "ch_bdd", "payment-gateway")
    order._events.clear()


@given(parsers.cfparse('the order has moved to "{status}"'))
def order_moved_to(order, status):
    order.transition_to(OrderStatus(status), actor="staff-1")
    order._events.clear()


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then("the action fails with a validation error")
def action_fails_with_validation_error(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse('the action fails with a "{code}" error'))
def action_fails_with_code(error, code):
    assert error["exc"] is not None, f"Expected a {code} error but none was raised"
    assert error["exc"].code == code


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then(parsers.cfparse('the "{event_type}" event is raised'))
def event_raised(order, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(isinstance(e, event_cls) for e in order._events)


@then("no event is raised")
def no_event_raised(order):
    assert order._events == []


@then(parsers.cfparse('the payment status is "{status}"'))
def payment_status_is(order, status):
    assert order.payment_status == status
