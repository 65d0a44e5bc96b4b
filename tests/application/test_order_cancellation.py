"""Application tests for order cancellation and slot release."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain

from freshcart.errors import InvalidTransition
from freshcart.fulfillment.fulfillment import FulfillmentStatus
from freshcart.fulfillment.queries import get_fulfillment_for_order
from freshcart.order.cancellation import cancel_order
from freshcart.order.order import Order, OrderStatus
from freshcart.order.transition import transition_order
from freshcart.timeslot.slot import TimeSlot, slot_key


def _slot(slot_date, start_time="10:00"):
    return current_domain.repository_for(TimeSlot).get(slot_key(slot_date, start_time))


class TestCancelOrder:
    def test_pending_order_cancelled_and_slot_released(self, place_test_order, slot_date):
        order = place_test_order()
        cancelled = cancel_order(str(order.id), "Changed my mind", "user-001")

        assert cancelled.status == OrderStatus.CANCELLED.value
        assert cancelled.cancellation_reason == "Changed my mind"
        slot = _slot(slot_date)
        assert slot.current_orders == 0
        assert slot.current_items == 0

    def test_paid_order_can_be_cancelled(self, paid_order, slot_date):
        order = paid_order()
        cancel_order(str(order.id), "Out of stock", "manager-1")
        assert current_domain.repository_for(Order).get(order.id).status == OrderStatus.CANCELLED.value
        assert _slot(slot_date).current_orders == 0

    def test_fulfillment_is_left_alone(self, paid_order):
        order = paid_order()
        cancel_order(str(order.id), "Out of stock", "manager-1")
        assert get_fulfillment_for_order(str(order.id)).status == FulfillmentStatus.PENDING.value

    def test_cancel_via_generic_transition(self, place_test_order, slot_date):
        order = place_test_order()
        transition_order(str(order.id), "Cancelled", "No longer needed", "user-001")
        stored = current_domain.repository_for(Order).get(order.id)
        assert stored.status == OrderStatus.CANCELLED.value
        assert stored.cancellation_reason == "No longer needed"
        assert _slot(slot_date).current_orders == 0

    def test_cancelled_order_cannot_be_cancelled_again(self, place_test_order, slot_date):
        order = place_test_order()
        cancel_order(str(order.id), "Changed my mind", "user-001")
        with pytest.raises(InvalidTransition):
            cancel_order(str(order.id), "Again", "user-001")
        assert _slot(slot_date).current_orders == 0

    def test_ready_order_cannot_be_cancelled(self, paid_order):
        order = paid_order()
        transition_order(str(order.id), "Processing", None, "picker-1")
        transition_order(str(order.id), "Ready_For_Pickup", None, "picker-1")
        with pytest.raises(InvalidTransition):
            cancel_order(str(order.id), "Too late", "user-001")


class TestStartedSlot:
    def test_capacity_kept_once_slot_has_started(self, place_test_order):
        yesterday = (datetime.now(UTC).date() - timedelta(days=1)).isoformat()
        order = place_test_order(slot_date=yesterday)

        cancel_order(str(order.id), "No show", "manager-1")

        slot = _slot(yesterday)
        assert slot.current_orders == 1
        assert slot.current_items == 6
