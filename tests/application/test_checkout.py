"""Application tests for checkout: slot reservation and order creation."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from freshcart.errors import SlotFull, SlotUnavailable
from freshcart.order.order import Order, OrderStatus, PaymentStatus
from freshcart.timeslot.management import SetSlotAvailability, UpdateSlotCapacity
from freshcart.timeslot.slot import TimeSlot, slot_key


def _slot(slot_date, start_time="10:00"):
    return current_domain.repository_for(TimeSlot).get(slot_key(slot_date, start_time))


class TestPlaceOrder:
    def test_order_is_persisted_pending(self, place_test_order):
        order = place_test_order()
        stored = current_domain.repository_for(Order).get(order.id)
        assert stored.status == OrderStatus.PENDING.value
        assert stored.payment_status == PaymentStatus.PENDING.value
        assert stored.total == 18.36
        assert stored.order_number.startswith("ORD-")

    def test_slot_capacity_is_taken(self, place_test_order, slot_date):
        order = place_test_order()
        slot = _slot(slot_date)
        assert order.slot_id == str(slot.id)
        assert slot.current_orders == 1
        assert slot.current_items == 6

    def test_order_numbers_are_sequential(self, place_test_order):
        first = place_test_order()
        second = place_test_order()
        assert int(second.order_number[-4:]) == int(first.order_number[-4:]) + 1

    def test_delivery_needs_address(self, place_test_order, slot_date):
        with pytest.raises(ValidationError):
            place_test_order(fulfillment_type="Delivery")
        with pytest.raises(ObjectNotFoundError):
            _slot(slot_date)

    def test_empty_cart_rejected(self, place_test_order):
        with pytest.raises(ValidationError):
            place_test_order(items=[])


class TestSlotGuards:
    def test_full_slot_rejects_checkout(self, place_test_order, slot_date):
        place_test_order()
        current_domain.process(
            UpdateSlotCapacity(slot_id=slot_key(slot_date, "10:00"), max_orders=1, max_items=100),
            asynchronous=False,
        )

        with pytest.raises(SlotFull):
            place_test_order(user_id="user-002")

        assert len(current_domain.repository_for(Order).find_for_user("user-002")) == 0
        assert _slot(slot_date).current_orders == 1

    def test_closed_slot_rejects_checkout(self, place_test_order, slot_date):
        place_test_order()
        current_domain.process(
            SetSlotAvailability(slot_id=slot_key(slot_date, "10:00"), is_available=False),
            asynchronous=False,
        )
        with pytest.raises(SlotUnavailable):
            place_test_order()

    def test_failed_order_creation_releases_slot(self, place_test_order, slot_date):
        place_test_order()

        with pytest.raises(ValidationError):
            place_test_order(customer_email="x" * 300 + "@example.com")

        slot = _slot(slot_date)
        assert slot.current_orders == 1
        assert slot.current_items == 6
