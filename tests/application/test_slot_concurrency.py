"""Concurrent reservations against one slot never oversell it."""

import threading
from concurrent.futures import ThreadPoolExecutor

from protean import current_domain

from freshcart.domain import freshcart
from freshcart.errors import SlotFull
from freshcart.timeslot.capacity import reserve_slot
from freshcart.timeslot.slot import TimeSlot
from freshcart.utils.locks import active_lock_keys

SLOT_DATE = "2026-11-02"


def _run_concurrently(count, item_count):
    barrier = threading.Barrier(count)

    def _attempt(_):
        with freshcart.domain_context():
            barrier.wait()
            try:
                reserve_slot(SLOT_DATE, "10:00", item_count)
                return "reserved"
            except SlotFull:
                return "full"

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(_attempt, range(count)))


class TestConcurrentReservations:
    def test_order_limit_holds_under_contention(self):
        current_domain.repository_for(TimeSlot).add(TimeSlot.create(SLOT_DATE, "10:00", 60, 5, 100))

        outcomes = _run_concurrently(count=6, item_count=4)

        assert outcomes.count("reserved") == 5
        assert outcomes.count("full") == 1
        slot = current_domain.repository_for(TimeSlot).get(f"{SLOT_DATE}_1000")
        assert slot.current_orders == 5
        assert slot.current_items == 20

    def test_item_limit_holds_under_contention(self):
        current_domain.repository_for(TimeSlot).add(TimeSlot.create(SLOT_DATE, "10:00", 60, 50, 20))

        outcomes = _run_concurrently(count=8, item_count=6)

        assert outcomes.count("reserved") == 3
        slot = current_domain.repository_for(TimeSlot).get(f"{SLOT_DATE}_1000")
        assert slot.current_orders == 3
        assert slot.current_items == 18

    def test_both_limits_bind_together(self):
        current_domain.repository_for(TimeSlot).add(TimeSlot.create(SLOT_DATE, "10:00", 60, 5, 20))

        outcomes = _run_concurrently(count=6, item_count=4)

        assert outcomes.count("reserved") == 5
        assert outcomes.count("full") == 1
        slot = current_domain.repository_for(TimeSlot).get(f"{SLOT_DATE}_1000")
        assert slot.current_orders == 5
        assert slot.current_items == 20
        assert slot.is_full

    def test_first_use_of_a_slot_under_contention(self):
        # No slot exists yet; every worker races to create it at default capacity
        outcomes = _run_concurrently(count=12, item_count=4)

        assert outcomes.count("reserved") == 10
        assert outcomes.count("full") == 2
        slot = current_domain.repository_for(TimeSlot).get(f"{SLOT_DATE}_1000")
        assert slot.current_orders == 10
        assert slot.current_items == 40

    def test_slot_locks_are_dropped_after_contention(self):
        current_domain.repository_for(TimeSlot).add(TimeSlot.create(SLOT_DATE, "10:00", 60, 5, 20))

        _run_concurrently(count=6, item_count=4)

        assert active_lock_keys() == []
