"""Application tests for slot generation, availability listing and administration."""

from datetime import datetime

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from freshcart.timeslot.capacity import release_slot, reserve_slot
from freshcart.timeslot.management import (
    GenerateTimeSlots,
    SetSlotAvailability,
    UpdateSlotCapacity,
    list_available_slots,
)
from freshcart.timeslot.slot import TimeSlot

# 2026-11-01 is a Sunday, 2026-11-02 a Monday
SUNDAY = "2026-11-01"
MONDAY = "2026-11-02"


def _generate(start_date, days):
    return current_domain.process(GenerateTimeSlots(start_date=start_date, days=days), asynchronous=False)


class TestGenerateSlots:
    def test_slots_follow_operating_hours(self):
        created = _generate(SUNDAY, 2)
        # Sunday 09:00-18:00 and Monday 08:00-20:00 in hourly slots
        assert created == 9 + 12

        monday = current_domain.repository_for(TimeSlot).find_between(MONDAY, MONDAY)
        assert monday[0].start_time == "08:00"
        assert monday[-1].start_time == "19:00"
        assert monday[-1].end_time == "20:00"
        assert monday[0].max_orders == 10
        assert monday[0].max_items == 100

    def test_generation_is_idempotent(self):
        _generate(MONDAY, 1)
        reserve_slot(MONDAY, "10:00", 5)

        assert _generate(MONDAY, 1) == 0
        slot = current_domain.repository_for(TimeSlot).get(f"{MONDAY}_1000")
        assert slot.current_items == 5


class TestReserveAndRelease:
    def test_reserve_creates_slot_on_first_use(self):
        slot = reserve_slot(MONDAY, "13:00", 4)
        assert slot.id == f"{MONDAY}_1300"
        assert slot.end_time == "14:00"
        assert slot.current_orders == 1

    def test_release_restores_counts(self):
        reserve_slot(MONDAY, "13:00", 4)
        reserve_slot(MONDAY, "13:00", 2)
        slot = release_slot(MONDAY, "13:00", 4)
        assert slot.current_orders == 1
        assert slot.current_items == 2


class TestAvailableSlots:
    def test_lead_time_excludes_imminent_slots(self):
        _generate(MONDAY, 1)
        slots = list_available_slots(MONDAY, MONDAY, as_of=datetime(2026, 11, 2, 9, 30))
        assert [s.start_time for s in slots][0] == "11:00"
        assert len(slots) == 9

    def test_full_and_closed_slots_excluded(self):
        _generate(MONDAY, 1)
        current_domain.process(
            UpdateSlotCapacity(slot_id=f"{MONDAY}_1200", max_orders=1, max_items=100),
            asynchronous=False,
        )
        reserve_slot(MONDAY, "12:00", 1)
        current_domain.process(SetSlotAvailability(slot_id=f"{MONDAY}_1300", is_available=False), asynchronous=False)

        starts = [s.start_time for s in list_available_slots(MONDAY, MONDAY, as_of=datetime(2026, 11, 1))]

        assert "12:00" not in starts
        assert "13:00" not in starts
        assert "14:00" in starts

    def test_item_count_filters_by_room(self):
        _generate(MONDAY, 1)
        reserve_slot(MONDAY, "15:00", 95)
        starts = [
            s.start_time for s in list_available_slots(MONDAY, MONDAY, item_count=10, as_of=datetime(2026, 11, 1))
        ]
        assert "15:00" not in starts
        assert "16:00" in starts

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            list_available_slots(MONDAY, SUNDAY)


class TestAdministration:
    def test_capacity_update_rejected_below_bookings(self):
        reserve_slot(MONDAY, "10:00", 30)
        with pytest.raises(ValidationError):
            current_domain.process(
                UpdateSlotCapacity(slot_id=f"{MONDAY}_1000", max_orders=10, max_items=20),
                asynchronous=False,
            )
        slot = current_domain.repository_for(TimeSlot).get(f"{MONDAY}_1000")
        assert slot.max_items == 100
