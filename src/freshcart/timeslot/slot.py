"""TimeSlot aggregate (CQRS): a pickup/delivery window with bounded capacity.

A slot carries two independent counters, orders and items, each with its own
limit. Counters only move through ``reserve`` and ``release``; the aggregate
invariant keeps both within ``[0, max]`` whatever the caller does.

Slots are keyed ``{date}_{HHMM}`` so the same (date, start time) always maps to
the same aggregate, whether it was pre-generated or created on first use.
"""

from datetime import UTC, date, datetime, time, timedelta

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String

from freshcart.domain import freshcart
from freshcart.errors import InvalidQuantity, SlotFull, SlotUnavailable
from freshcart.timeslot.events import (
    SlotAvailabilityChanged,
    SlotCapacityUpdated,
    SlotCreated,
    SlotReleased,
    SlotReserved,
)


# ---------------------------------------------------------------------------
# Key and time helpers
# ---------------------------------------------------------------------------
def parse_slot_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError({"date": [f"Invalid slot date '{value}', expected YYYY-MM-DD"]}) from None


def parse_slot_time(value: str) -> time:
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except (TypeError, ValueError):
        raise ValidationError({"start_time": [f"Invalid slot time '{value}', expected HH:MM"]}) from None
    return parsed.time()


def slot_key(slot_date: str, start_time: str) -> str:
    """Deterministic slot id, e.g. ``2026-03-14_0900``."""
    parse_slot_date(slot_date)
    parse_slot_time(start_time)
    return f"{slot_date}_{start_time.replace(':', '')}"


def slot_start(slot_date: str, start_time: str) -> datetime:
    """Naive UTC datetime at which the slot begins."""
    return datetime.combine(parse_slot_date(slot_date), parse_slot_time(start_time))


def add_minutes(start_time: str, minutes: int) -> str:
    start = datetime.combine(date.min, parse_slot_time(start_time))
    return (start + timedelta(minutes=minutes)).strftime("%H:%M")


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@freshcart.aggregate
class TimeSlot:
    date = String(required=True, max_length=10)
    start_time = String(required=True, max_length=5)
    end_time = String(required=True, max_length=5)
    max_orders = Integer(required=True, min_value=1)
    current_orders = Integer(default=0, min_value=0)
    max_items = Integer(required=True, min_value=1)
    current_items = Integer(default=0, min_value=0)
    is_available = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def counters_must_stay_within_limits(self):
        if self.current_orders is not None and self.max_orders is not None:
            if not 0 <= self.current_orders <= self.max_orders:
                raise ValidationError({"current_orders": ["Order count must stay between 0 and the slot maximum"]})
        if self.current_items is not None and self.max_items is not None:
            if not 0 <= self.current_items <= self.max_items:
                raise ValidationError({"current_items": ["Item count must stay between 0 and the slot maximum"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        slot_date: str,
        start_time: str,
        duration_minutes: int,
        max_orders: int,
        max_items: int,
    ) -> "TimeSlot":
        now = datetime.now(UTC)
        slot = cls(
            id=slot_key(slot_date, start_time),
            date=slot_date,
            start_time=start_time,
            end_time=add_minutes(start_time, duration_minutes),
            max_orders=max_orders,
            max_items=max_items,
            current_orders=0,
            current_items=0,
            is_available=True,
            created_at=now,
            updated_at=now,
        )
        slot.raise_(
            SlotCreated(
                slot_id=str(slot.id),
                date=slot_date,
                start_time=start_time,
                end_time=slot.end_time,
                max_orders=max_orders,
                max_items=max_items,
                created_at=now,
            )
        )
        return slot

    # -------------------------------------------------------------------
    # Derived facts
    # -------------------------------------------------------------------
    @property
    def is_full(self) -> bool:
        return self.current_orders >= self.max_orders or self.current_items >= self.max_items

    @property
    def capacity_percentage(self) -> float:
        """The higher of order-count and item-count utilization, as a percentage."""
        order_ratio = self.current_orders / self.max_orders
        item_ratio = self.current_items / self.max_items
        return round(max(order_ratio, item_ratio) * 100, 1)

    def is_near_full(self, threshold: float) -> bool:
        return self.capacity_percentage >= threshold

    def has_room_for(self, item_count: int) -> bool:
        return self.current_orders < self.max_orders and self.current_items + item_count <= self.max_items

    @property
    def starts_at(self) -> datetime:
        return slot_start(self.date, self.start_time)

    # -------------------------------------------------------------------
    # Capacity
    # -------------------------------------------------------------------
    def reserve(self, item_count: int) -> None:
        """Take one order and ``item_count`` items of capacity, or fail without writing."""
        if item_count is None or item_count < 1:
            raise InvalidQuantity({"item_count": ["Item count must be at least 1"]})
        if not self.is_available:
            raise SlotUnavailable({"slot": [f"Time slot {self.date} {self.start_time} is not accepting orders"]})
        if not self.has_room_for(item_count):
            raise SlotFull(
                {
                    "slot": [
                        f"Time slot {self.date} {self.start_time} is full "
                        f"({self.current_orders}/{self.max_orders} orders, "
                        f"{self.current_items}/{self.max_items} items)"
                    ]
                }
            )

        now = datetime.now(UTC)
        with atomic_change(self):
            self.current_orders += 1
            self.current_items += item_count
            self.updated_at = now

        self.raise_(
            SlotReserved(
                slot_id=str(self.id),
                item_count=item_count,
                current_orders=self.current_orders,
                current_items=self.current_items,
                capacity_percentage=self.capacity_percentage,
                reserved_at=now,
            )
        )

    def release(self, item_count: int) -> None:
        """Return one order and ``item_count`` items of capacity, floored at zero."""
        if item_count is None or item_count < 0:
            raise InvalidQuantity({"item_count": ["Item count cannot be negative"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.current_orders = max(0, self.current_orders - 1)
            self.current_items = max(0, self.current_items - item_count)
            self.updated_at = now

        self.raise_(
            SlotReleased(
                slot_id=str(self.id),
                item_count=item_count,
                current_orders=self.current_orders,
                current_items=self.current_items,
                released_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def set_availability(self, is_available: bool) -> None:
        """Open or close the slot for new reservations; existing counts are untouched."""
        if self.is_available == is_available:
            return

        now = datetime.now(UTC)
        self.is_available = is_available
        self.updated_at = now
        self.raise_(
            SlotAvailabilityChanged(
                slot_id=str(self.id),
                is_available=is_available,
                changed_at=now,
            )
        )

    def update_capacity(self, max_orders: int, max_items: int) -> None:
        if max_orders < self.current_orders:
            raise ValidationError(
                {"max_orders": [f"Cannot lower order limit below the {self.current_orders} orders already booked"]}
            )
        if max_items < self.current_items:
            raise ValidationError(
                {"max_items": [f"Cannot lower item limit below the {self.current_items} items already booked"]}
            )

        now = datetime.now(UTC)
        with atomic_change(self):
            self.max_orders = max_orders
            self.max_items = max_items
            self.updated_at = now

        self.raise_(
            SlotCapacityUpdated(
                slot_id=str(self.id),
                max_orders=max_orders,
                max_items=max_items,
                updated_at=now,
            )
        )


@freshcart.repository(part_of=TimeSlot)
class TimeSlotRepository:
    def find_between(self, start_date: str, end_date: str) -> list[TimeSlot]:
        """Slots dated within ``[start_date, end_date]``, ordered by date and start time."""
        slots = self._dao.query.all().items
        in_range = [s for s in slots if start_date <= s.date <= end_date]
        return sorted(in_range, key=lambda s: (s.date, s.start_time))

    def find_available(
        self,
        start_date: str,
        end_date: str,
        item_count: int = 0,
        not_before: datetime | None = None,
    ) -> list[TimeSlot]:
        """Bookable slots: open, with room for ``item_count`` more items, starting no earlier than ``not_before``."""
        result = []
        for slot in self.find_between(start_date, end_date):
            if not slot.is_available or slot.is_full:
                continue
            if not slot.has_room_for(item_count):
                continue
            if not_before is not None and slot.starts_at < not_before:
                continue
            result.append(slot)
        return result
