"""Slot administration: bulk generation, availability gate and capacity limits."""

from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.settings import setting
from freshcart.timeslot.slot import TimeSlot, add_minutes, parse_slot_date, parse_slot_time, slot_key

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="TimeSlot")
class GenerateTimeSlots:
    """Pre-create slots for the booking horizon. Existing slots are left as they are."""

    start_date = String(max_length=10)  # defaults to today
    days = Integer(min_value=1)  # defaults to advance_booking_days


@freshcart.command(part_of="TimeSlot")
class SetSlotAvailability:
    slot_id = Identifier(required=True)
    is_available = Boolean(required=True)


@freshcart.command(part_of="TimeSlot")
class UpdateSlotCapacity:
    slot_id = Identifier(required=True)
    max_orders = Integer(required=True, min_value=1)
    max_items = Integer(required=True, min_value=1)


def daily_start_times(day, duration_minutes: int) -> list[str]:
    """Slot start times for ``day`` within its operating hours; empty on blackout dates."""
    if day.isoformat() in set(setting("blackout_dates")):
        return []

    hours = setting("operating_hours").get(day.strftime("%A").lower())
    if not hours:
        return []

    opens, closes = hours
    close_at = parse_slot_time(closes)
    starts = []
    current = opens
    while True:
        end = add_minutes(current, duration_minutes)
        # Stop once the slot would run past closing or wrap past midnight
        if parse_slot_time(end) > close_at or end <= current:
            break
        starts.append(current)
        current = end
    return starts


@freshcart.command_handler(part_of=TimeSlot)
class SlotManagementHandler:
    @handle(GenerateTimeSlots)
    def generate(self, command):
        start = parse_slot_date(command.start_date) if command.start_date else datetime.now(UTC).date()
        days = command.days or setting("advance_booking_days")
        duration = setting("slot_duration_minutes")

        repo = current_domain.repository_for(TimeSlot)
        created = 0
        for offset in range(days):
            day = start + timedelta(days=offset)
            for start_time in daily_start_times(day, duration):
                slot_date = day.isoformat()
                try:
                    repo.get(slot_key(slot_date, start_time))
                    continue
                except ObjectNotFoundError:
                    pass
                repo.add(
                    TimeSlot.create(
                        slot_date=slot_date,
                        start_time=start_time,
                        duration_minutes=duration,
                        max_orders=setting("max_orders_per_slot"),
                        max_items=setting("max_items_per_slot"),
                    )
                )
                created += 1

        logger.info("Time slots generated", start_date=start.isoformat(), days=days, created=created)
        return created

    @handle(SetSlotAvailability)
    def set_availability(self, command):
        repo = current_domain.repository_for(TimeSlot)
        slot = repo.get(command.slot_id)
        slot.set_availability(command.is_available)
        repo.add(slot)
        logger.info("Time slot availability changed", slot_id=str(slot.id), is_available=command.is_available)
        return slot

    @handle(UpdateSlotCapacity)
    def update_capacity(self, command):
        repo = current_domain.repository_for(TimeSlot)
        slot = repo.get(command.slot_id)
        slot.update_capacity(command.max_orders, command.max_items)
        repo.add(slot)
        return slot


def list_available_slots(
    start_date: str,
    end_date: str,
    item_count: int = 0,
    as_of: datetime | None = None,
) -> list[TimeSlot]:
    """Slots a customer can still book: open, not full, with room and enough lead time."""
    if parse_slot_date(end_date) < parse_slot_date(start_date):
        raise ValidationError({"end_date": ["End date must not be before start date"]})

    now = as_of or datetime.now(UTC)
    if now.tzinfo is not None:
        now = now.astimezone(UTC).replace(tzinfo=None)
    not_before = now + timedelta(minutes=setting("min_lead_minutes"))

    return current_domain.repository_for(TimeSlot).find_available(
        start_date, end_date, item_count=item_count, not_before=not_before
    )
