"""Slot reservation and release: commands, handler and the locked entry points.

``reserve_slot`` and ``release_slot`` are the only supported way to move slot
counters. Each runs the whole command, including the unit of work commit,
inside a per-slot critical section, and re-runs it when the repository
rejects a stale write or a duplicate first insert of the same slot key. Two
checkouts racing for the last unit of capacity therefore see each other's
increments and exactly one of them fails SlotFull.
"""

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, TransactionError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.settings import setting
from freshcart.timeslot.slot import TimeSlot, slot_key
from freshcart.utils.locks import key_lock, retry_on_conflict

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="TimeSlot")
class ReserveSlot:
    """Take capacity for one order from the slot at (date, start time)."""

    slot_date = String(required=True, max_length=10)
    start_time = String(required=True, max_length=5)
    item_count = Integer(required=True)


@freshcart.command(part_of="TimeSlot")
class ReleaseSlot:
    """Give back capacity held by one order."""

    slot_date = String(required=True, max_length=10)
    start_time = String(required=True, max_length=5)
    item_count = Integer(required=True)


def get_or_create_slot(slot_date: str, start_time: str) -> TimeSlot:
    """Load the slot, materializing it at default capacity when it was never generated.

    A newly created slot is not persisted here; the caller adds it together
    with whatever change it makes.
    """
    repo = current_domain.repository_for(TimeSlot)
    try:
        return repo.get(slot_key(slot_date, start_time))
    except ObjectNotFoundError:
        logger.info("Creating time slot on first use", date=slot_date, start_time=start_time)
        return TimeSlot.create(
            slot_date=slot_date,
            start_time=start_time,
            duration_minutes=setting("slot_duration_minutes"),
            max_orders=setting("max_orders_per_slot"),
            max_items=setting("max_items_per_slot"),
        )


@freshcart.command_handler(part_of=TimeSlot)
class SlotCapacityHandler:
    @handle(ReserveSlot)
    def reserve(self, command):
        slot = get_or_create_slot(command.slot_date, command.start_time)
        slot.reserve(command.item_count)
        current_domain.repository_for(TimeSlot).add(slot)

        logger.info(
            "Time slot reserved",
            slot_id=str(slot.id),
            item_count=command.item_count,
            current_orders=slot.current_orders,
            current_items=slot.current_items,
        )
        if slot.is_near_full(setting("near_full_threshold")):
            logger.warning(
                "Time slot nearly full",
                slot_id=str(slot.id),
                capacity_percentage=slot.capacity_percentage,
            )
        return slot

    @handle(ReleaseSlot)
    def release(self, command):
        repo = current_domain.repository_for(TimeSlot)
        slot = repo.get(slot_key(command.slot_date, command.start_time))
        slot.release(command.item_count)
        repo.add(slot)

        logger.info(
            "Time slot released",
            slot_id=str(slot.id),
            item_count=command.item_count,
            current_orders=slot.current_orders,
            current_items=slot.current_items,
        )
        return slot


def _process_reservation(command: ReserveSlot) -> TimeSlot:
    try:
        return current_domain.process(command, asynchronous=False)
    except TransactionError as exc:
        # Another process inserted the lazily created slot first
        if (exc.extra_info or {}).get("original_exception") == "IntegrityError":
            raise ExpectedVersionError(str(exc)) from exc
        raise


def reserve_slot(slot_date: str, start_time: str, item_count: int) -> TimeSlot:
    """Atomically check and take slot capacity. Raises SlotFull or SlotUnavailable."""
    key = slot_key(slot_date, start_time)
    command = ReserveSlot(slot_date=slot_date, start_time=start_time, item_count=item_count)
    with key_lock(f"timeslot:{key}"):
        return retry_on_conflict(
            lambda: _process_reservation(command),
            attempts=setting("reservation_attempts"),
            key=key,
        )


def release_slot(slot_date: str, start_time: str, item_count: int) -> TimeSlot:
    """Atomically give back slot capacity, never dropping a counter below zero."""
    key = slot_key(slot_date, start_time)
    command = ReleaseSlot(slot_date=slot_date, start_time=start_time, item_count=item_count)
    with key_lock(f"timeslot:{key}"):
        return retry_on_conflict(
            lambda: current_domain.process(command, asynchronous=False),
            attempts=setting("reservation_attempts"),
            key=key,
        )
