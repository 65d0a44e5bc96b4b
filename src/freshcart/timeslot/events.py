"""Time slot domain events."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from freshcart.domain import freshcart


@freshcart.event(part_of="TimeSlot")
class SlotCreated:
    """A time slot was materialized, either lazily or by bulk generation."""

    __version__ = 1

    slot_id = Identifier(required=True)
    date = String(required=True)
    start_time = String(required=True)
    end_time = String(required=True)
    max_orders = Integer(required=True)
    max_items = Integer(required=True)
    created_at = DateTime(required=True)


@freshcart.event(part_of="TimeSlot")
class SlotReserved:
    """Capacity was taken from a slot for one order."""

    __version__ = 1

    slot_id = Identifier(required=True)
    item_count = Integer(required=True)
    current_orders = Integer(required=True)
    current_items = Integer(required=True)
    capacity_percentage = Float(required=True)
    reserved_at = DateTime(required=True)


@freshcart.event(part_of="TimeSlot")
class SlotReleased:
    """Capacity held by one order was returned to a slot."""

    __version__ = 1

    slot_id = Identifier(required=True)
    item_count = Integer(required=True)
    current_orders = Integer(required=True)
    current_items = Integer(required=True)
    released_at = DateTime(required=True)


@freshcart.event(part_of="TimeSlot")
class SlotAvailabilityChanged:
    """A slot was opened or closed for new reservations."""

    __version__ = 1

    slot_id = Identifier(required=True)
    is_available = Boolean(required=True)
    changed_at = DateTime(required=True)


@freshcart.event(part_of="TimeSlot")
class SlotCapacityUpdated:
    """The order and item limits of a slot were changed."""

    __version__ = 1

    slot_id = Identifier(required=True)
    max_orders = Integer(required=True)
    max_items = Integer(required=True)
    updated_at = DateTime(required=True)
