"""Fulfillment domain events: immutable facts about pick/pack progress."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from freshcart.domain import freshcart


@freshcart.event(part_of="OrderFulfillment")
class FulfillmentCreated:
    """A fulfillment record was opened for a paid order."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True)
    items = Text(required=True)  # JSON list of item dicts
    total_items_ordered = Integer(required=True)
    created_at = DateTime(required=True)


@freshcart.event(part_of="OrderFulfillment")
class FulfillmentStarted:
    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    started_by = String(required=True)
    started_at = DateTime(required=True)


@freshcart.event(part_of="OrderFulfillment")
class FulfillmentItemUpdated:
    """Staff recorded how many units of one line item were picked."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    position = Integer(required=True)
    product_id = Identifier(required=True)
    quantity_ordered = Integer(required=True)
    quantity_fulfilled = Integer(required=True)
    status = String(required=True)
    total_items_fulfilled = Integer(required=True)
    processed_by = String(required=True)
    processed_at = DateTime(required=True)


@freshcart.event(part_of="OrderFulfillment")
class FulfillmentCompleted:
    """Every item was processed and the order is ready for handoff."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    fulfillment_type = String()
    total_items_ordered = Integer(required=True)
    total_items_fulfilled = Integer(required=True)
    completed_by = String(required=True)
    auto_completed = Boolean(default=False)
    completed_at = DateTime(required=True)


@freshcart.event(part_of="OrderFulfillment")
class FulfillmentCancelled:
    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(required=True)
    cancelled_by = String(required=True)
    cancelled_at = DateTime(required=True)


@freshcart.event(part_of="OrderFulfillment")
class FulfillmentNotesAdded:
    __version__ = 1

    fulfillment_id = Identifier(required=True)
    notes = Text(required=True)
    added_by = String(required=True)
    added_at = DateTime(required=True)
