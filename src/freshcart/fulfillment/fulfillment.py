"""OrderFulfillment aggregate (CQRS): per-item pick/pack progress for one order.

State Machine:
    PENDING → IN_PROGRESS → COMPLETED
    {PENDING, IN_PROGRESS} → CANCELLED

Item status is never supplied by the caller. It is derived from the quantity
picked: nothing picked is OUT_OF_STOCK, everything picked is ADDED, anything
in between is PARTIAL. Once no item is PENDING the fulfillment completes in
the same write as the item update that got it there.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from freshcart.domain import freshcart
from freshcart.errors import IncompleteItems, InvalidQuantity, InvalidTransition
from freshcart.fulfillment.events import (
    FulfillmentCancelled,
    FulfillmentCompleted,
    FulfillmentCreated,
    FulfillmentItemUpdated,
    FulfillmentNotesAdded,
    FulfillmentStarted,
)
from freshcart.utils.timestamps import as_naive_utc


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class FulfillmentStatus(Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In_Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class FulfillmentItemStatus(Enum):
    PENDING = "Pending"
    ADDED = "Added"
    PARTIAL = "Partial"
    OUT_OF_STOCK = "Out_Of_Stock"


_VALID_TRANSITIONS = {
    FulfillmentStatus.PENDING: {FulfillmentStatus.IN_PROGRESS, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.IN_PROGRESS: {FulfillmentStatus.COMPLETED, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.COMPLETED: set(),  # terminal
    FulfillmentStatus.CANCELLED: set(),  # terminal
}


def derive_item_status(quantity_fulfilled: int, quantity_ordered: int) -> FulfillmentItemStatus:
    if quantity_fulfilled == 0:
        return FulfillmentItemStatus.OUT_OF_STOCK
    if quantity_fulfilled == quantity_ordered:
        return FulfillmentItemStatus.ADDED
    return FulfillmentItemStatus.PARTIAL


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@freshcart.entity(part_of="OrderFulfillment")
class FulfillmentItem:
    """One order line being picked."""

    position = Integer(required=True, min_value=0)
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    sku = String(max_length=100)
    unit_price = Float(default=0.0)
    quantity_ordered = Integer(required=True, min_value=1)
    quantity_fulfilled = Integer(default=0, min_value=0)
    status = String(
        max_length=50,
        choices=FulfillmentItemStatus,
        default=FulfillmentItemStatus.PENDING.value,
    )
    processed_by = String(max_length=100)
    processed_at = DateTime()
    notes = Text()

    @invariant.post
    def fulfilled_cannot_exceed_ordered(self):
        if self.quantity_fulfilled is not None and self.quantity_ordered is not None:
            if self.quantity_fulfilled > self.quantity_ordered:
                raise ValidationError({"quantity_fulfilled": ["Cannot fulfill more than was ordered"]})


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@freshcart.aggregate
class OrderFulfillment:
    order_id = Identifier(required=True, unique=True)
    order_number = String(required=True, max_length=20)
    fulfillment_type = String(max_length=20)
    status = String(
        choices=FulfillmentStatus,
        default=FulfillmentStatus.PENDING.value,
    )
    items = HasMany(FulfillmentItem)
    total_items_ordered = Integer(default=0)
    total_items_fulfilled = Integer(default=0)
    started_by = String(max_length=100)
    started_at = DateTime()
    completed_by = String(max_length=100)
    completed_at = DateTime()
    cancelled_by = String(max_length=100)
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def fulfilled_total_matches_items(self):
        expected = sum(item.quantity_fulfilled or 0 for item in (self.items or []))
        if (self.total_items_fulfilled or 0) != expected:
            raise ValidationError({"total_items_fulfilled": ["Fulfilled total must equal the sum of item quantities"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create_for_order(cls, order) -> "OrderFulfillment":
        """Open a fulfillment for ``order``, cloning its line items in order."""
        now = datetime.now(UTC)
        items_data = [
            {
                "position": position,
                "product_id": str(item.product_id),
                "product_name": item.product_name,
                "sku": item.sku,
                "unit_price": item.unit_price,
                "quantity_ordered": item.quantity,
            }
            for position, item in enumerate(order.items or [])
        ]
        ff = cls(
            order_id=str(order.id),
            order_number=order.order_number,
            fulfillment_type=order.fulfillment_type,
            status=FulfillmentStatus.PENDING.value,
            total_items_ordered=sum(data["quantity_ordered"] for data in items_data),
            total_items_fulfilled=0,
            created_at=now,
            updated_at=now,
        )
        for data in items_data:
            ff.add_items(FulfillmentItem(**data))

        ff.raise_(
            FulfillmentCreated(
                fulfillment_id=str(ff.id),
                order_id=str(order.id),
                order_number=order.order_number,
                items=json.dumps(items_data),
                total_items_ordered=ff.total_items_ordered,
                created_at=now,
            )
        )
        return ff

    # -------------------------------------------------------------------
    # Derived facts
    # -------------------------------------------------------------------
    @property
    def ordered_items(self) -> list[FulfillmentItem]:
        return sorted(self.items or [], key=lambda item: item.position)

    @property
    def pending_items(self) -> list[FulfillmentItem]:
        return [item for item in (self.items or []) if item.status == FulfillmentItemStatus.PENDING.value]

    @property
    def progress_percentage(self) -> int:
        if not self.total_items_ordered:
            return 0
        return round(self.total_items_fulfilled / self.total_items_ordered * 100)

    def item_at(self, position: int) -> FulfillmentItem:
        item = next((i for i in (self.items or []) if i.position == position), None)
        if item is None:
            raise ValidationError({"position": [f"No item at position {position} in this fulfillment"]})
        return item

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: FulfillmentStatus) -> None:
        current = FulfillmentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _mark_started(self, actor: str, at: datetime) -> None:
        self.status = FulfillmentStatus.IN_PROGRESS.value
        self.started_by = actor
        self.started_at = at
        self.raise_(
            FulfillmentStarted(
                fulfillment_id=str(self.id),
                order_id=str(self.order_id),
                started_by=actor,
                started_at=at,
            )
        )

    def _mark_completed(self, actor: str, at: datetime, auto: bool) -> None:
        self.status = FulfillmentStatus.COMPLETED.value
        self.completed_by = actor
        self.completed_at = at
        self.raise_(
            FulfillmentCompleted(
                fulfillment_id=str(self.id),
                order_id=str(self.order_id),
                fulfillment_type=self.fulfillment_type,
                total_items_ordered=self.total_items_ordered,
                total_items_fulfilled=self.total_items_fulfilled,
                completed_by=actor,
                auto_completed=auto,
                completed_at=at,
            )
        )

    # -------------------------------------------------------------------
    # Picking
    # -------------------------------------------------------------------
    def start(self, actor: str) -> None:
        self._assert_can_transition(FulfillmentStatus.IN_PROGRESS)
        now = datetime.now(UTC)
        with atomic_change(self):
            self._mark_started(actor, now)
            self.updated_at = now

    def update_item(self, position: int, quantity_fulfilled: int, actor: str, notes: str | None = None) -> None:
        """Record the quantity picked for one item and auto-complete when nothing is left pending.

        A PENDING fulfillment is started by its first item update.
        """
        current = FulfillmentStatus(self.status)
        if current not in (FulfillmentStatus.PENDING, FulfillmentStatus.IN_PROGRESS):
            raise InvalidTransition({"status": [f"Cannot update items of a {current.value} fulfillment"]})

        item = self.item_at(position)
        if quantity_fulfilled is None or not 0 <= quantity_fulfilled <= item.quantity_ordered:
            raise InvalidQuantity(
                {"quantity_fulfilled": [f"Quantity must be between 0 and {item.quantity_ordered}"]}
            )

        now = datetime.now(UTC)
        item_status = derive_item_status(quantity_fulfilled, item.quantity_ordered)
        with atomic_change(self):
            if current == FulfillmentStatus.PENDING:
                self._mark_started(actor, now)

            item.quantity_fulfilled = quantity_fulfilled
            item.status = item_status.value
            item.processed_by = actor
            item.processed_at = now
            if notes is not None:
                item.notes = notes

            self.total_items_fulfilled = sum(i.quantity_fulfilled or 0 for i in (self.items or []))
            self.updated_at = now

            self.raise_(
                FulfillmentItemUpdated(
                    fulfillment_id=str(self.id),
                    order_id=str(self.order_id),
                    position=position,
                    product_id=str(item.product_id),
                    quantity_ordered=item.quantity_ordered,
                    quantity_fulfilled=quantity_fulfilled,
                    status=item_status.value,
                    total_items_fulfilled=self.total_items_fulfilled,
                    processed_by=actor,
                    processed_at=now,
                )
            )

            if not self.pending_items:
                self._mark_completed(actor, now, auto=True)

    def complete(self, actor: str, notes: str | None = None) -> None:
        """Complete manually; every item must already have been processed."""
        self._assert_can_transition(FulfillmentStatus.COMPLETED)
        pending = self.pending_items
        if pending:
            raise IncompleteItems({"items": [f"{len(pending)} item(s) have not been processed yet"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            if notes:
                self._append_notes(notes)
            self.updated_at = now
            self._mark_completed(actor, now, auto=False)

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def cancel(self, reason: str, actor: str) -> None:
        """Cancel the pick. The order's own status is left alone."""
        self._assert_can_transition(FulfillmentStatus.CANCELLED)
        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = FulfillmentStatus.CANCELLED.value
            self.cancellation_reason = reason
            self.cancelled_by = actor
            self.cancelled_at = now
            self.updated_at = now
        self.raise_(
            FulfillmentCancelled(
                fulfillment_id=str(self.id),
                order_id=str(self.order_id),
                reason=reason,
                cancelled_by=actor,
                cancelled_at=now,
            )
        )

    def _append_notes(self, notes: str) -> None:
        self.notes = f"{self.notes}\n{notes}" if self.notes else notes

    def add_notes(self, notes: str, actor: str) -> None:
        if not notes or not notes.strip():
            raise ValidationError({"notes": ["Notes cannot be empty"]})
        now = datetime.now(UTC)
        self._append_notes(notes.strip())
        self.updated_at = now
        self.raise_(
            FulfillmentNotesAdded(
                fulfillment_id=str(self.id),
                notes=notes.strip(),
                added_by=actor,
                added_at=now,
            )
        )


@freshcart.repository(part_of=OrderFulfillment)
class OrderFulfillmentRepository:
    def find_for_order(self, order_id: str) -> OrderFulfillment | None:
        return self._dao.query.filter(order_id=order_id).all().first

    def find_by_status(self, status: str | None = None) -> list[OrderFulfillment]:
        query = self._dao.query
        if status:
            query = query.filter(status=status)
        return sorted(query.all().items, key=lambda ff: as_naive_utc(ff.created_at), reverse=True)
