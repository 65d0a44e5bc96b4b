"""Order aggregate (CQRS): the order status state machine and its audit trail.

State Machine:
    PENDING → PAID → PROCESSING → {READY_FOR_PICKUP, OUT_FOR_DELIVERY} → {DELIVERED, COMPLETED}
    {PENDING, PAID, PROCESSING} → CANCELLED
    {PAID, PROCESSING, DELIVERED, COMPLETED} → REFUNDED  (only once refunds cover the total)

Every committed transition appends a ``StatusHistoryEntry`` in the same
aggregate write, so the history is a gap-free log of status changes in commit
order. History entries are never modified or removed.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from freshcart.domain import freshcart
from freshcart.errors import InvalidTransition, RefundExceedsOrderTotal
from freshcart.order.events import (
    OrderNotesAdded,
    OrderPaid,
    OrderPaymentFailed,
    OrderPlaced,
    OrderStatusChanged,
    RefundAppliedToOrder,
)
from freshcart.utils.timestamps import as_naive_utc

# Amounts are stored as floats rounded to cents; comparisons allow half a cent.
_CENT_TOLERANCE = 0.005


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    PAID = "Paid"
    PROCESSING = "Processing"
    READY_FOR_PICKUP = "Ready_For_Pickup"
    OUT_FOR_DELIVERY = "Out_For_Delivery"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"


class PaymentStatus(Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    REFUNDED = "Refunded"
    PARTIALLY_REFUNDED = "Partially_Refunded"


class PaymentMethod(Enum):
    CARD = "Card"
    CASH = "Cash"
    CHECK = "Check"


class FulfillmentType(Enum):
    PICKUP = "Pickup"
    DELIVERY = "Delivery"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.CANCELLED, OrderStatus.REFUNDED},
    OrderStatus.PROCESSING: {
        OrderStatus.READY_FOR_PICKUP,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.READY_FOR_PICKUP: {OrderStatus.DELIVERED, OrderStatus.COMPLETED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.COMPLETED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.COMPLETED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),  # terminal
    OrderStatus.REFUNDED: set(),  # terminal
}

_CANCELLABLE_STATUSES = {OrderStatus.PENDING, OrderStatus.PAID, OrderStatus.PROCESSING}

# Orders a refund may be requested against
REFUNDABLE_STATUSES = {
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
}

# Transitions the customer is emailed about
NOTIFY_STATUSES = {
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
    OrderStatus.READY_FOR_PICKUP,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
}


def money(value: float) -> float:
    return round(float(value or 0.0), 2)


def calculate_totals(items_data: list[dict], delivery_fee: float, discount: float, tax_rate: float) -> dict:
    """Order totals, rounded to cents. Tax applies to subtotal + delivery fee − discount."""
    subtotal = money(sum(item["quantity"] * item["unit_price"] for item in items_data))
    delivery_fee = money(delivery_fee)
    discount = money(discount)
    taxable = max(0.0, subtotal + delivery_fee - discount)
    tax = money(taxable * tax_rate)
    return {
        "subtotal": subtotal,
        "tax": tax,
        "delivery_fee": delivery_fee,
        "discount": discount,
        "total": money(subtotal + tax + delivery_fee - discount),
    }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@freshcart.entity(part_of="Order")
class OrderItem:
    """A line item with the price captured at checkout."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    sku = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def line_total(self) -> float:
        return money(self.quantity * self.unit_price)


@freshcart.entity(part_of="Order")
class StatusHistoryEntry:
    """One committed status transition. Written once, never changed."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, choices=OrderStatus)
    previous_status = String(choices=OrderStatus)
    note = String(max_length=500)
    actor = String(required=True, max_length=100)
    recorded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@freshcart.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    user_id = Identifier(required=True)
    customer_email = String(max_length=254)
    customer_name = String(max_length=200)
    items = HasMany(OrderItem)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod)
    payment_reference = String(max_length=255)
    payment_failure_reason = String(max_length=500)
    subtotal = Float(default=0.0)
    tax = Float(default=0.0)
    delivery_fee = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)
    refunded_amount = Float(default=0.0)
    refund_ids = Text(default="[]")  # JSON list of refund ids
    fulfillment_type = String(required=True, choices=FulfillmentType)
    slot_id = String(max_length=20)
    slot_date = String(max_length=10)
    slot_start_time = String(max_length=5)
    delivery_address = Text()
    notes = Text()
    internal_notes = Text()  # staff only, never shown to the customer
    cancellation_reason = String(max_length=500)
    history = HasMany(StatusHistoryEntry)
    created_at = DateTime()
    updated_at = DateTime()
    paid_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()
    actual_delivery_time = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def total_must_match_components(self):
        expected = (self.subtotal or 0.0) + (self.tax or 0.0) + (self.delivery_fee or 0.0) - (self.discount or 0.0)
        if abs((self.total or 0.0) - expected) > _CENT_TOLERANCE:
            raise ValidationError({"total": ["Total must equal subtotal + tax + delivery fee - discount"]})

    @invariant.post
    def refunded_amount_cannot_exceed_total(self):
        if (self.refunded_amount or 0.0) > (self.total or 0.0) + _CENT_TOLERANCE:
            raise ValidationError({"refunded_amount": ["Refunded amount cannot exceed the order total"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number: str,
        user_id: str,
        items_data: list[dict],
        fulfillment_type: str,
        tax_rate: float,
        customer_email: str | None = None,
        customer_name: str | None = None,
        delivery_fee: float = 0.0,
        discount: float = 0.0,
        slot_date: str | None = None,
        slot_start_time: str | None = None,
        slot_id: str | None = None,
        delivery_address: str | None = None,
        notes: str | None = None,
    ) -> "Order":
        """Create a PENDING order from checkout data."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})
        if fulfillment_type == FulfillmentType.DELIVERY.value and not delivery_address:
            raise ValidationError({"delivery_address": ["Delivery orders need a delivery address"]})

        totals = calculate_totals(items_data, delivery_fee, discount, tax_rate)
        if totals["discount"] > totals["subtotal"] + totals["delivery_fee"]:
            raise ValidationError({"discount": ["Discount cannot exceed the order amount"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            user_id=user_id,
            customer_email=customer_email,
            customer_name=customer_name,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            fulfillment_type=fulfillment_type,
            slot_id=slot_id,
            slot_date=slot_date,
            slot_start_time=slot_start_time,
            delivery_address=delivery_address,
            notes=notes,
            created_at=now,
            updated_at=now,
            **totals,
        )
        for item_data in items_data:
            order.add_items(OrderItem(**item_data))
        order._record_history(OrderStatus.PENDING, None, "Order placed", str(user_id), now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                user_id=str(user_id),
                items=json.dumps(items_data),
                item_count=order.item_count,
                fulfillment_type=fulfillment_type,
                slot_id=slot_id,
                subtotal=order.subtotal,
                tax=order.tax,
                delivery_fee=order.delivery_fee,
                discount=order.discount,
                total=order.total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived facts
    # -------------------------------------------------------------------
    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in (self.items or []))

    @property
    def refund_id_list(self) -> list[str]:
        return json.loads(self.refund_ids or "[]")

    @property
    def is_fully_refunded(self) -> bool:
        return (self.refunded_amount or 0.0) >= (self.total or 0.0) - _CENT_TOLERANCE

    @property
    def status_history(self) -> list[StatusHistoryEntry]:
        return sorted(self.history or [], key=lambda entry: entry.sequence)

    def can_transition_to(self, target_status: OrderStatus) -> bool:
        return target_status in _VALID_TRANSITIONS.get(OrderStatus(self.status), set())

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        if not self.can_transition_to(target_status):
            current = OrderStatus(self.status)
            raise InvalidTransition({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _record_history(
        self,
        status: OrderStatus,
        previous: OrderStatus | None,
        note: str | None,
        actor: str,
        at: datetime,
    ) -> None:
        self.add_history(
            StatusHistoryEntry(
                sequence=len(self.history or []) + 1,
                status=status.value,
                previous_status=previous.value if previous else None,
                note=note,
                actor=actor,
                recorded_at=at,
            )
        )

    def _move_to(self, target_status: OrderStatus, note: str | None, actor: str) -> None:
        self._assert_can_transition(target_status)

        previous = OrderStatus(self.status)
        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = target_status.value
            self.updated_at = now
            if target_status == OrderStatus.PAID:
                self.paid_at = now
            elif target_status == OrderStatus.DELIVERED:
                self.actual_delivery_time = now
            elif target_status == OrderStatus.COMPLETED:
                self.completed_at = now
            elif target_status == OrderStatus.CANCELLED:
                self.cancelled_at = now
            self._record_history(target_status, previous, note, actor, now)

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                user_id=str(self.user_id),
                customer_email=self.customer_email,
                customer_name=self.customer_name,
                fulfillment_type=self.fulfillment_type,
                previous_status=previous.value,
                new_status=target_status.value,
                note=note,
                actor=actor,
                notify_customer=target_status in NOTIFY_STATUSES,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def transition_to(self, target_status: OrderStatus, note: str | None = None, actor: str = "system") -> None:
        """Move the order along a legal edge. The refund ledger alone decides REFUNDED."""
        if target_status == OrderStatus.REFUNDED and not self.is_fully_refunded:
            raise InvalidTransition({"status": ["An order becomes Refunded only once refunds cover its total"]})
        if target_status == OrderStatus.CANCELLED:
            self.cancel(note or "Cancelled", actor)
            return
        if target_status == OrderStatus.PAID:
            self.confirm_payment(self.payment_method or PaymentMethod.CARD.value, self.payment_reference, actor)
            return
        self._move_to(target_status, note, actor)

    def confirm_payment(self, payment_method: str, payment_reference: str | None, actor: str) -> None:
        """Record a successful payment and move PENDING → PAID."""
        self._assert_can_transition(OrderStatus.PAID)

        with atomic_change(self):
            self.payment_status = PaymentStatus.PAID.value
            self.payment_method = payment_method
            self.payment_reference = payment_reference
            self.payment_failure_reason = None
        self._move_to(OrderStatus.PAID, f"Payment confirmed ({payment_method})", actor)

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_method=payment_method,
                payment_reference=payment_reference,
                items=json.dumps(
                    [{"product_id": str(item.product_id), "quantity": item.quantity} for item in self.items or []]
                ),
                total=self.total,
                paid_at=self.paid_at,
            )
        )

    def record_payment_failure(self, reason: str) -> None:
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise InvalidTransition({"status": ["Payment failures can only be recorded while the order is Pending"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = PaymentStatus.FAILED.value
            self.payment_failure_reason = reason
            self.updated_at = now
        self.raise_(OrderPaymentFailed(order_id=str(self.id), reason=reason, failed_at=now))

    def cancel(self, reason: str, actor: str) -> None:
        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATUSES:
            raise InvalidTransition({"status": [f"Cannot cancel an order in {current.value} state"]})
        self.cancellation_reason = reason
        self._move_to(OrderStatus.CANCELLED, reason, actor)

    # -------------------------------------------------------------------
    # Staff notes
    # -------------------------------------------------------------------
    def add_internal_notes(self, notes: str, actor: str) -> None:
        """Append a staff note. Allowed in every status and never changes it."""
        if not notes or not notes.strip():
            raise ValidationError({"notes": ["Notes cannot be empty"]})

        now = datetime.now(UTC)
        note = notes.strip()
        with atomic_change(self):
            self.internal_notes = f"{self.internal_notes}\n{note}" if self.internal_notes else note
            self.updated_at = now
        self.raise_(OrderNotesAdded(order_id=str(self.id), notes=note, added_by=actor, added_at=now))

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    def apply_refund(self, refund_id: str, amount: float, actor: str, refund_number: str | None = None) -> bool:
        """Add a completed refund to the order, cascading to REFUNDED when fully covered.

        Returns False, changing nothing, when the refund was already applied.
        All guards run before the first write.
        """
        if refund_id in self.refund_id_list:
            return False

        amount = money(amount)
        if amount <= 0:
            raise ValidationError({"amount": ["Refund amount must be positive"]})

        new_refunded = money((self.refunded_amount or 0.0) + amount)
        if new_refunded > self.total + _CENT_TOLERANCE:
            raise RefundExceedsOrderTotal(
                {"amount": [f"Refunds totalling {new_refunded:.2f} would exceed the order total of {self.total:.2f}"]}
            )

        fully_refunded = new_refunded >= self.total - _CENT_TOLERANCE
        if fully_refunded:
            self._assert_can_transition(OrderStatus.REFUNDED)

        now = datetime.now(UTC)
        payment_status = PaymentStatus.REFUNDED if fully_refunded else PaymentStatus.PARTIALLY_REFUNDED
        with atomic_change(self):
            self.refunded_amount = new_refunded
            self.refund_ids = json.dumps(self.refund_id_list + [refund_id])
            self.payment_status = payment_status.value
            self.updated_at = now

        self.raise_(
            RefundAppliedToOrder(
                order_id=str(self.id),
                refund_id=refund_id,
                amount=amount,
                refunded_amount=new_refunded,
                payment_status=payment_status.value,
                applied_at=now,
            )
        )

        if fully_refunded:
            self._move_to(OrderStatus.REFUNDED, f"Fully refunded by {refund_number or refund_id}", actor)
        return True


@freshcart.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number: str) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def find_for_user(self, user_id: str) -> list[Order]:
        """The user's orders, newest first."""
        orders = self._dao.query.filter(user_id=user_id).all().items
        return sorted(orders, key=lambda o: as_naive_utc(o.created_at), reverse=True)

    def find_by_status(self, status: str | None = None) -> list[Order]:
        query = self._dao.query
        if status:
            query = query.filter(status=status)
        return sorted(query.all().items, key=lambda o: as_naive_utc(o.created_at), reverse=True)

    def find_created_between(self, start: datetime, end: datetime) -> list[Order]:
        start, end = as_naive_utc(start), as_naive_utc(end)
        orders = self._dao.query.all().items
        return sorted(
            (o for o in orders if start <= as_naive_utc(o.created_at) <= end),
            key=lambda o: as_naive_utc(o.created_at),
        )

    def find_unpaid_before(self, cutoff: datetime) -> list[Order]:
        """PENDING orders without a confirmed payment placed at or before ``cutoff``."""
        cutoff = as_naive_utc(cutoff)
        pending = self._dao.query.filter(status=OrderStatus.PENDING.value).all().items
        return [
            o
            for o in pending
            if o.payment_status != PaymentStatus.PAID.value and as_naive_utc(o.created_at) <= cutoff
        ]
