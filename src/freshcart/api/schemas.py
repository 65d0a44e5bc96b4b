"""Pydantic API schemas for the FreshCart order engine.

These are the external API contracts, separate from domain commands. The
route modules translate between these schemas and domain commands; the
``from_*`` constructors flatten aggregates into response payloads.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class OrderItemRequest(BaseModel):
    product_id: str
    product_name: str
    sku: str | None = None
    quantity: int
    unit_price: float


class PlaceOrderRequest(BaseModel):
    user_id: str
    customer_email: str | None = None
    customer_name: str | None = None
    items: list[OrderItemRequest]
    fulfillment_type: str
    slot_date: str
    slot_start_time: str
    delivery_fee: float = 0.0
    discount: float = 0.0
    delivery_address: str | None = None
    notes: str | None = None


class TransitionOrderRequest(BaseModel):
    status: str
    note: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str


class OrderNotesRequest(BaseModel):
    notes: str


class ConfirmPaymentRequest(BaseModel):
    payment_method: str = "Card"
    payment_reference: str | None = None


class PaymentFailureRequest(BaseModel):
    reason: str


class CreateFulfillmentRequest(BaseModel):
    order_id: str


class UpdateFulfillmentItemRequest(BaseModel):
    quantity_fulfilled: int
    notes: str | None = None


class CompleteFulfillmentRequest(BaseModel):
    notes: str | None = None


class CancelFulfillmentRequest(BaseModel):
    reason: str


class FulfillmentNotesRequest(BaseModel):
    notes: str


class GenerateSlotsRequest(BaseModel):
    start_date: str | None = None
    days: int | None = None


class SlotReservationRequest(BaseModel):
    slot_date: str
    start_time: str
    item_count: int


class SlotAvailabilityRequest(BaseModel):
    is_available: bool


class SlotCapacityRequest(BaseModel):
    max_orders: int
    max_items: int


class CreateRefundRequest(BaseModel):
    order_id: str
    amount: float
    reason: str
    customer_explanation: str | None = None


class ApproveRefundRequest(BaseModel):
    notes: str | None = None


class RejectRefundRequest(BaseModel):
    reason: str


class ProcessRefundRequest(BaseModel):
    gateway_refund_id: str


class FailRefundRequest(BaseModel):
    reason: str


class PaymentWebhookRequest(BaseModel):
    """Gateway callback. ``order_id`` for payment events, ``refund_id`` for refund events."""

    event_type: str
    order_id: str | None = None
    refund_id: str | None = None
    payment_reference: str | None = None
    gateway_refund_id: str | None = None
    failure_reason: str | None = None


class ExpireOrdersRequest(BaseModel):
    older_than_minutes: int | None = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str


class OrderItemResponse(BaseModel):
    product_id: str
    product_name: str
    sku: str | None = None
    quantity: int
    unit_price: float
    line_total: float


class StatusHistoryResponse(BaseModel):
    sequence: int
    status: str
    previous_status: str | None = None
    note: str | None = None
    actor: str
    recorded_at: datetime

    @classmethod
    def from_entry(cls, entry) -> "StatusHistoryResponse":
        return cls(
            sequence=entry.sequence,
            status=entry.status,
            previous_status=entry.previous_status,
            note=entry.note,
            actor=entry.actor,
            recorded_at=entry.recorded_at,
        )


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    user_id: str
    customer_email: str | None = None
    customer_name: str | None = None
    status: str
    payment_status: str
    payment_method: str | None = None
    payment_reference: str | None = None
    items: list[OrderItemResponse]
    subtotal: float
    tax: float
    delivery_fee: float
    discount: float
    total: float
    refunded_amount: float
    refund_ids: list[str]
    fulfillment_type: str
    slot_id: str | None = None
    slot_date: str | None = None
    slot_start_time: str | None = None
    delivery_address: str | None = None
    notes: str | None = None
    internal_notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            customer_email=order.customer_email,
            customer_name=order.customer_name,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            payment_reference=order.payment_reference,
            items=[
                OrderItemResponse(
                    product_id=str(item.product_id),
                    product_name=item.product_name,
                    sku=item.sku,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=item.line_total,
                )
                for item in order.items
            ],
            subtotal=order.subtotal,
            tax=order.tax,
            delivery_fee=order.delivery_fee,
            discount=order.discount,
            total=order.total,
            refunded_amount=order.refunded_amount or 0.0,
            refund_ids=order.refund_id_list,
            fulfillment_type=order.fulfillment_type,
            slot_id=order.slot_id,
            slot_date=order.slot_date,
            slot_start_time=order.slot_start_time,
            delivery_address=order.delivery_address,
            notes=order.notes,
            internal_notes=order.internal_notes,
            cancellation_reason=order.cancellation_reason,
            created_at=order.created_at,
            updated_at=order.updated_at,
            completed_at=order.completed_at,
            cancelled_at=order.cancelled_at,
        )


class FulfillmentItemResponse(BaseModel):
    position: int
    product_id: str
    product_name: str
    sku: str | None = None
    quantity_ordered: int
    quantity_fulfilled: int
    status: str
    processed_by: str | None = None
    notes: str | None = None


class FulfillmentResponse(BaseModel):
    fulfillment_id: str
    order_id: str
    order_number: str
    fulfillment_type: str | None = None
    status: str
    items: list[FulfillmentItemResponse]
    total_items_ordered: int
    total_items_fulfilled: int
    progress_percentage: int
    started_by: str | None = None
    completed_by: str | None = None
    cancellation_reason: str | None = None
    notes: str | None = None

    @classmethod
    def from_fulfillment(cls, ff) -> "FulfillmentResponse":
        return cls(
            fulfillment_id=str(ff.id),
            order_id=str(ff.order_id),
            order_number=ff.order_number,
            fulfillment_type=ff.fulfillment_type,
            status=ff.status,
            items=[
                FulfillmentItemResponse(
                    position=item.position,
                    product_id=str(item.product_id),
                    product_name=item.product_name,
                    sku=item.sku,
                    quantity_ordered=item.quantity_ordered,
                    quantity_fulfilled=item.quantity_fulfilled or 0,
                    status=item.status,
                    processed_by=item.processed_by,
                    notes=item.notes,
                )
                for item in ff.ordered_items
            ],
            total_items_ordered=ff.total_items_ordered or 0,
            total_items_fulfilled=ff.total_items_fulfilled or 0,
            progress_percentage=ff.progress_percentage,
            started_by=ff.started_by,
            completed_by=ff.completed_by,
            cancellation_reason=ff.cancellation_reason,
            notes=ff.notes,
        )


class SlotResponse(BaseModel):
    slot_id: str
    date: str
    start_time: str
    end_time: str
    max_orders: int
    current_orders: int
    max_items: int
    current_items: int
    is_available: bool
    is_full: bool
    capacity_percentage: float

    @classmethod
    def from_slot(cls, slot) -> "SlotResponse":
        return cls(
            slot_id=str(slot.id),
            date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            max_orders=slot.max_orders,
            current_orders=slot.current_orders,
            max_items=slot.max_items,
            current_items=slot.current_items,
            is_available=slot.is_available,
            is_full=slot.is_full,
            capacity_percentage=slot.capacity_percentage,
        )


class GeneratedSlotsResponse(BaseModel):
    created: int


class RefundResponse(BaseModel):
    refund_id: str
    refund_number: str
    order_id: str
    order_number: str | None = None
    user_id: str
    amount: float
    reason: str
    customer_explanation: str | None = None
    status: str
    admin_notes: str | None = None
    rejection_reason: str | None = None
    processed_by: str | None = None
    gateway_refund_id: str | None = None
    requested_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_refund(cls, refund) -> "RefundResponse":
        return cls(
            refund_id=str(refund.id),
            refund_number=refund.refund_number,
            order_id=str(refund.order_id),
            order_number=refund.order_number,
            user_id=str(refund.user_id),
            amount=refund.amount,
            reason=refund.reason,
            customer_explanation=refund.customer_explanation,
            status=refund.status,
            admin_notes=refund.admin_notes,
            rejection_reason=refund.rejection_reason,
            processed_by=refund.processed_by,
            gateway_refund_id=refund.gateway_refund_id,
            requested_at=refund.requested_at,
            completed_at=refund.completed_at,
        )


class RefundStatsResponse(BaseModel):
    pending: int
    approved: int
    completed: int
    rejected: int
    failed: int
    total_refunded_amount: float


class ExpireOrdersResponse(BaseModel):
    expired: int


class SyncSalesResponse(BaseModel):
    opened: int
    closed: int


class ErrorResponse(BaseModel):
    error: dict | str = Field(description="Field-keyed messages, or a plain message")
    code: str
