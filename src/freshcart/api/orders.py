"""FastAPI routes for orders: checkout, lifecycle, payment outcomes and history."""

from fastapi import APIRouter, Depends

from freshcart.api.actor import Actor, current_actor
from freshcart.api.schemas import (
    CancelOrderRequest,
    ConfirmPaymentRequest,
    OrderNotesRequest,
    OrderResponse,
    PaymentFailureRequest,
    PlaceOrderRequest,
    StatusHistoryResponse,
    TransitionOrderRequest,
)
from freshcart.order.cancellation import cancel_order
from freshcart.order.checkout import place_order
from freshcart.order.notes import add_order_notes
from freshcart.order.payment import confirm_payment, record_payment_failure
from freshcart.order.queries import get_order, get_order_by_number, list_orders, list_orders_for_user
from freshcart.order.transition import get_status_history, transition_order

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: PlaceOrderRequest) -> OrderResponse:
    """Checkout: reserve the slot and place a PENDING order."""
    order = place_order(
        user_id=body.user_id,
        customer_email=body.customer_email,
        customer_name=body.customer_name,
        items=[item.model_dump() for item in body.items],
        fulfillment_type=body.fulfillment_type,
        slot_date=body.slot_date,
        slot_start_time=body.slot_start_time,
        delivery_fee=body.delivery_fee,
        discount=body.discount,
        delivery_address=body.delivery_address,
        notes=body.notes,
    )
    return OrderResponse.from_order(order)


@order_router.get("", response_model=list[OrderResponse])
async def search_orders(user_id: str | None = None, status: str | None = None) -> list[OrderResponse]:
    if user_id:
        orders = list_orders_for_user(user_id)
        if status:
            orders = [o for o in orders if o.status == status]
    else:
        orders = list_orders(status)
    return [OrderResponse.from_order(o) for o in orders]


@order_router.get("/by-number/{order_number}", response_model=OrderResponse)
async def fetch_order_by_number(order_number: str) -> OrderResponse:
    return OrderResponse.from_order(get_order_by_number(order_number))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def fetch_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(get_order(order_id))


@order_router.get("/{order_id}/history", response_model=list[StatusHistoryResponse])
async def fetch_history(order_id: str) -> list[StatusHistoryResponse]:
    return [StatusHistoryResponse.from_entry(entry) for entry in get_status_history(order_id)]


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def change_status(
    order_id: str, body: TransitionOrderRequest, actor: Actor = Depends(current_actor)
) -> OrderResponse:
    """Move the order along a legal edge of its lifecycle."""
    order = transition_order(order_id, body.status, body.note, actor.id)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel(order_id: str, body: CancelOrderRequest, actor: Actor = Depends(current_actor)) -> OrderResponse:
    return OrderResponse.from_order(cancel_order(order_id, body.reason, actor.id))


@order_router.put("/{order_id}/payment", response_model=OrderResponse)
async def record_payment(
    order_id: str, body: ConfirmPaymentRequest, actor: Actor = Depends(current_actor)
) -> OrderResponse:
    """Manual payment confirmation (cash, check, or a card payment taken at the counter)."""
    order = confirm_payment(
        order_id,
        payment_reference=body.payment_reference,
        payment_method=body.payment_method,
        actor=actor.id,
    )
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/payment-failure", response_model=OrderResponse)
async def record_failure(order_id: str, body: PaymentFailureRequest) -> OrderResponse:
    return OrderResponse.from_order(record_payment_failure(order_id, body.reason))


@order_router.put("/{order_id}/notes", response_model=OrderResponse)
async def add_notes(order_id: str, body: OrderNotesRequest, actor: Actor = Depends(current_actor)) -> OrderResponse:
    """Append an internal staff note without touching the order status."""
    return OrderResponse.from_order(add_order_notes(order_id, body.notes, actor.id))
