"""Checkout: reserve a time slot, then create the PENDING order.

The slot is reserved first because it is the only contended resource: if it
is full the customer learns that before anything else is written. When order
creation fails after a successful reservation the reservation is released
again, so a failed checkout never holds capacity.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.order.numbering import next_order_number
from freshcart.order.order import FulfillmentType, Order
from freshcart.settings import setting
from freshcart.timeslot.capacity import release_slot, reserve_slot
from freshcart.timeslot.slot import slot_key

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="Order")
class PlaceOrder:
    """Create a PENDING order whose slot capacity is already reserved."""

    order_number = String(required=True, max_length=20)
    user_id = Identifier(required=True)
    customer_email = String(max_length=254)
    customer_name = String(max_length=200)
    items = Text(required=True)  # JSON list of item dicts
    fulfillment_type = String(required=True, choices=FulfillmentType)
    slot_date = String(required=True, max_length=10)
    slot_start_time = String(required=True, max_length=5)
    delivery_fee = Float(default=0.0)
    discount = Float(default=0.0)
    delivery_address = Text()
    notes = Text()


@freshcart.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        order = Order.place(
            order_number=command.order_number,
            user_id=command.user_id,
            items_data=items_data,
            fulfillment_type=command.fulfillment_type,
            tax_rate=setting("tax_rate"),
            customer_email=command.customer_email,
            customer_name=command.customer_name,
            delivery_fee=command.delivery_fee or 0.0,
            discount=command.discount or 0.0,
            slot_date=command.slot_date,
            slot_start_time=command.slot_start_time,
            slot_id=slot_key(command.slot_date, command.slot_start_time),
            delivery_address=command.delivery_address,
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=order.total,
            slot_id=order.slot_id,
        )
        return order


def _validate_items(items: list[dict]) -> list[dict]:
    if not items:
        raise ValidationError({"items": ["An order needs at least one item"]})

    cleaned = []
    for index, item in enumerate(items):
        quantity = item.get("quantity")
        unit_price = item.get("unit_price")
        if not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"items": [f"Item {index} must have a quantity of at least 1"]})
        if unit_price is None or unit_price < 0:
            raise ValidationError({"items": [f"Item {index} must have a non-negative unit price"]})
        cleaned.append(
            {
                "product_id": str(item["product_id"]),
                "product_name": item.get("product_name") or str(item["product_id"]),
                "sku": item.get("sku"),
                "quantity": quantity,
                "unit_price": float(unit_price),
            }
        )
    return cleaned


def place_order(
    user_id: str,
    items: list[dict],
    fulfillment_type: str,
    slot_date: str,
    slot_start_time: str,
    customer_email: str | None = None,
    customer_name: str | None = None,
    delivery_fee: float = 0.0,
    discount: float = 0.0,
    delivery_address: str | None = None,
    notes: str | None = None,
) -> Order:
    """Reserve the slot and create the order. Raises SlotFull/SlotUnavailable before any order exists."""
    items_data = _validate_items(items)
    if fulfillment_type == FulfillmentType.DELIVERY.value and not delivery_address:
        raise ValidationError({"delivery_address": ["Delivery orders need a delivery address"]})

    item_count = sum(item["quantity"] for item in items_data)
    reserve_slot(slot_date, slot_start_time, item_count)

    try:
        return current_domain.process(
            PlaceOrder(
                order_number=next_order_number(),
                user_id=user_id,
                customer_email=customer_email,
                customer_name=customer_name,
                items=json.dumps(items_data),
                fulfillment_type=fulfillment_type,
                slot_date=slot_date,
                slot_start_time=slot_start_time,
                delivery_fee=delivery_fee,
                discount=discount,
                delivery_address=delivery_address,
                notes=notes,
            ),
            asynchronous=False,
        )
    except Exception:
        logger.warning(
            "Order creation failed, releasing slot reservation",
            slot_date=slot_date,
            slot_start_time=slot_start_time,
            item_count=item_count,
        )
        release_slot(slot_date, slot_start_time, item_count)
        raise
