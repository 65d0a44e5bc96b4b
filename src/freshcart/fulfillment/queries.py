"""Fulfillment lookups for the picking screens."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from freshcart.fulfillment.fulfillment import OrderFulfillment


def get_fulfillment(fulfillment_id: str) -> OrderFulfillment:
    return current_domain.repository_for(OrderFulfillment).get(fulfillment_id)


def get_fulfillment_for_order(order_id: str) -> OrderFulfillment:
    ff = current_domain.repository_for(OrderFulfillment).find_for_order(order_id)
    if ff is None:
        raise ObjectNotFoundError(f"No fulfillment exists for order `{order_id}`")
    return ff


def list_fulfillments(status: str | None = None) -> list[OrderFulfillment]:
    return current_domain.repository_for(OrderFulfillment).find_by_status(status)
