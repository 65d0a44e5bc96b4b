"""Order lookups for staff screens and the customer's order history."""

from datetime import datetime

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from freshcart.order.order import Order


def get_order(order_id: str) -> Order:
    return current_domain.repository_for(Order).get(order_id)


def get_order_by_number(order_number: str) -> Order:
    order = current_domain.repository_for(Order).find_by_number(order_number)
    if order is None:
        raise ObjectNotFoundError(f"Order with number `{order_number}` does not exist")
    return order


def list_orders_for_user(user_id: str) -> list[Order]:
    return current_domain.repository_for(Order).find_for_user(user_id)


def list_orders(status: str | None = None) -> list[Order]:
    return current_domain.repository_for(Order).find_by_status(status)


def list_orders_between(start: datetime, end: datetime) -> list[Order]:
    """Orders created within ``[start, end]``, oldest first."""
    return current_domain.repository_for(Order).find_created_between(start, end)
