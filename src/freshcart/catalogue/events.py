"""Domain events for scheduled sales."""

from protean.fields import DateTime, Float, Identifier

from freshcart.domain import freshcart


@freshcart.event(part_of="SaleWindow")
class SaleScheduled:
    __version__ = 1

    sale_window_id = Identifier(required=True)
    product_id = Identifier(required=True)
    sale_price = Float(required=True)
    starts_at = DateTime(required=True)
    ends_at = DateTime(required=True)


@freshcart.event(part_of="SaleWindow")
class SaleOpened:
    __version__ = 1

    sale_window_id = Identifier(required=True)
    product_id = Identifier(required=True)
    sale_price = Float(required=True)
    opened_at = DateTime(required=True)


@freshcart.event(part_of="SaleWindow")
class SaleClosed:
    __version__ = 1

    sale_window_id = Identifier(required=True)
    product_id = Identifier(required=True)
    closed_at = DateTime(required=True)
