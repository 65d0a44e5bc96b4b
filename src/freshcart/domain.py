"""FreshCart order engine: orders, fulfillment, time slots and refunds.

A single bounded context. Orders, their fulfillment records, the pickup and
delivery time slots they reserve, and the refunds issued against them share
one domain so that the writes which must land together (a PAID transition and
the fulfillment it creates, a completed refund and the order it cascades into)
commit in one unit of work. Uses CQRS for every aggregate.
"""

from protean.domain import Domain

from freshcart.utils.logging import configure_logging

configure_logging()

freshcart = Domain(name="freshcart")
