"""Fulfillment progress: start, item updates, completion, cancellation and notes."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.fulfillment.fulfillment import OrderFulfillment


@freshcart.command(part_of="OrderFulfillment")
class StartFulfillment:
    fulfillment_id = Identifier(required=True)
    actor = String(required=True, max_length=100)


@freshcart.command(part_of="OrderFulfillment")
class UpdateFulfillmentItem:
    """Record the quantity picked for the item at ``position``.

    There is no status field: item status follows from the quantity.
    """

    fulfillment_id = Identifier(required=True)
    position = Integer(required=True, min_value=0)
    quantity_fulfilled = Integer(required=True)
    notes = Text()
    actor = String(required=True, max_length=100)


@freshcart.command(part_of="OrderFulfillment")
class CompleteFulfillment:
    fulfillment_id = Identifier(required=True)
    actor = String(required=True, max_length=100)
    notes = Text()


@freshcart.command(part_of="OrderFulfillment")
class CancelFulfillment:
    fulfillment_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    actor = String(required=True, max_length=100)


@freshcart.command(part_of="OrderFulfillment")
class AddFulfillmentNotes:
    fulfillment_id = Identifier(required=True)
    notes = Text(required=True)
    actor = String(required=True, max_length=100)


@freshcart.command_handler(part_of=OrderFulfillment)
class FulfillmentProgressHandler:
    @handle(StartFulfillment)
    def start(self, command):
        repo = current_domain.repository_for(OrderFulfillment)
        ff = repo.get(command.fulfillment_id)
        ff.start(command.actor)
        repo.add(ff)
        return ff

    @handle(UpdateFulfillmentItem)
    def update_item(self, command):
        repo = current_domain.repository_for(OrderFulfillment)
        ff = repo.get(command.fulfillment_id)
        ff.update_item(
            position=command.position,
            quantity_fulfilled=command.quantity_fulfilled,
            actor=command.actor,
            notes=command.notes,
        )
        repo.add(ff)
        return ff

    @handle(CompleteFulfillment)
    def complete(self, command):
        repo = current_domain.repository_for(OrderFulfillment)
        ff = repo.get(command.fulfillment_id)
        ff.complete(command.actor, notes=command.notes)
        repo.add(ff)
        return ff

    @handle(CancelFulfillment)
    def cancel(self, command):
        repo = current_domain.repository_for(OrderFulfillment)
        ff = repo.get(command.fulfillment_id)
        ff.cancel(command.reason, command.actor)
        repo.add(ff)
        return ff

    @handle(AddFulfillmentNotes)
    def add_notes(self, command):
        repo = current_domain.repository_for(OrderFulfillment)
        ff = repo.get(command.fulfillment_id)
        ff.add_notes(command.notes, command.actor)
        repo.add(ff)
        return ff
