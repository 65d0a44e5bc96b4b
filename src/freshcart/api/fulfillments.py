"""FastAPI routes for fulfillment: the staff picking workflow."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from freshcart.api.actor import Actor, current_actor
from freshcart.api.schemas import (
    CancelFulfillmentRequest,
    CompleteFulfillmentRequest,
    CreateFulfillmentRequest,
    FulfillmentNotesRequest,
    FulfillmentResponse,
    UpdateFulfillmentItemRequest,
)
from freshcart.fulfillment.creation import CreateFulfillment
from freshcart.fulfillment.progress import (
    AddFulfillmentNotes,
    CancelFulfillment,
    CompleteFulfillment,
    StartFulfillment,
    UpdateFulfillmentItem,
)
from freshcart.fulfillment.queries import get_fulfillment, get_fulfillment_for_order, list_fulfillments

fulfillment_router = APIRouter(prefix="/fulfillments", tags=["fulfillments"])


def _respond(command) -> FulfillmentResponse:
    ff = current_domain.process(command, asynchronous=False)
    return FulfillmentResponse.from_fulfillment(ff)


@fulfillment_router.post("", status_code=201, response_model=FulfillmentResponse)
async def create_fulfillment(body: CreateFulfillmentRequest) -> FulfillmentResponse:
    """Open a fulfillment for a paid order that lacks one."""
    return _respond(CreateFulfillment(order_id=body.order_id))


@fulfillment_router.get("", response_model=list[FulfillmentResponse])
async def search_fulfillments(status: str | None = None) -> list[FulfillmentResponse]:
    return [FulfillmentResponse.from_fulfillment(ff) for ff in list_fulfillments(status)]


@fulfillment_router.get("/by-order/{order_id}", response_model=FulfillmentResponse)
async def fetch_for_order(order_id: str) -> FulfillmentResponse:
    return FulfillmentResponse.from_fulfillment(get_fulfillment_for_order(order_id))


@fulfillment_router.get("/{fulfillment_id}", response_model=FulfillmentResponse)
async def fetch_fulfillment(fulfillment_id: str) -> FulfillmentResponse:
    return FulfillmentResponse.from_fulfillment(get_fulfillment(fulfillment_id))


@fulfillment_router.put("/{fulfillment_id}/start", response_model=FulfillmentResponse)
async def start(fulfillment_id: str, actor: Actor = Depends(current_actor)) -> FulfillmentResponse:
    return _respond(StartFulfillment(fulfillment_id=fulfillment_id, actor=actor.id))


@fulfillment_router.put("/{fulfillment_id}/items/{position}", response_model=FulfillmentResponse)
async def update_item(
    fulfillment_id: str,
    position: int,
    body: UpdateFulfillmentItemRequest,
    actor: Actor = Depends(current_actor),
) -> FulfillmentResponse:
    """Record the picked quantity for one line. The last full line auto-completes the fulfillment."""
    return _respond(
        UpdateFulfillmentItem(
            fulfillment_id=fulfillment_id,
            position=position,
            quantity_fulfilled=body.quantity_fulfilled,
            notes=body.notes,
            actor=actor.id,
        )
    )


@fulfillment_router.put("/{fulfillment_id}/complete", response_model=FulfillmentResponse)
async def complete(
    fulfillment_id: str, body: CompleteFulfillmentRequest, actor: Actor = Depends(current_actor)
) -> FulfillmentResponse:
    return _respond(CompleteFulfillment(fulfillment_id=fulfillment_id, actor=actor.id, notes=body.notes))


@fulfillment_router.put("/{fulfillment_id}/cancel", response_model=FulfillmentResponse)
async def cancel(
    fulfillment_id: str, body: CancelFulfillmentRequest, actor: Actor = Depends(current_actor)
) -> FulfillmentResponse:
    return _respond(CancelFulfillment(fulfillment_id=fulfillment_id, reason=body.reason, actor=actor.id))


@fulfillment_router.put("/{fulfillment_id}/notes", response_model=FulfillmentResponse)
async def add_notes(
    fulfillment_id: str, body: FulfillmentNotesRequest, actor: Actor = Depends(current_actor)
) -> FulfillmentResponse:
    return _respond(AddFulfillmentNotes(fulfillment_id=fulfillment_id, notes=body.notes, actor=actor.id))
