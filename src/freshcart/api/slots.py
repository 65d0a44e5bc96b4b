"""FastAPI routes for pickup and delivery time slots."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from freshcart.api.actor import Actor, current_actor
from freshcart.api.schemas import (
    GeneratedSlotsResponse,
    GenerateSlotsRequest,
    SlotAvailabilityRequest,
    SlotCapacityRequest,
    SlotReservationRequest,
    SlotResponse,
)
from freshcart.errors import require_admin
from freshcart.timeslot.capacity import release_slot, reserve_slot
from freshcart.timeslot.management import (
    GenerateTimeSlots,
    SetSlotAvailability,
    UpdateSlotCapacity,
    list_available_slots,
)
from freshcart.timeslot.slot import TimeSlot

slot_router = APIRouter(prefix="/slots", tags=["slots"])


@slot_router.post("/generate", status_code=201, response_model=GeneratedSlotsResponse)
async def generate_slots(body: GenerateSlotsRequest, actor: Actor = Depends(current_actor)) -> GeneratedSlotsResponse:
    require_admin(actor.role, "generate time slots")
    created = current_domain.process(
        GenerateTimeSlots(start_date=body.start_date, days=body.days),
        asynchronous=False,
    )
    return GeneratedSlotsResponse(created=created)


@slot_router.get("/available", response_model=list[SlotResponse])
async def available_slots(start_date: str, end_date: str, item_count: int = 0) -> list[SlotResponse]:
    return [SlotResponse.from_slot(s) for s in list_available_slots(start_date, end_date, item_count=item_count)]


@slot_router.put("/reserve", response_model=SlotResponse)
async def reserve(body: SlotReservationRequest) -> SlotResponse:
    return SlotResponse.from_slot(reserve_slot(body.slot_date, body.start_time, body.item_count))


@slot_router.put("/release", response_model=SlotResponse)
async def release(body: SlotReservationRequest) -> SlotResponse:
    return SlotResponse.from_slot(release_slot(body.slot_date, body.start_time, body.item_count))


@slot_router.get("/{slot_id}", response_model=SlotResponse)
async def fetch_slot(slot_id: str) -> SlotResponse:
    return SlotResponse.from_slot(current_domain.repository_for(TimeSlot).get(slot_id))


@slot_router.put("/{slot_id}/availability", response_model=SlotResponse)
async def set_availability(
    slot_id: str, body: SlotAvailabilityRequest, actor: Actor = Depends(current_actor)
) -> SlotResponse:
    require_admin(actor.role, "open or close time slots")
    slot = current_domain.process(
        SetSlotAvailability(slot_id=slot_id, is_available=body.is_available),
        asynchronous=False,
    )
    return SlotResponse.from_slot(slot)


@slot_router.put("/{slot_id}/capacity", response_model=SlotResponse)
async def update_capacity(slot_id: str, body: SlotCapacityRequest, actor: Actor = Depends(current_actor)) -> SlotResponse:
    require_admin(actor.role, "change slot capacity")
    slot = current_domain.process(
        UpdateSlotCapacity(slot_id=slot_id, max_orders=body.max_orders, max_items=body.max_items),
        asynchronous=False,
    )
    return SlotResponse.from_slot(slot)
