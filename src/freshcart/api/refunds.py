"""FastAPI routes for the refund ledger."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from freshcart.api.actor import Actor, current_actor
from freshcart.api.schemas import (
    ApproveRefundRequest,
    CreateRefundRequest,
    FailRefundRequest,
    ProcessRefundRequest,
    RefundResponse,
    RefundStatsResponse,
    RejectRefundRequest,
)
from freshcart.refund.ledger import list_refunds, refund_stats
from freshcart.refund.processing import complete_refund, fail_refund, issue_refund, process_refund
from freshcart.refund.refund import Refund
from freshcart.refund.request import create_refund
from freshcart.refund.review import ApproveRefund, RejectRefund

refund_router = APIRouter(prefix="/refunds", tags=["refunds"])


@refund_router.post("", status_code=201, response_model=RefundResponse)
async def request_refund(body: CreateRefundRequest) -> RefundResponse:
    refund = create_refund(
        order_id=body.order_id,
        amount=body.amount,
        reason=body.reason,
        customer_explanation=body.customer_explanation,
    )
    return RefundResponse.from_refund(refund)


@refund_router.get("", response_model=list[RefundResponse])
async def search_refunds(
    order_id: str | None = None, user_id: str | None = None, status: str | None = None
) -> list[RefundResponse]:
    refunds = list_refunds(order_id=order_id, user_id=user_id, status=status)
    return [RefundResponse.from_refund(r) for r in refunds]


@refund_router.get("/stats", response_model=RefundStatsResponse)
async def stats() -> RefundStatsResponse:
    return RefundStatsResponse(**refund_stats())


@refund_router.get("/{refund_id}", response_model=RefundResponse)
async def fetch_refund(refund_id: str) -> RefundResponse:
    return RefundResponse.from_refund(current_domain.repository_for(Refund).get(refund_id))


@refund_router.put("/{refund_id}/approve", response_model=RefundResponse)
async def approve(refund_id: str, body: ApproveRefundRequest, actor: Actor = Depends(current_actor)) -> RefundResponse:
    refund = current_domain.process(
        ApproveRefund(refund_id=refund_id, actor=actor.id, actor_role=actor.role, notes=body.notes),
        asynchronous=False,
    )
    return RefundResponse.from_refund(refund)


@refund_router.put("/{refund_id}/reject", response_model=RefundResponse)
async def reject(refund_id: str, body: RejectRefundRequest, actor: Actor = Depends(current_actor)) -> RefundResponse:
    refund = current_domain.process(
        RejectRefund(refund_id=refund_id, actor=actor.id, actor_role=actor.role, reason=body.reason),
        asynchronous=False,
    )
    return RefundResponse.from_refund(refund)


@refund_router.put("/{refund_id}/issue", response_model=RefundResponse)
async def issue(refund_id: str, actor: Actor = Depends(current_actor)) -> RefundResponse:
    """Send an approved refund to the payment gateway."""
    return RefundResponse.from_refund(issue_refund(refund_id, actor.id))


@refund_router.put("/{refund_id}/process", response_model=RefundResponse)
async def process(refund_id: str, body: ProcessRefundRequest, actor: Actor = Depends(current_actor)) -> RefundResponse:
    """Record a gateway refund that was initiated outside this service."""
    return RefundResponse.from_refund(process_refund(refund_id, body.gateway_refund_id, actor.id))


@refund_router.put("/{refund_id}/complete", response_model=RefundResponse)
async def complete(refund_id: str, actor: Actor = Depends(current_actor)) -> RefundResponse:
    return RefundResponse.from_refund(complete_refund(refund_id, actor.id))


@refund_router.put("/{refund_id}/fail", response_model=RefundResponse)
async def fail(refund_id: str, body: FailRefundRequest, actor: Actor = Depends(current_actor)) -> RefundResponse:
    return RefundResponse.from_refund(fail_refund(refund_id, body.reason, actor.id))
