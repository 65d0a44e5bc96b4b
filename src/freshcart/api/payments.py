"""Payment gateway callbacks."""

import json

import structlog
from fastapi import APIRouter, Header, HTTPException

from freshcart.api.schemas import PaymentWebhookRequest, StatusResponse
from freshcart.gateway import get_gateway
from freshcart.order.payment import confirm_payment, record_payment_failure
from freshcart.refund.processing import complete_refund, fail_refund

logger = structlog.get_logger(__name__)

payment_router = APIRouter(prefix="/payments", tags=["payments"])


def _require(value: str | None, field: str, event_type: str) -> str:
    if not value:
        raise HTTPException(status_code=400, detail=f"{field} is required for {event_type}")
    return value


@payment_router.post("/webhook", response_model=StatusResponse)
async def process_webhook(
    body: PaymentWebhookRequest,
    x_gateway_signature: str = Header(default=""),
) -> StatusResponse:
    """Process a payment gateway webhook callback."""
    gateway = get_gateway()
    if not gateway.verify_webhook_signature(json.dumps(body.model_dump()), x_gateway_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    logger.info("Gateway webhook received", event_type=body.event_type)
    event_type = body.event_type
    if event_type == "payment.succeeded":
        confirm_payment(_require(body.order_id, "order_id", event_type), body.payment_reference)
        return StatusResponse(status="payment_confirmed")

    if event_type == "payment.failed":
        record_payment_failure(_require(body.order_id, "order_id", event_type), body.failure_reason or "Payment declined")
        return StatusResponse(status="payment_failed")

    if event_type == "refund.succeeded":
        complete_refund(_require(body.refund_id, "refund_id", event_type), actor="payment-gateway")
        return StatusResponse(status="refund_completed")

    if event_type == "refund.failed":
        fail_refund(
            _require(body.refund_id, "refund_id", event_type),
            body.failure_reason or "Refund failed at gateway",
            actor="payment-gateway",
        )
        return StatusResponse(status="refund_failed")

    logger.warning("Ignoring unknown webhook event", event_type=event_type)
    return StatusResponse(status="ignored")
