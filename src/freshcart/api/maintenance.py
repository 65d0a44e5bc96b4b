"""Sweep triggers for an external scheduler (cron, K8s CronJob)."""

from fastapi import APIRouter

from freshcart.api.schemas import ExpireOrdersRequest, ExpireOrdersResponse, SyncSalesResponse
from freshcart.catalogue.scheduling import sync_sale_windows
from freshcart.order.expiry import expire_unpaid_orders

maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@maintenance_router.post("/expire-orders", response_model=ExpireOrdersResponse)
async def expire_orders(body: ExpireOrdersRequest | None = None) -> ExpireOrdersResponse:
    older_than = body.older_than_minutes if body else None
    return ExpireOrdersResponse(expired=expire_unpaid_orders(older_than_minutes=older_than))


@maintenance_router.post("/sync-sales", response_model=SyncSalesResponse)
async def sync_sales() -> SyncSalesResponse:
    return SyncSalesResponse(**sync_sale_windows())
