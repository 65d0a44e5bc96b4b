"""Scheduling sales and the periodic sweep that opens and closes them.

``sync_sale_windows`` is meant to be triggered by an external scheduler
(``manage.py sync-sales`` or ``POST /maintenance/sync-sales``). It is
idempotent: windows already in their target state are skipped, so a
repeated run reports nothing opened or closed.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import DateTime, Float, Identifier
from protean.utils.globals import current_domain

from freshcart.catalogue import get_catalog
from freshcart.catalogue.sale import SaleStatus, SaleWindow
from freshcart.domain import freshcart

logger = structlog.get_logger(__name__)


@freshcart.command(part_of="SaleWindow")
class ScheduleSale:
    product_id = Identifier(required=True)
    sale_price = Float(required=True)
    starts_at = DateTime(required=True)
    ends_at = DateTime(required=True)


@freshcart.command(part_of="SaleWindow")
class OpenSaleWindow:
    sale_window_id = Identifier(required=True)


@freshcart.command(part_of="SaleWindow")
class CloseSaleWindow:
    sale_window_id = Identifier(required=True)


@freshcart.command_handler(part_of=SaleWindow)
class SaleWindowHandler:
    @handle(ScheduleSale)
    def schedule(self, command):
        window = SaleWindow.schedule(
            product_id=command.product_id,
            sale_price=command.sale_price,
            starts_at=command.starts_at,
            ends_at=command.ends_at,
        )
        current_domain.repository_for(SaleWindow).add(window)
        logger.info(
            "Sale scheduled",
            sale_window_id=str(window.id),
            product_id=command.product_id,
            sale_price=window.sale_price,
        )
        return window

    @handle(OpenSaleWindow)
    def open(self, command):
        repo = current_domain.repository_for(SaleWindow)
        window = repo.get(command.sale_window_id)
        window.open()
        repo.add(window)
        return window

    @handle(CloseSaleWindow)
    def close(self, command):
        repo = current_domain.repository_for(SaleWindow)
        window = repo.get(command.sale_window_id)
        window.close()
        repo.add(window)
        return window


def schedule_sale(product_id: str, sale_price: float, starts_at: datetime, ends_at: datetime) -> SaleWindow:
    return current_domain.process(
        ScheduleSale(product_id=product_id, sale_price=sale_price, starts_at=starts_at, ends_at=ends_at),
        asynchronous=False,
    )


def sync_sale_windows(as_of: datetime | None = None) -> dict:
    """Open due sales and close expired ones in the catalog."""
    as_of = as_of or datetime.now(UTC)
    repo = current_domain.repository_for(SaleWindow)
    catalog = get_catalog()
    opened = closed = 0

    for window in repo.find_by_status(SaleStatus.ACTIVE.value) + repo.find_by_status(SaleStatus.SCHEDULED.value):
        window_id = str(window.id)
        try:
            if window.is_over(as_of):
                catalog.end_sale(str(window.product_id))
                current_domain.process(CloseSaleWindow(sale_window_id=window_id), asynchronous=False)
                closed += 1
            elif window.status == SaleStatus.SCHEDULED.value and window.is_due(as_of):
                catalog.start_sale(str(window.product_id), window.sale_price)
                current_domain.process(OpenSaleWindow(sale_window_id=window_id), asynchronous=False)
                opened += 1
        except Exception as exc:
            logger.error("Failed to sync sale window", sale_window_id=window_id, error=str(exc))

    logger.info("Sale windows synced", opened=opened, closed=closed, as_of=as_of.isoformat())
    return {"opened": opened, "closed": closed}
