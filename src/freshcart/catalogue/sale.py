"""SaleWindow aggregate: a product's sale price over a fixed period.

State Machine:
    SCHEDULED → ACTIVE → ENDED
    SCHEDULED → ENDED  (the window passed before it was ever opened)
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String

from freshcart.catalogue.events import SaleClosed, SaleOpened, SaleScheduled
from freshcart.domain import freshcart
from freshcart.errors import InvalidTransition
from freshcart.utils.timestamps import as_naive_utc


class SaleStatus(Enum):
    SCHEDULED = "Scheduled"
    ACTIVE = "Active"
    ENDED = "Ended"


_VALID_TRANSITIONS = {
    SaleStatus.SCHEDULED: {SaleStatus.ACTIVE, SaleStatus.ENDED},
    SaleStatus.ACTIVE: {SaleStatus.ENDED},
    SaleStatus.ENDED: set(),
}


@freshcart.aggregate
class SaleWindow:
    product_id = Identifier(required=True)
    sale_price = Float(required=True)
    starts_at = DateTime(required=True)
    ends_at = DateTime(required=True)
    status = String(choices=SaleStatus, default=SaleStatus.SCHEDULED.value)
    opened_at = DateTime()
    closed_at = DateTime()
    created_at = DateTime()

    @invariant.post
    def sale_price_must_be_positive(self):
        if self.sale_price is None or self.sale_price <= 0:
            raise ValidationError({"sale_price": ["Sale price must be greater than zero"]})

    @invariant.post
    def window_must_end_after_it_starts(self):
        if self.starts_at and self.ends_at and as_naive_utc(self.starts_at) >= as_naive_utc(self.ends_at):
            raise ValidationError({"ends_at": ["Sale must end after it starts"]})

    @classmethod
    def schedule(cls, product_id: str, sale_price: float, starts_at: datetime, ends_at: datetime) -> "SaleWindow":
        window = cls(
            product_id=product_id,
            sale_price=round(sale_price, 2),
            starts_at=starts_at,
            ends_at=ends_at,
            status=SaleStatus.SCHEDULED.value,
            created_at=datetime.now(UTC),
        )
        window.raise_(
            SaleScheduled(
                sale_window_id=str(window.id),
                product_id=product_id,
                sale_price=window.sale_price,
                starts_at=starts_at,
                ends_at=ends_at,
            )
        )
        return window

    def is_due(self, as_of: datetime) -> bool:
        """Inside the window: started and not yet over."""
        now = as_naive_utc(as_of)
        return as_naive_utc(self.starts_at) <= now < as_naive_utc(self.ends_at)

    def is_over(self, as_of: datetime) -> bool:
        return as_naive_utc(self.ends_at) <= as_naive_utc(as_of)

    def _assert_can_transition(self, target_status: SaleStatus) -> None:
        current = SaleStatus(self.status)
        if target_status not in _VALID_TRANSITIONS[current]:
            raise InvalidTransition(
                {"status": [f"Cannot transition sale from {current.value} to {target_status.value}"]}
            )

    def open(self) -> None:
        self._assert_can_transition(SaleStatus.ACTIVE)
        now = datetime.now(UTC)
        self.status = SaleStatus.ACTIVE.value
        self.opened_at = now
        self.raise_(
            SaleOpened(
                sale_window_id=str(self.id),
                product_id=str(self.product_id),
                sale_price=self.sale_price,
                opened_at=now,
            )
        )

    def close(self) -> None:
        self._assert_can_transition(SaleStatus.ENDED)
        now = datetime.now(UTC)
        self.status = SaleStatus.ENDED.value
        self.closed_at = now
        self.raise_(SaleClosed(sale_window_id=str(self.id), product_id=str(self.product_id), closed_at=now))


@freshcart.repository(part_of=SaleWindow)
class SaleWindowRepository:
    def find_by_status(self, status: str) -> list[SaleWindow]:
        return self._dao.query.filter(status=status).all().items

    def find_for_product(self, product_id: str) -> list[SaleWindow]:
        windows = self._dao.query.filter(product_id=product_id).all().items
        return sorted(windows, key=lambda w: as_naive_utc(w.starts_at))
