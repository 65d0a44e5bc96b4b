"""Human-readable document numbers: ``ORD-2026-0001``, ``REF-2026-0001``.

Each prefix/year pair is a ``NumberSequence`` aggregate whose counter only
moves forward. Allocation runs under a per-sequence lock with the same
retry-on-conflict loop as slot reservations, so numbers are unique even when
checkouts race. A number allocated for an order that then fails to be
created is simply skipped.
"""

from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Integer, String
from protean.utils.globals import current_domain

from freshcart.domain import freshcart
from freshcart.settings import setting
from freshcart.utils.locks import key_lock, retry_on_conflict


@freshcart.aggregate
class NumberSequence:
    prefix = String(required=True, max_length=10)
    year = Integer(required=True)
    last_value = Integer(default=0, min_value=0)
    updated_at = DateTime()

    def next_value(self) -> int:
        self.last_value = (self.last_value or 0) + 1
        self.updated_at = datetime.now(UTC)
        return self.last_value

    def format_number(self, value: int) -> str:
        return f"{self.prefix}-{self.year}-{value:04d}"


@freshcart.command(part_of="NumberSequence")
class AllocateNumber:
    prefix = String(required=True, max_length=10)
    year = Integer(required=True)


@freshcart.command_handler(part_of=NumberSequence)
class NumberSequenceHandler:
    @handle(AllocateNumber)
    def allocate(self, command):
        repo = current_domain.repository_for(NumberSequence)
        sequence_id = f"{command.prefix}-{command.year}"
        try:
            sequence = repo.get(sequence_id)
        except ObjectNotFoundError:
            sequence = NumberSequence(id=sequence_id, prefix=command.prefix, year=command.year, last_value=0)
        value = sequence.next_value()
        repo.add(sequence)
        return sequence.format_number(value)


def allocate_number(prefix: str, year: int | None = None) -> str:
    year = year or datetime.now(UTC).year
    command = AllocateNumber(prefix=prefix, year=year)
    with key_lock(f"sequence:{prefix}-{year}"):
        return retry_on_conflict(
            lambda: current_domain.process(command, asynchronous=False),
            attempts=setting("reservation_attempts"),
            key=f"{prefix}-{year}",
        )


def next_order_number() -> str:
    return allocate_number(setting("order_number_prefix"))


def next_refund_number() -> str:
    return allocate_number(setting("refund_number_prefix"))
