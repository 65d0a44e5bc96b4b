"""Payment gateway port (abstract interface).

The engine never speaks a gateway's wire protocol. It asks the configured
adapter to move money back to the customer and to authenticate incoming
webhooks. Adapters are installed with ``set_gateway``; FakeGateway is the
default.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund transfer request."""

    success: bool
    gateway_refund_id: str | None = None
    gateway_status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def create_refund(
        self,
        payment_reference: str,
        amount: float,
        reason: str,
        idempotency_key: str,
    ) -> RefundResult:
        """Refund part or all of a captured payment.

        Repeating a call with the same ``idempotency_key`` must not move money
        twice; the gateway answers with the original result.
        """
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
