"""Configurable fake payment gateway for development and testing."""

from uuid import uuid4

from freshcart.gateway.port import PaymentGateway, RefundResult


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Refund declined"
        self.calls: list[dict] = []
        self._refunds_by_key: dict[str, RefundResult] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Refund declined") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_refund(
        self,
        payment_reference: str,
        amount: float,
        reason: str,
        idempotency_key: str,
    ) -> RefundResult:
        self.calls.append(
            {
                "method": "create_refund",
                "payment_reference": payment_reference,
                "amount": amount,
                "reason": reason,
                "idempotency_key": idempotency_key,
            }
        )

        # Replayed request: answer exactly as the first time
        if idempotency_key in self._refunds_by_key:
            return self._refunds_by_key[idempotency_key]

        if not self.should_succeed:
            return RefundResult(success=False, gateway_status="failed", failure_reason=self.failure_reason)

        result = RefundResult(
            success=True,
            gateway_refund_id=f"fake_re_{uuid4().hex[:12]}",
            gateway_status="pending",
        )
        self._refunds_by_key[idempotency_key] = result
        return result

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"
