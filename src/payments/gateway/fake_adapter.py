"""Configurable fake payment gateway for development and testing.

Simulates a gateway without any external calls. Intents get deterministic
looking ids, and ``sign()`` produces the signature the real gateway would
hand to the paying client, so tests and manual runs can complete a payment:

    intent = gateway.create_payment_intent(100.0, "INR", "receipt_1")
    signature = gateway.sign(intent.gateway_order_id, "pay_123")
"""

from uuid import uuid4

from payments.exceptions import GatewayError
from payments.gateway.port import PaymentGateway, PaymentIntent, to_minor_units
from payments.gateway.signature import sign_payment, verify_payment_signature


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, secret: str = "fake-gateway-secret", key_id: str = "rzp_test_fake") -> None:
        self.secret = secret
        self.key_id = key_id
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_payment_intent(self, amount: float, currency: str, receipt: str) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_payment_intent",
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
            }
        )
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        return PaymentIntent(
            gateway_order_id=f"order_{uuid4().hex[:14]}",
            amount=to_minor_units(amount),
            currency=currency,
            receipt=receipt,
            key_id=self.key_id,
        )

    def verify_payment_signature(
        self,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> bool:
        self.calls.append(
            {
                "method": "verify_payment_signature",
                "gateway_order_id": gateway_order_id,
                "gateway_payment_id": gateway_payment_id,
            }
        )
        return verify_payment_signature(self.secret, gateway_order_id, gateway_payment_id, signature)

    def sign(self, gateway_order_id: str, gateway_payment_id: str) -> str:
        """Produce the signature the gateway would issue for a completed payment."""
        return sign_payment(self.secret, gateway_order_id, gateway_payment_id)
