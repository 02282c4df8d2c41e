"""Razorpay payment gateway adapter.

Talks to the Razorpay Orders REST API over httpx. The key secret signs
payment completion notices; it is never sent to clients.
"""

import httpx
import structlog

from payments.exceptions import GatewayError
from payments.gateway.port import PaymentGateway, PaymentIntent, to_minor_units
from payments.gateway.signature import verify_payment_signature

logger = structlog.get_logger(__name__)


class RazorpayGateway(PaymentGateway):
    """Production gateway backed by Razorpay."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self._key_secret = key_secret
        self._client = httpx.Client(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    def create_payment_intent(self, amount: float, currency: str, receipt: str) -> PaymentIntent:
        payload = {"amount": to_minor_units(amount), "currency": currency, "receipt": receipt}
        try:
            response = self._client.post("/orders", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "razorpay_order_rejected",
                status_code=exc.response.status_code,
                receipt=receipt,
            )
            raise GatewayError(f"Razorpay rejected the order request ({exc.response.status_code})") from exc
        except httpx.HTTPError as exc:
            logger.error("razorpay_unreachable", error=str(exc), receipt=receipt)
            raise GatewayError("Razorpay is unreachable") from exc

        body = response.json()
        return PaymentIntent(
            gateway_order_id=body["id"],
            amount=body["amount"],
            currency=body["currency"],
            receipt=body.get("receipt") or receipt,
            key_id=self.key_id,
            status=body.get("status", "created"),
        )

    def verify_payment_signature(
        self,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> bool:
        return verify_payment_signature(self._key_secret, gateway_order_id, gateway_payment_id, signature)

    def close(self) -> None:
        self._client.close()
