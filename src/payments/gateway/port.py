"""Payment gateway port (abstract interface).

Defines the contract every payment gateway adapter implements: opening a
remote payment intent for an order, and proving that a payment completion
notice was genuinely issued by the gateway. Swapping FakeGateway (dev/test)
for RazorpayGateway (production) needs no change in the ordering code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentIntent:
    """A remote payment session opened for one order.

    ``amount`` is expressed in the currency's minor unit (paise for INR).
    """

    gateway_order_id: str
    amount: int
    currency: str
    receipt: str
    key_id: str | None = None
    status: str = "created"


def to_minor_units(amount: float) -> int:
    """Convert a decimal amount to the gateway's integer minor unit."""
    return int(round(amount * 100))


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_payment_intent(self, amount: float, currency: str, receipt: str) -> PaymentIntent:
        """Open a payment intent for ``amount`` (major units) with the gateway.

        Raises ``GatewayError`` when the gateway cannot be reached or refuses
        the request.
        """
        ...

    @abstractmethod
    def verify_payment_signature(
        self,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> bool:
        """Return True when ``signature`` authenticates the payment pair."""
        ...
