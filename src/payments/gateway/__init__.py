"""Payment gateway factory.

Builds the adapter selected by settings:
- RazorpayGateway when Razorpay credentials are configured
- FakeGateway otherwise (development and testing)
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway
from payments.gateway.razorpay_adapter import RazorpayGateway
from shared.settings import Settings


def build_gateway(settings: Settings) -> PaymentGateway:
    """Return the payment gateway configured by ``settings``."""
    if settings.razorpay_key_id and settings.razorpay_key_secret:
        return RazorpayGateway(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_key_secret,
            base_url=settings.razorpay_base_url,
            timeout=settings.gateway_timeout,
        )
    return FakeGateway(secret=settings.fake_gateway_secret)
