"""HMAC-SHA256 signatures over ``gateway_order_id|gateway_payment_id``.

The secret is held by the server only. Comparison is constant-time.
"""

import hashlib
import hmac


def sign_payment(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    """Return the hex digest the gateway issues for a completed payment."""
    message = f"{gateway_order_id}|{gateway_payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_payment_signature(
    secret: str,
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str | None,
) -> bool:
    if not secret or not signature:
        return False
    expected = sign_payment(secret, gateway_order_id, gateway_payment_id)
    return hmac.compare_digest(expected.encode(), signature.encode())
