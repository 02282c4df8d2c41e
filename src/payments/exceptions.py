"""Payment gateway errors."""


class InvalidSignature(Exception):
    """The payment completion notice could not be authenticated."""


class GatewayError(Exception):
    """The payment gateway could not be reached or rejected the request."""
