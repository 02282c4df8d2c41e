"""Courier-facing request dependencies."""

import hmac

from fastapi import Header, HTTPException, Request

from fulfillment.carrier.port import CourierPort


def get_courier(request: Request) -> CourierPort:
    return request.app.state.courier


def require_courier(request: Request, authorization: str = Header(default="")) -> None:
    """Check the courier partner's bearer token."""
    expected = request.app.state.settings.courier_api_token
    scheme, _, token = authorization.partition(" ")
    if not expected or scheme.lower() != "bearer" or not hmac.compare_digest(token.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid courier credentials")
