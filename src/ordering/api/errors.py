"""HTTP mapping of service errors.

Protean's handlers cover ``ValidationError`` and the generic not-found
error; the ones below cover what the order lifecycle adds.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from fulfillment.exceptions import AdapterFailure, ShipmentNotFound
from ordering.exceptions import InvalidTransition, OrderNotFound, Unauthorized
from payments.exceptions import GatewayError, InvalidSignature

logger = structlog.get_logger(__name__)

_STATUS_CODES = {
    OrderNotFound: 404,
    ShipmentNotFound: 404,
    Unauthorized: 403,
    InvalidTransition: 409,
    InvalidSignature: 400,
    GatewayError: 502,
    AdapterFailure: 503,
}


async def _service_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = next(code for error_cls, code in _STATUS_CODES.items() if isinstance(exc, error_cls))
    if status_code >= 500:
        logger.error("upstream_failure", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    for error_cls in _STATUS_CODES:
        app.add_exception_handler(error_cls, _service_error_handler)
