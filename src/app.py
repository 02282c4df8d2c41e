"""Marketplace Orders FastAPI application.

Composition root: builds the payment gateway and courier adapters from
settings, hands them to the Order Service and the courier status handler,
and wraps each request in the ordering domain context.

Usage:
    python src/server.py --port 8000
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fulfillment.api.routes import shipment_router
from fulfillment.carrier import build_courier
from fulfillment.carrier.port import CourierPort
from fulfillment.domain import fulfillment
from ordering.api.errors import register_error_handlers
from ordering.api.routes import courier_status_router, order_router, payment_router
from ordering.domain import ordering
from ordering.order.courier_updates import CourierStatusHandler
from ordering.order.service import OrderService
from ordering.order.transitions import OrderTransitions
from payments.gateway import build_gateway
from payments.gateway.port import PaymentGateway
from shared.settings import Settings, get_settings

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
# The courier adapter pushes the fulfillment context itself
_ROUTE_DOMAIN_MAP = {
    "/orders": ordering,
    "/payments": ordering,
    "/courier": ordering,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


def init_domains() -> None:
    """Initialize both Protean domains. Call once per process."""
    ordering.init()
    fulfillment.init()


def create_app(
    settings: Settings | None = None,
    gateway: PaymentGateway | None = None,
    courier: CourierPort | None = None,
) -> FastAPI:
    """Build the application with the given (or configured) adapters."""
    settings = settings or get_settings()
    gateway = gateway or build_gateway(settings)
    courier = courier or build_courier(settings)
    transitions = OrderTransitions()

    app = FastAPI(
        title="Marketplace Orders API",
        description="Order lifecycle, payment verification and courier fulfillment",
    )
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.courier = courier
    app.state.order_service = OrderService(gateway, courier, settings, transitions)
    app.state.courier_handler = CourierStatusHandler(courier, transitions)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the correct Protean domain context for each request."""
        domain = _resolve_domain(request.url.path)
        if domain is not None:
            with domain.domain_context():
                response = await call_next(request)
            return response
        # Health check and docs run outside any domain
        return await call_next(request)

    app.include_router(order_router)
    app.include_router(payment_router)
    app.include_router(courier_status_router)
    app.include_router(shipment_router)
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "environment": settings.protean_env,
                "gateway": type(gateway).__name__,
                "courier": type(courier).__name__,
                "domains": {
                    "ordering": {"name": ordering.name},
                    "fulfillment": {"name": fulfillment.name},
                },
            }
        )

    return app
