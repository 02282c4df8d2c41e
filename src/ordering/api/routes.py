"""FastAPI routes for the Ordering domain."""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse

from fulfillment.api.dependencies import require_courier
from ordering.api.dependencies import get_courier_handler, get_order_service, get_principal
from ordering.api.schemas import (
    CourierStatusRequest,
    CourierStatusResponse,
    CreatePaymentIntentRequest,
    OrderIdResponse,
    OrderResponse,
    PaymentIntentResponse,
    PaymentStatusResponse,
    PlaceOrderRequest,
    UpdateStatusRequest,
    VerifyPaymentRequest,
)
from ordering.order.courier_updates import CourierStatusHandler
from ordering.order.origins import Principal, Role
from ordering.order.service import OrderService

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(
    body: PlaceOrderRequest,
    principal: Principal = Depends(get_principal),
    service: OrderService = Depends(get_order_service),
) -> OrderIdResponse:
    """Place an unpaid order from checkout data."""
    order = service.place_order(
        buyer=principal,
        items=[item.model_dump() for item in body.items],
        shipping_address=body.shipping_address.model_dump(),
        payment_method=body.payment_method,
        tax=body.tax,
        shipping=body.shipping,
        items_total=body.items_total,
        grand_total=body.grand_total,
    )
    return OrderIdResponse(order_id=str(order.id), status=order.status, grand_total=order.pricing.grand_total)


@order_router.get("/mine", response_model=list[OrderResponse])
async def my_orders(
    principal: Principal = Depends(get_principal),
    service: OrderService = Depends(get_order_service),
) -> list[OrderResponse]:
    """Orders placed by the authenticated buyer, newest first."""
    return [OrderResponse.from_order(order) for order in service.get_orders_for_buyer(principal.id)]


@order_router.get("/seller", response_model=list[OrderResponse])
async def seller_orders(
    seller_id: str | None = Query(default=None),
    principal: Principal = Depends(get_principal),
    service: OrderService = Depends(get_order_service),
) -> list[OrderResponse]:
    """Orders containing the seller's products. Admins may ask for any seller."""
    if principal.role == Role.BUYER:
        raise HTTPException(status_code=403, detail="Seller access required")
    if seller_id and seller_id != principal.id and not principal.is_admin:
        raise HTTPException(status_code=403, detail="Cannot list another seller's orders")
    return [OrderResponse.from_order(order) for order in service.get_orders_for_seller(seller_id or principal.id)]


@order_router.get("/unreconciled", response_model=list[OrderResponse])
async def unreconciled_orders(
    principal: Principal = Depends(get_principal),
    service: OrderService = Depends(get_order_service),
) -> list[OrderResponse]:
    """Shipped orders whose courier booking failed."""
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return [OrderResponse.from_order(order) for order in service.find_unreconciled_shipments()]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    principal: Principal = Depends(get_principal),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    return OrderResponse.from_order(service.get_order(order_id, principal))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_status(
    order_id: str,
    body: UpdateStatusRequest,
    principal: Principal = Depends(get_principal),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Seller-driven fulfillment step: confirm, pack, ship or cancel."""
    order = service.update_fulfillment_status(order_id, body.status, principal, description=body.description)
    return OrderResponse.from_order(order)


@order_router.post("/{order_id}/reconcile-shipment", response_model=OrderResponse)
async def reconcile_shipment(
    order_id: str,
    principal: Principal = Depends(get_principal),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Retry the courier booking for a shipped order (admin only)."""
    return OrderResponse.from_order(service.reconcile_shipment(order_id, principal))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/intents", status_code=201, response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: CreatePaymentIntentRequest,
    principal: Principal = Depends(get_principal),
    service: OrderService = Depends(get_order_service),
) -> PaymentIntentResponse:
    """Open a gateway payment intent for the order's grand total."""
    session = service.create_payment_intent(body.order_id, principal, client=body.client)
    return PaymentIntentResponse.from_session(session)


@payment_router.post("/verify", response_model=PaymentStatusResponse)
async def verify_payment(
    body: VerifyPaymentRequest,
    service: OrderService = Depends(get_order_service),
) -> PaymentStatusResponse:
    """Verify the gateway signature and mark the order paid."""
    order = service.verify_payment(
        order_id=body.order_id,
        gateway_order_id=body.gateway_order_id,
        gateway_payment_id=body.gateway_payment_id,
        signature=body.signature,
        payer_email=body.payer_email,
    )
    return PaymentStatusResponse(
        order_id=str(order.id),
        is_paid=bool(order.is_paid),
        status=order.status,
        paid_at=order.paid_at,
    )


@payment_router.get("/callback")
async def payment_callback(
    order_id: str,
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str,
    client: str = "web",
    service: OrderService = Depends(get_order_service),
) -> RedirectResponse:
    """Redirect target of the gateway's payment page."""
    service.verify_payment(
        order_id=order_id,
        gateway_order_id=gateway_order_id,
        gateway_payment_id=gateway_payment_id,
        signature=signature,
    )
    return RedirectResponse(url=service.return_url(order_id, client), status_code=303)


@payment_router.get("/status/{order_id}", response_model=PaymentStatusResponse)
async def payment_status(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> PaymentStatusResponse:
    """Poll whether an order has been marked paid. Never mutates the order."""
    return PaymentStatusResponse.from_status(service.check_payment_status(order_id))


# ---------------------------------------------------------------------------
# Courier Status Router
# ---------------------------------------------------------------------------
courier_status_router = APIRouter(prefix="/courier", tags=["courier"])


@courier_status_router.put(
    "/status",
    response_model=CourierStatusResponse,
    dependencies=[Depends(require_courier)],
)
async def courier_status(
    body: CourierStatusRequest,
    handler: CourierStatusHandler = Depends(get_courier_handler),
) -> CourierStatusResponse:
    """Courier status push: OUT_FOR_DELIVERY or DELIVERED."""
    result = handler.handle(body.awb, body.status, body.location)
    return CourierStatusResponse.from_update(result.order, result.shipment)
