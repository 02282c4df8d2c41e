"""FastAPI routes for courier shipments."""

from fastapi import APIRouter, Depends, HTTPException, Request

from fulfillment.api.dependencies import get_courier, require_courier
from fulfillment.api.schemas import ConfigureCourierRequest, CourierConfigResponse, ShipmentResponse
from fulfillment.carrier.port import CourierPort
from fulfillment.carrier.simulated_adapter import SimulatedCourier

shipment_router = APIRouter(prefix="/courier", tags=["courier"])


@shipment_router.get(
    "/shipments",
    response_model=list[ShipmentResponse],
    dependencies=[Depends(require_courier)],
)
async def list_shipments(courier: CourierPort = Depends(get_courier)) -> list[ShipmentResponse]:
    """Every shipment booked with the courier."""
    return [ShipmentResponse.from_view(shipment) for shipment in courier.list_shipments()]


@shipment_router.get("/track/{awb}", response_model=ShipmentResponse)
async def track_shipment(awb: str, courier: CourierPort = Depends(get_courier)) -> ShipmentResponse:
    """Public tracking page data for an AWB."""
    return ShipmentResponse.from_view(courier.track(awb))


@shipment_router.post("/configure", response_model=CourierConfigResponse)
async def configure_courier(
    body: ConfigureCourierRequest,
    request: Request,
    courier: CourierPort = Depends(get_courier),
) -> CourierConfigResponse:
    """Configure the simulated courier's booking behavior (non-production only)."""
    if request.app.state.settings.is_production:
        raise HTTPException(status_code=403, detail="Courier configuration not available in production")
    if not isinstance(courier, SimulatedCourier):
        raise HTTPException(status_code=400, detail="Courier configuration only available for SimulatedCourier")

    courier.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return CourierConfigResponse(
        courier=type(courier).__name__,
        should_succeed=courier.should_succeed,
        failure_reason=courier.failure_reason,
    )
