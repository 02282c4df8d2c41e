"""Pydantic request/response schemas for the courier-facing Shipment API."""

from datetime import datetime

from pydantic import BaseModel

from fulfillment.carrier.port import ShipmentView


class TrackingEntrySchema(BaseModel):
    status: str
    location: str | None = None
    timestamp: datetime


class ShipmentResponse(BaseModel):
    awb: str
    order_id: str
    carrier_name: str
    status: str
    location: str | None = None
    history: list[TrackingEntrySchema]

    @classmethod
    def from_view(cls, shipment: ShipmentView) -> "ShipmentResponse":
        return cls(
            awb=shipment.awb,
            order_id=shipment.order_id,
            carrier_name=shipment.carrier_name,
            status=shipment.status,
            location=shipment.location,
            history=[
                TrackingEntrySchema(status=entry.status, location=entry.location, timestamp=entry.timestamp)
                for entry in shipment.history
            ],
        )


class ConfigureCourierRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Courier unavailable"


class CourierConfigResponse(BaseModel):
    courier: str
    should_succeed: bool
    failure_reason: str
