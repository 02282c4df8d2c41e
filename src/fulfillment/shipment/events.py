"""Shipment domain events."""

from protean.fields import DateTime, Identifier, String

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Shipment")
class ShipmentCreated:
    """A courier shipment was booked for an order."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    awb = String(required=True)
    carrier_name = String(required=True)
    created_at = DateTime(required=True)


@fulfillment.event(part_of="Shipment")
class ShipmentStatusUpdated:
    """The courier reported a new status for a shipment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    awb = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    location = String()
    updated_at = DateTime(required=True)
