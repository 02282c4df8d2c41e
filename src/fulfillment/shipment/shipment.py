"""Shipment aggregate — the courier's view of one order's parcel.

State Machine:
    SHIPPED → OUT_FOR_DELIVERY → DELIVERED

The shipment never moves on its own: every step is a courier status push,
and every step appends one history entry.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from fulfillment.domain import fulfillment
from fulfillment.shipment.events import ShipmentCreated, ShipmentStatusUpdated

WAREHOUSE_LOCATION = "Central Warehouse"


class ShipmentStatus(Enum):
    SHIPPED = "SHIPPED"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"


_VALID_TRANSITIONS = {
    ShipmentStatus.SHIPPED: {ShipmentStatus.OUT_FOR_DELIVERY},
    ShipmentStatus.OUT_FOR_DELIVERY: {ShipmentStatus.DELIVERED},
    ShipmentStatus.DELIVERED: set(),  # terminal
}


@fulfillment.entity(part_of="Shipment")
class ShipmentEvent:
    """One entry of the courier's tracking history."""

    status = String(required=True, max_length=50)
    location = String(max_length=200)
    timestamp = DateTime(required=True)
    sequence = Integer(required=True, min_value=1)


@fulfillment.aggregate
class Shipment:
    awb = String(required=True, max_length=50, unique=True)
    order_id = Identifier(required=True)
    carrier_name = String(required=True, max_length=100)
    status = String(choices=ShipmentStatus, default=ShipmentStatus.SHIPPED.value)
    location = String(max_length=200)
    history = HasMany(ShipmentEvent)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def book(cls, awb: str, order_id: str, carrier_name: str, location: str = WAREHOUSE_LOCATION):
        """Book a new shipment that has just left the warehouse."""
        now = datetime.now(UTC)
        shipment = cls(
            awb=awb,
            order_id=order_id,
            carrier_name=carrier_name,
            status=ShipmentStatus.SHIPPED.value,
            location=location,
            created_at=now,
            updated_at=now,
        )
        shipment._append_history(ShipmentStatus.SHIPPED, location, now)
        shipment.raise_(
            ShipmentCreated(
                shipment_id=str(shipment.id),
                order_id=order_id,
                awb=awb,
                carrier_name=carrier_name,
                created_at=now,
            )
        )
        return shipment

    @property
    def ordered_history(self) -> list:
        return sorted(self.history or [], key=lambda entry: entry.sequence)

    def can_advance_to(self, target_status: ShipmentStatus) -> bool:
        return target_status in _VALID_TRANSITIONS.get(ShipmentStatus(self.status), set())

    def advance(self, target_status: ShipmentStatus, location: str | None = None) -> None:
        """Record a courier status push."""
        current = ShipmentStatus(self.status)
        if not self.can_advance_to(target_status):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

        now = datetime.now(UTC)
        self.status = target_status.value
        self.location = location
        self.updated_at = now
        self._append_history(target_status, location, now)
        self.raise_(
            ShipmentStatusUpdated(
                shipment_id=str(self.id),
                order_id=str(self.order_id),
                awb=self.awb,
                previous_status=current.value,
                new_status=target_status.value,
                location=location,
                updated_at=now,
            )
        )

    def _append_history(self, status: ShipmentStatus, location: str | None, timestamp: datetime) -> None:
        self.add_history(
            ShipmentEvent(
                status=status.value,
                location=location,
                timestamp=timestamp,
                sequence=len(self.history or []) + 1,
            )
        )


@fulfillment.repository(part_of=Shipment)
class ShipmentRepository:
    """Lookups by the courier's natural keys."""

    def find_by_awb(self, awb: str) -> Shipment | None:
        return self._dao.query.filter(awb=awb).all().first

    def find_by_order(self, order_id: str) -> Shipment | None:
        return self._dao.query.filter(order_id=order_id).all().first

    def list_all(self) -> list[Shipment]:
        return self._dao.query.all().items
