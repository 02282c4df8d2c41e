"""Simulated courier — books shipments in the fulfillment domain's own store.

Stands in for a courier partner's API. AWBs look like the partner's
(``IMP-`` followed by eight digits) and every booking starts at the central
warehouse. Booking can be made to fail for testing the SHIPPED path:

    courier.configure(should_succeed=False, failure_reason="Courier API timeout")
"""

import random
import threading
from collections.abc import Callable

import structlog
from protean.exceptions import ValidationError

from fulfillment.carrier.port import CourierPort, ShipmentHandle, ShipmentView, TrackingEntry
from fulfillment.domain import fulfillment
from fulfillment.exceptions import AdapterFailure, ShipmentNotFound
from fulfillment.shipment.shipment import Shipment, ShipmentStatus

logger = structlog.get_logger(__name__)

_MAX_AWB_ATTEMPTS = 5


def generate_awb() -> str:
    return f"IMP-{random.randint(10_000_000, 99_999_999)}"


def _to_view(shipment: Shipment) -> ShipmentView:
    return ShipmentView(
        awb=shipment.awb,
        order_id=str(shipment.order_id),
        carrier_name=shipment.carrier_name,
        status=shipment.status,
        location=shipment.location,
        history=tuple(
            TrackingEntry(status=entry.status, location=entry.location, timestamp=entry.timestamp)
            for entry in shipment.ordered_history
        ),
    )


class SimulatedCourier(CourierPort):
    """Courier adapter backed by the fulfillment domain's repository."""

    def __init__(
        self,
        carrier_name: str = "Imperial Express",
        awb_factory: Callable[[], str] = generate_awb,
    ) -> None:
        self.carrier_name = carrier_name
        self.awb_factory = awb_factory
        self.should_succeed = True
        self.failure_reason = "Courier unavailable"
        self.calls: list[dict] = []
        self._booking_lock = threading.Lock()

    def configure(self, should_succeed: bool = True, failure_reason: str = "Courier unavailable") -> None:
        """Configure booking behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_shipment(self, order_id: str) -> ShipmentHandle:
        self.calls.append({"method": "create_shipment", "order_id": order_id})
        if not self.should_succeed:
            raise AdapterFailure(self.failure_reason)

        with self._booking_lock, fulfillment.domain_context():
            repo = fulfillment.repository_for(Shipment)
            existing = repo.find_by_order(order_id)
            if existing is not None:
                return ShipmentHandle(awb=existing.awb, carrier_name=existing.carrier_name)

            shipment = Shipment.book(
                awb=self._unused_awb(repo),
                order_id=order_id,
                carrier_name=self.carrier_name,
            )
            repo.add(shipment)

        logger.info("shipment_created", order_id=order_id, awb=shipment.awb, carrier=self.carrier_name)
        return ShipmentHandle(awb=shipment.awb, carrier_name=shipment.carrier_name)

    def update_shipment_status(self, awb: str, status: str, location: str | None) -> ShipmentView:
        self.calls.append({"method": "update_shipment_status", "awb": awb, "status": status})
        try:
            target = ShipmentStatus(status)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown shipment status: {status}"]}) from exc

        with fulfillment.domain_context():
            repo = fulfillment.repository_for(Shipment)
            shipment = repo.find_by_awb(awb)
            if shipment is None:
                raise ShipmentNotFound(f"Shipment {awb} not found")

            shipment.advance(target, location)
            repo.add(shipment)
            return _to_view(shipment)

    def track(self, awb: str) -> ShipmentView:
        with fulfillment.domain_context():
            shipment = fulfillment.repository_for(Shipment).find_by_awb(awb)
            if shipment is None:
                raise ShipmentNotFound(f"Shipment {awb} not found")
            return _to_view(shipment)

    def find_by_order(self, order_id: str) -> ShipmentView | None:
        with fulfillment.domain_context():
            shipment = fulfillment.repository_for(Shipment).find_by_order(order_id)
            return _to_view(shipment) if shipment is not None else None

    def list_shipments(self) -> list[ShipmentView]:
        with fulfillment.domain_context():
            return [_to_view(shipment) for shipment in fulfillment.repository_for(Shipment).list_all()]

    def _unused_awb(self, repo) -> str:
        for _ in range(_MAX_AWB_ATTEMPTS):
            awb = self.awb_factory()
            if repo.find_by_awb(awb) is None:
                return awb
        raise AdapterFailure("Could not allocate a unique AWB")
