"""Courier port — abstract interface for the shipment adapter.

The ordering context programs against this port; the simulated courier and
any real courier integration are swapped via configuration. Results are
plain immutable records so callers never hold the courier's own aggregates.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ShipmentHandle:
    """What the order needs to know about a booked shipment."""

    awb: str
    carrier_name: str


@dataclass(frozen=True)
class TrackingEntry:
    status: str
    location: str | None
    timestamp: datetime


@dataclass(frozen=True)
class ShipmentView:
    """Read-only snapshot of a shipment and its tracking history."""

    awb: str
    order_id: str
    carrier_name: str
    status: str
    location: str | None
    history: tuple[TrackingEntry, ...] = field(default_factory=tuple)

    @property
    def handle(self) -> ShipmentHandle:
        return ShipmentHandle(awb=self.awb, carrier_name=self.carrier_name)


class CourierPort(ABC):
    """Abstract interface for courier adapters."""

    @abstractmethod
    def create_shipment(self, order_id: str) -> ShipmentHandle:
        """Book a shipment for ``order_id``.

        Idempotent per order: a second call returns the existing shipment's
        handle. Raises ``AdapterFailure`` when the courier cannot book it.
        """
        ...

    @abstractmethod
    def update_shipment_status(self, awb: str, status: str, location: str | None) -> ShipmentView:
        """Append a courier status push to the shipment history.

        Raises ``ShipmentNotFound`` for an unknown AWB and ``ValidationError``
        when the status does not follow the shipment's current one.
        """
        ...

    @abstractmethod
    def track(self, awb: str) -> ShipmentView:
        """Return the shipment for ``awb`` or raise ``ShipmentNotFound``."""
        ...

    @abstractmethod
    def find_by_order(self, order_id: str) -> ShipmentView | None:
        """Return the shipment booked for ``order_id``, if any."""
        ...

    @abstractmethod
    def list_shipments(self) -> list[ShipmentView]:
        """Return every shipment known to the courier."""
        ...
