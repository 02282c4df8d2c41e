"""Courier status pushes, mirrored from the shipment onto the order.

The courier is authenticated upstream and trusted for the shipment-stage
edges, so there is no ownership check here. The order's edge is validated
before the shipment is touched: a rejected push leaves both untouched.
"""

from dataclasses import dataclass

import structlog

from fulfillment.carrier.port import CourierPort, ShipmentView
from ordering.exceptions import InvalidTransition
from ordering.order.order import COURIER_REPORTABLE_STATUSES, Order, OrderStatus
from ordering.order.origins import CourierInitiated
from ordering.order.transitions import OrderTransitions

logger = structlog.get_logger(__name__)

DEFAULT_LOCATION = "Transit"


@dataclass(frozen=True)
class CourierUpdateResult:
    order: Order
    shipment: ShipmentView


class CourierStatusHandler:
    def __init__(self, courier: CourierPort, transitions: OrderTransitions) -> None:
        self.courier = courier
        self.transitions = transitions

    def handle(self, awb: str, status: str | OrderStatus, location: str | None = None) -> CourierUpdateResult:
        """Record a courier status push on the shipment and its order."""
        target = self._courier_reportable(status)
        shipment = self.courier.track(awb)
        updated: list[ShipmentView] = []

        def record_on_shipment(_order: Order) -> None:
            updated.append(self.courier.update_shipment_status(awb, target.value, location))

        order = self.transitions.apply(
            shipment.order_id,
            target,
            CourierInitiated(awb=awb, location=location),
            description=f"Courier Update: {target.value} - {location or DEFAULT_LOCATION}",
            on_transition=record_on_shipment,
        )

        logger.info(
            "courier_status_applied",
            awb=awb,
            order_id=shipment.order_id,
            status=target.value,
            location=location,
        )
        return CourierUpdateResult(order=order, shipment=updated[0])

    @staticmethod
    def _courier_reportable(status: str | OrderStatus) -> OrderStatus:
        try:
            target = OrderStatus(status)
        except ValueError:
            target = None
        if target not in COURIER_REPORTABLE_STATUSES:
            requested = str(getattr(status, "value", status))
            raise InvalidTransition(None, requested, reason=f"Status {requested} cannot be reported by the courier")
        return target
