"""Courier adapter factory — pluggable shipment adapter."""

from fulfillment.carrier.port import CourierPort
from fulfillment.carrier.simulated_adapter import SimulatedCourier
from shared.settings import Settings


def build_courier(settings: Settings) -> CourierPort:
    """Return the courier adapter selected by ``settings.courier_adapter``."""
    if settings.courier_adapter == "simulated":
        return SimulatedCourier(carrier_name=settings.courier_name)
    raise ValueError(f"Unknown courier adapter: {settings.courier_adapter}")
