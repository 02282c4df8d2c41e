"""Shipment adapter errors."""

from protean.exceptions import ObjectNotFoundError


class AdapterFailure(Exception):
    """The courier could not create or update a shipment."""


class ShipmentNotFound(ObjectNotFoundError):
    """No shipment exists for the given AWB or order."""
