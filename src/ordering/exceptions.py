"""Errors surfaced by the ordering context.

Every one of them is raised before any state is persisted.
"""

from protean.exceptions import ObjectNotFoundError


class OrderNotFound(ObjectNotFoundError):
    """No order exists with the given id."""


class InvalidTransition(Exception):
    """The requested status is not reachable from the order's current status."""

    def __init__(self, current: str | None, requested: str, reason: str | None = None) -> None:
        self.current = current
        self.requested = requested
        message = reason or f"Cannot transition from {current} to {requested}"
        super().__init__(message)


class Unauthorized(Exception):
    """The acting principal may not perform the operation on this order."""
