"""Ordering bounded context — Order Lifecycle and Fulfillment State Machine.

Handles order placement, payment verification, seller-driven fulfillment
(confirm, pack, ship, cancel) and the courier-driven delivery steps that
are pushed back onto the order. Orders are stored as current state; the
timeline on each order is its audit trail.
"""

from protean.domain import Domain

ordering = Domain(name="ordering")
