"""Fulfillment bounded context — Courier Shipments.

Owns the shipment record kept with the courier partner: the airway bill
(AWB), the carrier's current status and its append-only tracking history.
Shipments are created when a seller marks an order shipped and advanced by
courier status pushes; the ordering context mirrors those pushes onto the
order.
"""

from protean.domain import Domain

fulfillment = Domain(name="fulfillment")
