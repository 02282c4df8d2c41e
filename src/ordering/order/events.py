"""Order domain events — immutable facts about order state changes."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A buyer placed an order; it awaits payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    item_count = Integer(required=True)
    grand_total = Float(required=True)
    currency = String(required=True, max_length=3)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    """The gateway-signed payment for an order was verified."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = String(required=True)
    grand_total = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along the fulfillment state machine."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    origin = String(required=True)  # seller | courier
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDispatched:
    """A courier shipment was attached to a shipped order."""

    __version__ = 1

    order_id = Identifier(required=True)
    tracking_id = String(required=True)
    carrier_name = String(required=True)
    dispatched_at = DateTime(required=True)
