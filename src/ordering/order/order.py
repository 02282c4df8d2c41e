"""Order aggregate — the core of the ordering domain.

An order is placed unpaid, paid exactly once through the gateway-signed
verification path, then walked through the fulfillment pipeline. Each edge
of the pipeline belongs to one kind of originator: the seller drives the
order up to SHIPPED, the courier drives it from there to DELIVERED.

State Machine:
    PLACED → CONFIRMED → PACKED → SHIPPED          (seller-originated)
    SHIPPED → OUT_FOR_DELIVERY → DELIVERED         (courier-originated)
    {PLACED, CONFIRMED, PACKED} → CANCELLED        (seller-originated)

Payment is orthogonal to the state machine: ``is_paid`` flips once from
False to True and a cancelled order keeps whatever value it had.

Every status change appends exactly one timeline entry in the same mutation.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    List,
    String,
    ValueObject,
)

from ordering.domain import ordering
from ordering.exceptions import InvalidTransition
from ordering.order.events import OrderDispatched, OrderPaid, OrderPlaced, OrderStatusChanged

PRICE_TOLERANCE = 0.01


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PLACED = "PLACED"
    CONFIRMED = "CONFIRMED"
    PACKED = "PACKED"
    SHIPPED = "SHIPPED"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OriginKind(Enum):
    SELLER = "seller"
    COURIER = "courier"


# Timeline status recorded when payment is verified. Not a fulfillment state.
PAID_TIMELINE_STATUS = "PAID"

# Source -> {target: originator allowed to drive the edge}
_TRANSITIONS = {
    OrderStatus.PLACED: {
        OrderStatus.CONFIRMED: OriginKind.SELLER,
        OrderStatus.CANCELLED: OriginKind.SELLER,
    },
    OrderStatus.CONFIRMED: {
        OrderStatus.PACKED: OriginKind.SELLER,
        OrderStatus.CANCELLED: OriginKind.SELLER,
    },
    OrderStatus.PACKED: {
        OrderStatus.SHIPPED: OriginKind.SELLER,
        OrderStatus.CANCELLED: OriginKind.SELLER,
    },
    OrderStatus.SHIPPED: {OrderStatus.OUT_FOR_DELIVERY: OriginKind.COURIER},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED: OriginKind.COURIER},
    OrderStatus.DELIVERED: {},  # terminal
    OrderStatus.CANCELLED: {},  # terminal
}

# Statuses a seller may request directly
SELLER_REQUESTABLE_STATUSES = frozenset(
    {
        OrderStatus.CONFIRMED,
        OrderStatus.PACKED,
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
    }
)

# Statuses a courier may push
COURIER_REPORTABLE_STATUSES = frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED})

TERMINAL_STATUSES = frozenset(status for status, targets in _TRANSITIONS.items() if not targets)

_DEFAULT_DESCRIPTIONS = {
    OrderStatus.CONFIRMED: "Order confirmed by seller",
    OrderStatus.PACKED: "Order packed and ready for dispatch",
    OrderStatus.SHIPPED: "Order handed over to the courier",
    OrderStatus.OUT_FOR_DELIVERY: "Order is out for delivery",
    OrderStatus.DELIVERED: "Order delivered",
    OrderStatus.CANCELLED: "Order cancelled by seller",
}


def permitted_targets(status: OrderStatus, origin_kind: OriginKind | None = None) -> set[OrderStatus]:
    """Statuses reachable from ``status``, optionally only those ``origin_kind`` may drive."""
    edges = _TRANSITIONS.get(status, {})
    return {target for target, kind in edges.items() if origin_kind is None or kind == origin_kind}


def is_permitted(source: OrderStatus, target: OrderStatus, origin_kind: OriginKind) -> bool:
    return _TRANSITIONS.get(source, {}).get(target) == origin_kind


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Destination captured at checkout.

    A copy, not a reference: later edits to the buyer's address book never
    reach an order that has already been placed.
    """

    full_name = String(required=True, max_length=150)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=30)


@ordering.value_object(part_of="Order")
class OrderPricing:
    """Totals locked at checkout."""

    items_total = Float(required=True, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    grand_total = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")

    @invariant.post
    def grand_total_must_add_up(self):
        expected = self.items_total + (self.tax or 0.0) + (self.shipping or 0.0)
        if abs(self.grand_total - expected) > PRICE_TOLERANCE:
            raise ValidationError(
                {"grand_total": [f"Grand total {self.grand_total:.2f} does not match computed {expected:.2f}"]}
            )


@ordering.value_object(part_of="Order")
class PaymentReceipt:
    """Gateway confirmation of a settled payment."""

    external_id = String(required=True, max_length=255)
    status = String(max_length=50)
    settled_at = DateTime()
    payer_email = String(max_length=255)


@ordering.value_object(part_of="Order")
class DeliveryInfo:
    """Courier details, populated once the order has been shipped."""

    tracking_id = String(max_length=50)
    carrier_name = String(max_length=100)
    is_delivered = Boolean(default=False)
    delivered_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A product snapshot taken when the order was placed.

    Name, price and image are copied from the catalogue so that later edits
    or deletions of the product leave the order untouched. ``seller_id`` is
    the product's owner at order time.
    """

    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image = String(max_length=500)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@ordering.entity(part_of="Order")
class TimelineEntry:
    """One audit-log line on the order. Never edited or removed."""

    status = String(required=True, max_length=50)
    description = String(required=True, max_length=500)
    timestamp = DateTime(required=True)
    sequence = Integer(required=True, min_value=1)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    buyer_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PLACED.value)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress, required=True)
    pricing = ValueObject(OrderPricing, required=True)
    payment_method = String(max_length=50, default="Razorpay")
    payment_reference = String(max_length=255)  # gateway order id of the latest intent
    payment_references = List(String(max_length=255))  # every intent issued, oldest first
    is_paid = Boolean(default=False)
    paid_at = DateTime()
    payment_receipt = ValueObject(PaymentReceipt)
    delivery = ValueObject(DeliveryInfo)
    timeline = HasMany(TimelineEntry)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        buyer_id: str,
        items_data: list[dict],
        shipping_address: dict,
        payment_method: str = "Razorpay",
        tax: float = 0.0,
        shipping: float = 0.0,
        currency: str = "INR",
        items_total: float | None = None,
        grand_total: float | None = None,
    ):
        """Place a new, unpaid order.

        ``items_total`` and ``grand_total`` are the totals the client
        displayed; when given they must agree with the totals computed here
        from the item snapshots.
        """
        if not items_data:
            raise ValidationError({"items": ["An order must contain at least one item"]})

        items = [OrderItem(**item_data) for item_data in items_data]
        computed_items_total = round(sum(item.line_total for item in items), 2)
        computed_grand_total = round(computed_items_total + tax + shipping, 2)

        if items_total is not None and abs(items_total - computed_items_total) > PRICE_TOLERANCE:
            raise ValidationError(
                {"items_total": [f"Items total {items_total:.2f} does not match computed {computed_items_total:.2f}"]}
            )
        if grand_total is not None and abs(grand_total - computed_grand_total) > PRICE_TOLERANCE:
            raise ValidationError(
                {"grand_total": [f"Grand total {grand_total:.2f} does not match computed {computed_grand_total:.2f}"]}
            )

        now = datetime.now(UTC)
        order = cls(
            buyer_id=buyer_id,
            status=OrderStatus.PLACED.value,
            shipping_address=ShippingAddress(**shipping_address),
            pricing=OrderPricing(
                items_total=computed_items_total,
                tax=tax,
                shipping=shipping,
                grand_total=computed_grand_total,
                currency=currency,
            ),
            payment_method=payment_method,
            is_paid=False,
            delivery=DeliveryInfo(is_delivered=False),
            created_at=now,
            updated_at=now,
        )
        for item in items:
            order.add_items(item)
        order._append_timeline(OrderStatus.PLACED.value, "Order placed, awaiting payment", now)
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                buyer_id=str(buyer_id),
                item_count=len(items),
                grand_total=computed_grand_total,
                currency=currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def ordered_timeline(self) -> list:
        return sorted(self.timeline or [], key=lambda entry: entry.sequence)

    def is_fulfilled_by(self, seller_id: str) -> bool:
        """True when ``seller_id`` owns at least one product in the order."""
        return any(str(item.seller_id) == str(seller_id) for item in self.items or [])

    def can_transition(self, target_status: OrderStatus, origin_kind: OriginKind) -> bool:
        return is_permitted(self.current_status, target_status, origin_kind)

    # -------------------------------------------------------------------
    # Fulfillment state machine
    # -------------------------------------------------------------------
    def transition_to(
        self,
        target_status: OrderStatus,
        origin_kind: OriginKind,
        description: str | None = None,
    ) -> None:
        """Move to ``target_status`` and record it on the timeline.

        Raises ``InvalidTransition`` and leaves the order untouched when the
        edge is not in the table or belongs to the other kind of originator.
        """
        current = self.current_status
        if not is_permitted(current, target_status, origin_kind):
            raise InvalidTransition(current.value, target_status.value)

        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now
        if target_status == OrderStatus.DELIVERED:
            self.delivery = self._delivery_with(is_delivered=True, delivered_at=now)

        self._append_timeline(
            target_status.value,
            description or _DEFAULT_DESCRIPTIONS[target_status],
            now,
        )
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target_status.value,
                origin=origin_kind.value,
                changed_at=now,
            )
        )

    def attach_shipment(self, tracking_id: str, carrier_name: str) -> None:
        """Copy the courier's tracking details onto the order."""
        if self.current_status not in (OrderStatus.SHIPPED, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED):
            raise ValidationError({"delivery": ["A shipment can only be attached to a shipped order"]})

        now = datetime.now(UTC)
        self.delivery = self._delivery_with(tracking_id=tracking_id, carrier_name=carrier_name)
        self.updated_at = now
        self.raise_(
            OrderDispatched(
                order_id=str(self.id),
                tracking_id=tracking_id,
                carrier_name=carrier_name,
                dispatched_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment_reference(self, gateway_order_id: str) -> None:
        """Remember the gateway order id issued for this order's payment intent."""
        if self.is_paid:
            raise ValidationError({"is_paid": ["Order is already paid"]})
        if self.current_status == OrderStatus.CANCELLED:
            raise ValidationError({"status": ["A cancelled order cannot be paid"]})

        self.payment_reference = gateway_order_id
        self.payment_references = [*(self.payment_references or []), gateway_order_id]
        self.updated_at = datetime.now(UTC)

    def issued_payment_reference(self, gateway_order_id: str) -> bool:
        """True when ``gateway_order_id`` is one of this order's intents.

        An order that never recorded an intent accepts any reference.
        """
        issued = list(self.payment_references or [])
        if self.payment_reference and self.payment_reference not in issued:
            issued.append(self.payment_reference)
        return not issued or gateway_order_id in issued

    def mark_paid(self, payment_id: str, payer_email: str | None = None, gateway_status: str = "captured") -> bool:
        """Flip ``is_paid`` once.

        Returns False, changing nothing, when the order was already paid.
        """
        if self.is_paid:
            return False

        now = datetime.now(UTC)
        self.is_paid = True
        self.paid_at = now
        self.payment_receipt = PaymentReceipt(
            external_id=payment_id,
            status=gateway_status,
            settled_at=now,
            payer_email=payer_email,
        )
        self.updated_at = now
        self._append_timeline(PAID_TIMELINE_STATUS, "Payment verified successfully", now)
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                payment_id=payment_id,
                grand_total=self.pricing.grand_total,
                paid_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _append_timeline(self, status: str, description: str, timestamp: datetime) -> None:
        self.add_timeline(
            TimelineEntry(
                status=status,
                description=description,
                timestamp=timestamp,
                sequence=len(self.timeline or []) + 1,
            )
        )

    def _delivery_with(self, **changes) -> DeliveryInfo:
        current = self.delivery
        values = {
            "tracking_id": current.tracking_id if current else None,
            "carrier_name": current.carrier_name if current else None,
            "is_delivered": current.is_delivered if current else False,
            "delivered_at": current.delivered_at if current else None,
        }
        values.update(changes)
        return DeliveryInfo(**values)


@ordering.repository(part_of=Order)
class OrderRepository:
    """Read-side lookups for buyers, sellers and reconciliation."""

    # Queries default to the aggregate's page size; ``limit(None)`` must come
    # last since every further clone restores that default.
    def for_buyer(self, buyer_id: str) -> list[Order]:
        return self._dao.query.filter(buyer_id=buyer_id).order_by("-created_at").limit(None).all().items

    def for_seller(self, seller_id: str) -> list[Order]:
        # Derived from item snapshots; sellers are not stored on the order itself
        orders = self._dao.query.order_by("-created_at").limit(None).all().items
        return [order for order in orders if order.is_fulfilled_by(seller_id)]

    def in_statuses(self, statuses: set[OrderStatus]) -> list[Order]:
        values = [status.value for status in statuses]
        return self._dao.query.filter(status__in=values).limit(None).all().items
