"""Order Service — orchestration of placement, payment and seller transitions.

The service owns no infrastructure of its own: the payment gateway, the
courier and the transition applier are handed in at construction, so tests
and the HTTP layer can wire fakes or real adapters alike.
"""

from dataclasses import dataclass
from datetime import datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from fulfillment.carrier.port import CourierPort
from fulfillment.exceptions import AdapterFailure
from ordering.exceptions import InvalidTransition, Unauthorized
from ordering.order.order import SELLER_REQUESTABLE_STATUSES, Order, OrderStatus
from ordering.order.origins import Principal, SellerInitiated
from ordering.order.transitions import OrderTransitions, load_order
from payments.exceptions import InvalidSignature
from payments.gateway.port import PaymentGateway, PaymentIntent
from shared.settings import Settings

logger = structlog.get_logger(__name__)

_SHIPPED_STATUSES = {OrderStatus.SHIPPED, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED}


@dataclass(frozen=True)
class PaymentSession:
    """What a client needs to open the gateway's payment page."""

    order_id: str
    intent: PaymentIntent
    return_url: str


@dataclass(frozen=True)
class PaymentStatus:
    order_id: str
    is_paid: bool
    status: str
    paid_at: datetime | None


class OrderService:
    def __init__(
        self,
        gateway: PaymentGateway,
        courier: CourierPort,
        settings: Settings,
        transitions: OrderTransitions | None = None,
    ) -> None:
        self.gateway = gateway
        self.courier = courier
        self.settings = settings
        self.transitions = transitions or OrderTransitions()

    # -------------------------------------------------------------------
    # Placement and reads
    # -------------------------------------------------------------------
    def place_order(
        self,
        buyer: Principal,
        items: list[dict],
        shipping_address: dict,
        payment_method: str = "Razorpay",
        tax: float = 0.0,
        shipping: float = 0.0,
        items_total: float | None = None,
        grand_total: float | None = None,
    ) -> Order:
        order = Order.place(
            buyer_id=buyer.id,
            items_data=items,
            shipping_address=shipping_address,
            payment_method=payment_method,
            tax=tax,
            shipping=shipping,
            currency=self.settings.payment_currency,
            items_total=items_total,
            grand_total=grand_total,
        )
        current_domain.repository_for(Order).add(order)
        logger.info(
            "order_placed",
            order_id=str(order.id),
            buyer_id=buyer.id,
            item_count=len(order.items),
            grand_total=order.pricing.grand_total,
        )
        return order

    def get_order(self, order_id: str, actor: Principal) -> Order:
        """Return the order if ``actor`` bought it, sells in it, or is an admin."""
        order = load_order(order_id)
        if not (actor.is_admin or str(order.buyer_id) == actor.id or order.is_fulfilled_by(actor.id)):
            raise Unauthorized(f"Actor {actor.id} may not view order {order_id}")
        return order

    def get_orders_for_buyer(self, buyer_id: str) -> list[Order]:
        return current_domain.repository_for(Order).for_buyer(buyer_id)

    def get_orders_for_seller(self, seller_id: str) -> list[Order]:
        """Every order with at least one item sold by ``seller_id``."""
        return current_domain.repository_for(Order).for_seller(seller_id)

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def create_payment_intent(self, order_id: str, actor: Principal, client: str = "web") -> PaymentSession:
        """Open a gateway payment intent for the order's grand total."""
        with self.transitions.locks.hold(order_id):
            order = load_order(order_id)
            if not (actor.is_admin or str(order.buyer_id) == actor.id):
                raise Unauthorized(f"Actor {actor.id} may not pay for order {order_id}")
            if order.is_paid:
                raise ValidationError({"is_paid": ["Order is already paid"]})
            if order.current_status == OrderStatus.CANCELLED:
                raise ValidationError({"status": ["A cancelled order cannot be paid"]})

            intent = self.gateway.create_payment_intent(
                amount=order.pricing.grand_total,
                currency=order.pricing.currency or self.settings.payment_currency,
                receipt=f"receipt_{order_id}",
            )
            order.record_payment_reference(intent.gateway_order_id)
            current_domain.repository_for(Order).add(order)

        logger.info(
            "payment_intent_created",
            order_id=str(order_id),
            gateway_order_id=intent.gateway_order_id,
            amount=intent.amount,
            currency=intent.currency,
        )
        return PaymentSession(order_id=str(order_id), intent=intent, return_url=self.return_url(order_id, client))

    def verify_payment(
        self,
        order_id: str,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
        payer_email: str | None = None,
    ) -> Order:
        """Mark the order paid once the gateway's signature checks out.

        Idempotent: a repeated valid call returns the already-paid order.
        """
        if not self.gateway.verify_payment_signature(gateway_order_id, gateway_payment_id, signature):
            logger.warning(
                "payment_signature_rejected",
                order_id=str(order_id),
                gateway_order_id=gateway_order_id,
            )
            raise InvalidSignature("Payment signature verification failed")

        with self.transitions.locks.hold(order_id):
            order = load_order(order_id)
            if not order.issued_payment_reference(gateway_order_id):
                logger.warning(
                    "payment_reference_mismatch",
                    order_id=str(order_id),
                    expected=list(order.payment_references or []),
                    received=gateway_order_id,
                )
                raise InvalidSignature("Payment does not belong to this order")

            if not order.mark_paid(gateway_payment_id, payer_email=payer_email):
                logger.info("payment_already_recorded", order_id=str(order_id), payment_id=gateway_payment_id)
                return order

            current_domain.repository_for(Order).add(order)

        logger.info("order_paid", order_id=str(order_id), payment_id=gateway_payment_id)
        return order

    def check_payment_status(self, order_id: str) -> PaymentStatus:
        """Read-only poll used after the client returns from the payment page."""
        order = load_order(order_id)
        return PaymentStatus(
            order_id=str(order.id),
            is_paid=bool(order.is_paid),
            status=order.status,
            paid_at=order.paid_at,
        )

    # -------------------------------------------------------------------
    # Seller-driven fulfillment
    # -------------------------------------------------------------------
    def update_fulfillment_status(
        self,
        order_id: str,
        requested_status: str | OrderStatus,
        actor: Principal,
        description: str | None = None,
    ) -> Order:
        target = self._seller_requestable(requested_status)
        on_transition = self._book_shipment if target == OrderStatus.SHIPPED else None

        order = self.transitions.apply(
            order_id,
            target,
            SellerInitiated(actor=actor),
            description=description,
            on_transition=on_transition,
        )

        if target == OrderStatus.CANCELLED and order.is_paid:
            # No refund is triggered; finance picks these up from the log
            logger.warning(
                "paid_order_cancelled",
                order_id=str(order_id),
                actor_id=actor.id,
                grand_total=order.pricing.grand_total,
            )
        return order

    # -------------------------------------------------------------------
    # Shipment reconciliation
    # -------------------------------------------------------------------
    def find_unreconciled_shipments(self) -> list[Order]:
        """Shipped orders whose courier booking never succeeded."""
        candidates = current_domain.repository_for(Order).in_statuses(_SHIPPED_STATUSES)
        return [order for order in candidates if not (order.delivery and order.delivery.tracking_id)]

    def reconcile_shipment(self, order_id: str, actor: Principal) -> Order:
        """Retry the courier booking for a shipped order. Admin only.

        Unlike the SHIPPED transition, a courier failure here is raised.
        """
        if not actor.is_admin:
            raise Unauthorized("Only administrators can reconcile shipments")

        with self.transitions.locks.hold(order_id):
            order = load_order(order_id)
            if order.current_status not in _SHIPPED_STATUSES:
                raise ValidationError({"status": [f"Order in {order.status} has no shipment to reconcile"]})
            if order.delivery and order.delivery.tracking_id:
                return order

            handle = self.courier.create_shipment(str(order.id))
            order.attach_shipment(handle.awb, handle.carrier_name)
            current_domain.repository_for(Order).add(order)

        logger.info("shipment_reconciled", order_id=str(order_id), awb=handle.awb)
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _book_shipment(self, order: Order) -> None:
        try:
            handle = self.courier.create_shipment(str(order.id))
        except AdapterFailure as exc:
            # The seller's SHIPPED stands; find_unreconciled_shipments reports the gap
            logger.error(
                "shipment_creation_failed",
                order_id=str(order.id),
                error=str(exc),
                reconciliation_required=True,
            )
            return
        order.attach_shipment(handle.awb, handle.carrier_name)

    @staticmethod
    def _seller_requestable(requested_status: str | OrderStatus) -> OrderStatus:
        try:
            target = OrderStatus(requested_status)
        except ValueError:
            target = None
        if target not in SELLER_REQUESTABLE_STATUSES:
            requested = str(getattr(requested_status, "value", requested_status))
            raise InvalidTransition(None, requested, reason=f"Status {requested} cannot be requested by a seller")
        return target

    def return_url(self, order_id: str, client: str) -> str:
        if client == "mobile":
            return f"{self.settings.mobile_app_scheme}orders/{order_id}?payment=success"
        return f"{self.settings.web_app_url.rstrip('/')}/orders/{order_id}"
