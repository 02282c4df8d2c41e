"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer): malformed payloads are
rejected here, before anything reaches the order state machine.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from fulfillment.carrier.port import ShipmentView
from ordering.order.order import Order
from ordering.order.service import PaymentSession, PaymentStatus

SellerStatus = Literal["CONFIRMED", "PACKED", "SHIPPED", "CANCELLED"]
CourierStatus = Literal["OUT_FOR_DELIVERY", "DELIVERED"]


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class OrderItemSchema(BaseModel):
    product_id: str
    seller_id: str
    name: str = Field(min_length=1, max_length=255)
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    image: str | None = None


class ShippingAddressSchema(BaseModel):
    full_name: str = Field(min_length=1, max_length=150)
    street: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=100)
    phone: str | None = None


class PricingSchema(BaseModel):
    items_total: float
    tax: float
    shipping: float
    grand_total: float
    currency: str


class PaymentReceiptSchema(BaseModel):
    external_id: str
    status: str | None = None
    settled_at: datetime | None = None
    payer_email: str | None = None


class DeliverySchema(BaseModel):
    tracking_id: str | None = None
    carrier_name: str | None = None
    is_delivered: bool = False
    delivered_at: datetime | None = None


class TimelineEntrySchema(BaseModel):
    status: str
    description: str
    timestamp: datetime


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    items: list[OrderItemSchema] = Field(min_length=1)
    shipping_address: ShippingAddressSchema
    payment_method: str = "Razorpay"
    tax: float = Field(default=0.0, ge=0)
    shipping: float = Field(default=0.0, ge=0)
    items_total: float | None = Field(default=None, ge=0)
    grand_total: float | None = Field(default=None, ge=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {
                            "product_id": "prod-001",
                            "seller_id": "seller-001",
                            "name": "Mjolnir Replica",
                            "unit_price": 100.0,
                            "quantity": 1,
                        }
                    ],
                    "shipping_address": {
                        "full_name": "Steve Rogers",
                        "street": "569 Leaman Place",
                        "city": "Brooklyn",
                        "postal_code": "11201",
                        "country": "US",
                    },
                    "tax": 0.0,
                    "shipping": 0.0,
                    "grand_total": 100.0,
                }
            ]
        }
    }


class UpdateStatusRequest(BaseModel):
    status: SellerStatus
    description: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Payment Request Schemas
# ---------------------------------------------------------------------------
class CreatePaymentIntentRequest(BaseModel):
    order_id: str
    client: Literal["web", "mobile"] = "web"


class VerifyPaymentRequest(BaseModel):
    order_id: str
    gateway_order_id: str = Field(min_length=1)
    gateway_payment_id: str = Field(min_length=1)
    signature: str = Field(min_length=1)
    payer_email: str | None = None


# ---------------------------------------------------------------------------
# Courier Request Schemas
# ---------------------------------------------------------------------------
class CourierStatusRequest(BaseModel):
    awb: str = Field(min_length=1)
    status: CourierStatus
    location: str | None = Field(default=None, max_length=200)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    order_id: str
    buyer_id: str
    status: str
    items: list[OrderItemSchema]
    shipping_address: ShippingAddressSchema
    pricing: PricingSchema
    payment_method: str | None = None
    is_paid: bool
    paid_at: datetime | None = None
    payment_receipt: PaymentReceiptSchema | None = None
    delivery: DeliverySchema
    timeline: list[TimelineEntrySchema]
    created_at: datetime | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        receipt = order.payment_receipt
        delivery = order.delivery
        return cls(
            order_id=str(order.id),
            buyer_id=str(order.buyer_id),
            status=order.status,
            items=[
                OrderItemSchema(
                    product_id=str(item.product_id),
                    seller_id=str(item.seller_id),
                    name=item.name,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    image=item.image,
                )
                for item in order.items
            ],
            shipping_address=ShippingAddressSchema(
                full_name=order.shipping_address.full_name,
                street=order.shipping_address.street,
                city=order.shipping_address.city,
                postal_code=order.shipping_address.postal_code,
                country=order.shipping_address.country,
                phone=order.shipping_address.phone,
            ),
            pricing=PricingSchema(
                items_total=order.pricing.items_total,
                tax=order.pricing.tax or 0.0,
                shipping=order.pricing.shipping or 0.0,
                grand_total=order.pricing.grand_total,
                currency=order.pricing.currency,
            ),
            payment_method=order.payment_method,
            is_paid=bool(order.is_paid),
            paid_at=order.paid_at,
            payment_receipt=(
                PaymentReceiptSchema(
                    external_id=receipt.external_id,
                    status=receipt.status,
                    settled_at=receipt.settled_at,
                    payer_email=receipt.payer_email,
                )
                if receipt
                else None
            ),
            delivery=DeliverySchema(
                tracking_id=delivery.tracking_id if delivery else None,
                carrier_name=delivery.carrier_name if delivery else None,
                is_delivered=bool(delivery and delivery.is_delivered),
                delivered_at=delivery.delivered_at if delivery else None,
            ),
            timeline=[
                TimelineEntrySchema(status=entry.status, description=entry.description, timestamp=entry.timestamp)
                for entry in order.ordered_timeline
            ],
            created_at=order.created_at,
        )


class OrderIdResponse(BaseModel):
    order_id: str
    status: str
    grand_total: float


class PaymentIntentResponse(BaseModel):
    order_id: str
    gateway_order_id: str
    amount: int
    currency: str
    key_id: str | None = None
    return_url: str

    @classmethod
    def from_session(cls, session: PaymentSession) -> "PaymentIntentResponse":
        return cls(
            order_id=session.order_id,
            gateway_order_id=session.intent.gateway_order_id,
            amount=session.intent.amount,
            currency=session.intent.currency,
            key_id=session.intent.key_id,
            return_url=session.return_url,
        )


class PaymentStatusResponse(BaseModel):
    order_id: str
    is_paid: bool
    status: str
    paid_at: datetime | None = None

    @classmethod
    def from_status(cls, payment_status: PaymentStatus) -> "PaymentStatusResponse":
        return cls(
            order_id=payment_status.order_id,
            is_paid=payment_status.is_paid,
            status=payment_status.status,
            paid_at=payment_status.paid_at,
        )


class CourierStatusResponse(BaseModel):
    awb: str
    order_id: str
    shipment_status: str
    order_status: str
    is_delivered: bool
    history_length: int

    @classmethod
    def from_update(cls, order: Order, shipment: ShipmentView) -> "CourierStatusResponse":
        return cls(
            awb=shipment.awb,
            order_id=str(order.id),
            shipment_status=shipment.status,
            order_status=order.status,
            is_delivered=bool(order.delivery and order.delivery.is_delivered),
            history_length=len(shipment.history),
        )
