import pytest

from fulfillment.carrier.simulated_adapter import SimulatedCourier
from ordering.order.courier_updates import CourierStatusHandler
from ordering.order.origins import Principal, Role
from ordering.order.service import OrderService
from ordering.order.transitions import OrderTransitions
from payments.gateway.fake_adapter import FakeGateway
from shared.settings import Settings

SELLER_ID = "seller-stark"
OTHER_SELLER_ID = "seller-hammer"
BUYER_ID = "buyer-rogers"


def order_items(seller_id=SELLER_ID):
    return [
        {
            "product_id": "prod-shield",
            "seller_id": seller_id,
            "name": "Vibranium Shield",
            "unit_price": 60.0,
            "quantity": 1,
            "image": "https://cdn.example.com/shield.png",
        },
        {
            "product_id": "prod-helmet",
            "seller_id": seller_id,
            "name": "Stealth Helmet",
            "unit_price": 20.0,
            "quantity": 2,
        },
    ]


SHIPPING_ADDRESS = {
    "full_name": "Steve Rogers",
    "street": "569 Leaman Place",
    "city": "Brooklyn",
    "postal_code": "11201",
    "country": "US",
    "phone": "+1-555-0100",
}


@pytest.fixture(autouse=True)
def _ctx(ordering_bed, fulfillment_bed):
    with fulfillment_bed.domain_context():
        with ordering_bed.domain_context():
            yield


@pytest.fixture()
def settings():
    return Settings(
        _env_file=None,
        protean_env="test",
        courier_api_token="courier-token",
        fake_gateway_secret="test-gateway-secret",
        web_app_url="https://shop.example.com",
        mobile_app_scheme="marketplace://",
    )


@pytest.fixture()
def gateway(settings):
    return FakeGateway(secret=settings.fake_gateway_secret)


@pytest.fixture()
def courier():
    return SimulatedCourier()


@pytest.fixture()
def transitions():
    return OrderTransitions()


@pytest.fixture()
def service(gateway, courier, settings, transitions):
    return OrderService(gateway, courier, settings, transitions)


@pytest.fixture()
def courier_handler(courier, transitions):
    return CourierStatusHandler(courier, transitions)


@pytest.fixture()
def buyer():
    return Principal(id=BUYER_ID, role=Role.BUYER)


@pytest.fixture()
def seller():
    return Principal(id=SELLER_ID, role=Role.SELLER)


@pytest.fixture()
def other_seller():
    return Principal(id=OTHER_SELLER_ID, role=Role.SELLER)


@pytest.fixture()
def admin():
    return Principal(id="admin-fury", role=Role.ADMIN)


@pytest.fixture()
def items_data():
    """Factory for line item snapshots sold by one seller."""
    return order_items


@pytest.fixture()
def shipping_address():
    return dict(SHIPPING_ADDRESS)


@pytest.fixture()
def placed_order(service, buyer):
    return service.place_order(buyer, order_items(), SHIPPING_ADDRESS)


@pytest.fixture()
def advance(service, seller):
    """Walk an order through seller transitions: ``advance(order_id, "CONFIRMED", "PACKED")``."""

    def _advance(order_id, *statuses):
        order = None
        for status in statuses:
            order = service.update_fulfillment_status(order_id, status, seller)
        return order

    return _advance
