import pytest
from fastapi.testclient import TestClient

from app import create_app


@pytest.fixture()
def app(settings, gateway, courier):
    return create_app(settings, gateway=gateway, courier=courier)


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def as_user():
    """Headers the auth gateway forwards: ``as_user("seller-stark", "seller")``."""

    def _headers(user_id, role="buyer"):
        return {"X-User-Id": user_id, "X-User-Role": role}

    return _headers


@pytest.fixture()
def courier_auth():
    return {"Authorization": "Bearer courier-token"}


@pytest.fixture()
def order_payload(items_data, shipping_address):
    return {
        "items": items_data(),
        "shipping_address": shipping_address,
        "payment_method": "Razorpay",
        "tax": 0.0,
        "shipping": 0.0,
        "grand_total": 100.0,
    }


@pytest.fixture()
def api_order(client, as_user, buyer, order_payload):
    """Place an order over HTTP and return its id."""
    response = client.post("/orders", json=order_payload, headers=as_user(buyer.id))
    assert response.status_code == 201
    return response.json()["order_id"]


@pytest.fixture()
def set_status(client, as_user, seller):
    def _set(order_id, *statuses):
        response = None
        for status in statuses:
            response = client.put(
                f"/orders/{order_id}/status",
                json={"status": status},
                headers=as_user(seller.id, "seller"),
            )
            assert response.status_code == 200, response.text
        return response

    return _set
