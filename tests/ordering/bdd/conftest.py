"""Shared BDD fixtures and step definitions for the order lifecycle."""

import pytest
from ordering.order.order import Order
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def error():
    """Container for the exception raised by a When step."""
    return {"exc": None}


def _reload(order_id):
    return current_domain.repository_for(Order).get(order_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a placed order", target_fixture="order")
def _(placed_order):
    return placed_order


@given(parsers.cfparse('a placed order totalling {grand_total:g}'), target_fixture="order")
def _(service, buyer, items_data, shipping_address, grand_total):
    items = [
        {
            "product_id": "prod-bundle",
            "seller_id": "seller-stark",
            "name": "Avengers Bundle",
            "unit_price": grand_total,
            "quantity": 1,
        }
    ]
    return service.place_order(buyer, items, shipping_address, grand_total=grand_total)


@given(parsers.cfparse('the seller moved the order to "{statuses}"'), target_fixture="order")
def _(order, advance, statuses):
    return advance(str(order.id), *[status.strip() for status in statuses.split(",")])


@given("the order was shipped", target_fixture="order")
def _(order, advance):
    return advance(str(order.id), "CONFIRMED", "PACKED", "SHIPPED")


@given("the courier is unavailable")
def _(courier):
    courier.configure(should_succeed=False, failure_reason="Courier API timeout")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert _reload(order.id).status == status


@then("the order is paid")
def _(order):
    assert _reload(order.id).is_paid is True


@then("the order is not paid")
def _(order):
    assert _reload(order.id).is_paid is False


@then(parsers.cfparse('the timeline reads "{statuses}"'))
def _(order, statuses):
    expected = [status.strip() for status in statuses.split(",")]
    assert [entry.status for entry in _reload(order.id).ordered_timeline] == expected


@then(parsers.cfparse('the latest timeline entry says "{description}"'))
def _(order, description):
    assert _reload(order.id).ordered_timeline[-1].description == description


@then(parsers.cfparse("the request is rejected with {error_name}"))
def _(error, error_name):
    assert error["exc"] is not None
    assert type(error["exc"]).__name__ == error_name
