import pytest
from fulfillment.exceptions import AdapterFailure
from ordering.exceptions import Unauthorized
from ordering.order.order import Order
from protean import current_domain
from protean.exceptions import ValidationError


def _reload(order_id):
    return current_domain.repository_for(Order).get(order_id)


@pytest.fixture()
def unbooked_order(placed_order, advance, courier):
    """A SHIPPED order whose courier booking failed."""
    order_id = str(placed_order.id)
    advance(order_id, "CONFIRMED", "PACKED")
    courier.configure(should_succeed=False, failure_reason="Courier API timeout")
    order = advance(order_id, "SHIPPED")
    courier.configure(should_succeed=True)
    return order


class TestFindUnreconciled:
    def test_lists_shipped_orders_without_tracking(self, service, unbooked_order):
        found = service.find_unreconciled_shipments()
        assert [str(order.id) for order in found] == [str(unbooked_order.id)]

    def test_booked_orders_are_not_listed(self, service, placed_order, advance):
        advance(str(placed_order.id), "CONFIRMED", "PACKED", "SHIPPED")
        assert service.find_unreconciled_shipments() == []

    def test_unshipped_orders_are_not_listed(self, service, placed_order, advance):
        advance(str(placed_order.id), "CONFIRMED")
        assert service.find_unreconciled_shipments() == []

    @pytest.mark.slow
    def test_every_gap_is_reported_past_the_page_size(
        self, service, courier, buyer, items_data, shipping_address, advance
    ):
        courier.configure(should_succeed=False, failure_reason="Courier API timeout")
        shipped = set()
        for _ in range(105):
            order = service.place_order(buyer, items_data()[:1], shipping_address)
            advance(str(order.id), "CONFIRMED", "PACKED", "SHIPPED")
            shipped.add(str(order.id))

        found = service.find_unreconciled_shipments()
        assert {str(order.id) for order in found} == shipped


class TestReconcileShipment:
    def test_admin_retry_books_the_shipment(self, service, courier, admin, unbooked_order):
        order = service.reconcile_shipment(str(unbooked_order.id), admin)

        assert order.delivery.tracking_id.startswith("IMP-")
        assert order.delivery.carrier_name == "Imperial Express"
        assert _reload(unbooked_order.id).delivery.tracking_id == order.delivery.tracking_id
        assert courier.track(order.delivery.tracking_id).order_id == str(unbooked_order.id)
        assert service.find_unreconciled_shipments() == []

    def test_retry_on_booked_order_is_a_no_op(self, service, courier, admin, placed_order, advance):
        shipped = advance(str(placed_order.id), "CONFIRMED", "PACKED", "SHIPPED")
        order = service.reconcile_shipment(str(placed_order.id), admin)

        assert order.delivery.tracking_id == shipped.delivery.tracking_id
        assert len(courier.list_shipments()) == 1

    def test_status_is_not_changed(self, service, admin, unbooked_order):
        before = len(_reload(unbooked_order.id).timeline)
        order = service.reconcile_shipment(str(unbooked_order.id), admin)
        assert order.status == "SHIPPED"
        assert len(order.timeline) == before

    def test_sellers_cannot_reconcile(self, service, seller, unbooked_order):
        with pytest.raises(Unauthorized):
            service.reconcile_shipment(str(unbooked_order.id), seller)

    def test_unshipped_order_is_rejected(self, service, admin, placed_order):
        with pytest.raises(ValidationError):
            service.reconcile_shipment(str(placed_order.id), admin)

    def test_courier_failure_is_raised(self, service, courier, admin, unbooked_order):
        courier.configure(should_succeed=False, failure_reason="Still down")
        with pytest.raises(AdapterFailure):
            service.reconcile_shipment(str(unbooked_order.id), admin)
        assert _reload(unbooked_order.id).delivery.tracking_id is None
