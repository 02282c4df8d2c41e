"""Tests for the payment flag on the Order aggregate."""

import pytest
from ordering.order.events import OrderPaid
from ordering.order.order import PAID_TIMELINE_STATUS, Order, OrderStatus, OriginKind
from protean.exceptions import ValidationError


@pytest.fixture()
def order(items_data, shipping_address):
    return Order.place(buyer_id="buyer-001", items_data=items_data(), shipping_address=shipping_address)


class TestMarkPaid:
    def test_mark_paid_flips_flag_and_records_receipt(self, order):
        assert order.mark_paid("pay_001", payer_email="steve@example.com") is True

        assert order.is_paid is True
        assert order.paid_at is not None
        assert order.payment_receipt.external_id == "pay_001"
        assert order.payment_receipt.payer_email == "steve@example.com"
        assert order.payment_receipt.status == "captured"

    def test_mark_paid_appends_paid_entry(self, order):
        order.mark_paid("pay_001")
        assert order.ordered_timeline[-1].status == PAID_TIMELINE_STATUS

    def test_mark_paid_raises_event(self, order):
        order._events.clear()
        order.mark_paid("pay_001")
        assert len(order._events) == 1
        assert isinstance(order._events[0], OrderPaid)
        assert order._events[0].grand_total == 100.0

    def test_second_mark_paid_is_a_no_op(self, order):
        order.mark_paid("pay_001")
        timeline_length = len(order.timeline)
        first_paid_at = order.paid_at

        assert order.mark_paid("pay_002") is False
        assert len(order.timeline) == timeline_length
        assert order.paid_at == first_paid_at
        assert order.payment_receipt.external_id == "pay_001"

    def test_payment_does_not_change_fulfillment_status(self, order):
        order.mark_paid("pay_001")
        assert order.status == OrderStatus.PLACED.value

    def test_cancelled_order_keeps_paid_flag(self, order):
        order.mark_paid("pay_001")
        order.transition_to(OrderStatus.CANCELLED, OriginKind.SELLER)
        assert order.is_paid is True


class TestPaymentReference:
    def test_reference_is_recorded(self, order):
        order.record_payment_reference("order_abc")
        assert order.payment_reference == "order_abc"

    def test_paid_order_rejects_new_reference(self, order):
        order.mark_paid("pay_001")
        with pytest.raises(ValidationError):
            order.record_payment_reference("order_abc")

    def test_cancelled_order_rejects_reference(self, order):
        order.transition_to(OrderStatus.CANCELLED, OriginKind.SELLER)
        with pytest.raises(ValidationError):
            order.record_payment_reference("order_abc")

    def test_reopened_intent_keeps_earlier_references(self, order):
        order.record_payment_reference("order_abc")
        order.record_payment_reference("order_def")

        assert order.payment_reference == "order_def"
        assert order.payment_references == ["order_abc", "order_def"]
        assert order.issued_payment_reference("order_abc") is True
        assert order.issued_payment_reference("order_def") is True
        assert order.issued_payment_reference("order_xyz") is False

    def test_order_without_intent_accepts_any_reference(self, order):
        assert order.issued_payment_reference("order_abc") is True
