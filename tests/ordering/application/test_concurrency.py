"""Concurrent requests against one order serialize on the order's lock."""

import threading

import pytest
from fulfillment.domain import fulfillment
from ordering.domain import ordering
from ordering.exceptions import InvalidTransition, OrderNotFound
from ordering.order.order import PAID_TIMELINE_STATUS, Order, OrderStatus
from protean import current_domain

WORKERS = 8


def _run_concurrently(target, count=WORKERS):
    """Start ``count`` threads on ``target`` together, collecting results and errors."""
    barrier = threading.Barrier(count)
    results, errors = [], []
    guard = threading.Lock()

    def worker():
        with fulfillment.domain_context(), ordering.domain_context():
            barrier.wait()
            try:
                outcome = target()
            except Exception as exc:  # noqa: BLE001 - collected for assertions
                with guard:
                    errors.append(exc)
            else:
                with guard:
                    results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results, errors


def _reload(order_id):
    return current_domain.repository_for(Order).get(order_id)


@pytest.mark.slow
class TestConcurrentTransitions:
    def test_same_transition_succeeds_once(self, service, seller, placed_order):
        order_id = str(placed_order.id)

        results, errors = _run_concurrently(lambda: service.update_fulfillment_status(order_id, "CONFIRMED", seller))

        assert len(results) == 1
        assert len(errors) == WORKERS - 1
        assert all(isinstance(error, InvalidTransition) for error in errors)

        stored = _reload(order_id)
        assert stored.status == OrderStatus.CONFIRMED.value
        assert [entry.status for entry in stored.ordered_timeline] == ["PLACED", "CONFIRMED"]

    def test_concurrent_shipping_books_one_shipment(self, service, courier, seller, placed_order, advance):
        order_id = str(placed_order.id)
        advance(order_id, "CONFIRMED", "PACKED")

        results, errors = _run_concurrently(lambda: service.update_fulfillment_status(order_id, "SHIPPED", seller))

        assert len(results) == 1
        assert all(isinstance(error, InvalidTransition) for error in errors)
        assert len([view for view in courier.list_shipments() if view.order_id == order_id]) == 1

    def test_competing_seller_and_courier_updates(self, service, courier_handler, seller, placed_order, advance):
        order_id = str(placed_order.id)
        shipped = advance(order_id, "CONFIRMED", "PACKED", "SHIPPED")
        awb = shipped.delivery.tracking_id
        calls = iter(range(WORKERS))
        pick = threading.Lock()

        def contend():
            with pick:
                index = next(calls)
            if index % 2:
                return courier_handler.handle(awb, "OUT_FOR_DELIVERY", "Hub")
            return service.update_fulfillment_status(order_id, "CANCELLED", seller)

        results, errors = _run_concurrently(contend)

        # SHIPPED -> CANCELLED is not an edge, so only the courier can win
        assert len(results) == 1
        assert all(isinstance(error, InvalidTransition) for error in errors)
        assert _reload(order_id).status == OrderStatus.OUT_FOR_DELIVERY.value


@pytest.mark.slow
class TestConcurrentPayment:
    def test_concurrent_verification_records_one_payment(self, service, gateway, placed_order):
        order_id = str(placed_order.id)
        signature = gateway.sign("order_A", "pay_A")

        results, errors = _run_concurrently(lambda: service.verify_payment(order_id, "order_A", "pay_A", signature))

        assert errors == []
        assert len(results) == WORKERS
        stored = _reload(order_id)
        assert stored.is_paid is True
        paid_entries = [entry for entry in stored.timeline if entry.status == PAID_TIMELINE_STATUS]
        assert len(paid_entries) == 1


class TestLockRegistry:
    def test_unknown_orders_leave_no_locks_behind(self, service, transitions, seller):
        for index in range(50):
            with pytest.raises(OrderNotFound):
                service.update_fulfillment_status(f"missing-{index}", "CONFIRMED", seller)

        assert len(transitions.locks) == 0

    def test_locks_are_released_after_transitions_and_payment(self, service, transitions, buyer, seller, placed_order):
        order_id = str(placed_order.id)
        service.update_fulfillment_status(order_id, "CONFIRMED", seller)
        service.create_payment_intent(order_id, buyer)

        assert len(transitions.locks) == 0

    def test_lock_is_kept_while_held_and_reentrant(self, transitions):
        locks = transitions.locks
        with locks.hold("order-1"):
            with locks.hold("order-1"):
                assert len(locks) == 1
            assert len(locks) == 1
        assert len(locks) == 0

    def test_waiting_thread_reuses_the_held_lock(self, transitions):
        locks = transitions.locks
        entered = threading.Event()
        order = []

        def waiter():
            with locks.hold("order-1"):
                order.append("waiter")

        with locks.hold("order-1"):
            thread = threading.Thread(target=lambda: (entered.set(), waiter()))
            thread.start()
            entered.wait(timeout=5)
            thread.join(timeout=0.2)
            order.append("holder")

        thread.join(timeout=5)
        assert order == ["holder", "waiter"]
        assert len(locks) == 0
