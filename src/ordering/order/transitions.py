"""The single write path for fulfillment status changes.

``OrderTransitions.apply`` loads the order, checks the edge for the
origin's kind, checks seller ownership for seller origins, mutates the
order (status and timeline together), runs the caller's side effect and
persists. All of it happens while holding the order's lock, so a second
request against the same order sees the first one's result.
"""

import threading
from collections import Counter
from collections.abc import Callable, Iterator
from contextlib import contextmanager

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.exceptions import InvalidTransition, OrderNotFound, Unauthorized
from ordering.order.order import Order, OrderStatus
from ordering.order.origins import SellerInitiated, TransitionOrigin

logger = structlog.get_logger(__name__)


class OrderLocks:
    """One re-entrant lock per order id. Orders never contend with each other.

    A lock lives only while some thread holds or waits for it; the last
    one out removes it from the registry.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}
        self._holders: Counter[str] = Counter()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, order_id: str) -> Iterator[None]:
        key = str(order_id)
        with self._guard:
            lock = self._locks.setdefault(key, threading.RLock())
            self._holders[key] += 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[key] -= 1
                if self._holders[key] <= 0:
                    del self._holders[key]
                    del self._locks[key]


def load_order(order_id: str) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFound(f"Order {order_id} not found") from exc


class OrderTransitions:
    def __init__(self, locks: OrderLocks | None = None) -> None:
        self.locks = locks if locks is not None else OrderLocks()

    def apply(
        self,
        order_id: str,
        target: OrderStatus,
        origin: TransitionOrigin,
        description: str | None = None,
        on_transition: Callable[[Order], None] | None = None,
    ) -> Order:
        """Apply one transition atomically.

        ``on_transition`` runs after the in-memory mutation and before the
        order is persisted; an exception it raises aborts the transition.
        """
        with self.locks.hold(order_id):
            order = load_order(order_id)

            if not order.can_transition(target, origin.kind):
                logger.info(
                    "transition_rejected",
                    order_id=str(order_id),
                    current_status=order.status,
                    requested_status=target.value,
                    origin=origin.kind.value,
                )
                raise InvalidTransition(order.status, target.value)

            if isinstance(origin, SellerInitiated):
                actor = origin.actor
                if not (actor.is_admin or order.is_fulfilled_by(actor.id)):
                    logger.warning(
                        "transition_unauthorized",
                        order_id=str(order_id),
                        actor_id=actor.id,
                        requested_status=target.value,
                    )
                    raise Unauthorized(f"Actor {actor.id} does not sell any item in order {order_id}")

            previous = order.status
            order.transition_to(target, origin.kind, description)
            if on_transition is not None:
                on_transition(order)

            current_domain.repository_for(Order).add(order)

        logger.info(
            "order_status_changed",
            order_id=str(order_id),
            previous_status=previous,
            new_status=order.status,
            origin=origin.kind.value,
        )
        return order
