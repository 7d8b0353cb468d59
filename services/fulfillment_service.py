"""Admin-side order status changes, independent of the payment lifecycle."""

from typing import Optional

import structlog

from schemas import Order, OrderStatus
from stores import OrderStore
from stores.base import utcnow
from errors import InvalidStateTransitionError
from .locks import LockRegistry
from .state_machines import fulfillment_sequence, is_order_terminal, next_order_status

logger = structlog.get_logger(__name__)


class FulfillmentService:
    def __init__(self, order_store: OrderStore, locks: LockRegistry):
        self.order_store = order_store
        self.locks = locks

    def _transition(self, order: Order, target: OrderStatus, note: Optional[str]) -> Order:
        history = [entry.model_dump() for entry in order.status_history]
        history.append({"status": target, "timestamp": utcnow(), "note": note})
        updated = self.order_store.update(order.id, {"status": target, "status_history": history})
        logger.info("order.status_changed", order_id=order.id,
                    from_status=order.status.value, to_status=target.value)
        return updated

    def advance(self, order_id: str) -> Order:
        """Move the order one step along its delivery or pickup sequence."""
        with self.locks.hold(f"order:{order_id}"):
            order = self.order_store.get(order_id)
            target = next_order_status(order.order_type, order.status)
            return self._transition(order, target, None)

    def set_status(self, order_id: str, target: OrderStatus, note: Optional[str] = None) -> Order:
        """Jump to any non-terminal status of the order's sequence."""
        target = OrderStatus(target)
        with self.locks.hold(f"order:{order_id}"):
            order = self.order_store.get(order_id)
            if is_order_terminal(order.status) or is_order_terminal(target) \
                    or target not in fulfillment_sequence(order.order_type):
                raise InvalidStateTransitionError("order", order.status.value, target.value)
            if target == order.status:
                return order
            return self._transition(order, target, note)

    def cancel(self, order_id: str, note: Optional[str] = None) -> Order:
        with self.locks.hold(f"order:{order_id}"):
            order = self.order_store.get(order_id)
            if is_order_terminal(order.status):
                raise InvalidStateTransitionError("order", order.status.value, OrderStatus.CANCELLED.value)
            return self._transition(order, OrderStatus.CANCELLED, note)

    def confirm_paid(self, order_id: str) -> Order:
        """``pending`` -> ``confirmed`` once payment completes; otherwise untouched."""
        with self.locks.hold(f"order:{order_id}"):
            order = self.order_store.get(order_id)
            if order.status != OrderStatus.PENDING:
                return order
            return self._transition(order, OrderStatus.CONFIRMED, "Payment received")
