"""Process-memory stores, the default backend."""

import threading
from typing import Dict, List, Optional

import structlog

from schemas import Order, OrderStatus, Payment, PaymentStatus
from errors import NotFoundError
from .base import (
    ORDER_IMMUTABLE_FIELDS,
    PAYMENT_IMMUTABLE_FIELDS,
    PAYMENT_REQUIRED_FIELDS,
    OrderStore,
    PaymentStore,
    build_record,
    check_patch,
    new_order_id,
    new_order_number,
    new_payment_id,
    require_fields,
    utcnow,
    validate_order_fields,
)

logger = structlog.get_logger(__name__)


class InMemoryOrderStore(OrderStore):
    def __init__(self):
        self._orders: Dict[str, Order] = {}
        self._order_numbers = set()
        self._lock = threading.RLock()

    def _next_order_number(self) -> str:
        order_number = new_order_number()
        while order_number in self._order_numbers:
            order_number = new_order_number()
        return order_number

    def create(self, fields: dict) -> Order:
        validate_order_fields(fields)
        with self._lock:
            now = utcnow()
            data = dict(fields)
            data.update(
                id=new_order_id(),
                order_number=self._next_order_number(),
                status=OrderStatus.PENDING,
                status_history=[{"status": OrderStatus.PENDING, "timestamp": now, "note": "Order placed"}],
                created_at=now,
                updated_at=now,
            )
            order = build_record(Order, data)
            self._orders[order.id] = order
            self._order_numbers.add(order.order_number)
        logger.info("order.created", order_id=order.id, order_number=order.order_number)
        return order.model_copy(deep=True)

    def get(self, order_id: str) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise NotFoundError("Order not found")
            return order.model_copy(deep=True)

    def update(self, order_id: str, fields: dict) -> Order:
        check_patch(fields, Order, ORDER_IMMUTABLE_FIELDS)
        with self._lock:
            current = self._orders.get(order_id)
            if current is None:
                raise NotFoundError("Order not found")
            data = current.model_dump()
            data.update(fields)
            data["updated_at"] = utcnow()
            order = build_record(Order, data)
            self._orders[order_id] = order
            return order.model_copy(deep=True)

    def list(self, statuses: Optional[List[str]] = None, search: Optional[str] = None,
             skip: int = 0, limit: int = 100) -> List[Order]:
        with self._lock:
            orders = list(self._orders.values())
        if statuses:
            orders = [o for o in orders if o.status in statuses]
        if search:
            needle = search.replace("#", "").strip().upper()
            orders = [o for o in orders if needle in o.order_number or needle == o.id.upper()]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return [o.model_copy(deep=True) for o in orders[skip:skip + limit]]


class InMemoryPaymentStore(PaymentStore):
    def __init__(self, order_store: OrderStore):
        self.order_store = order_store
        self._payments: Dict[str, Payment] = {}
        self._by_order: Dict[str, str] = {}
        self._lock = threading.RLock()

    def _move_index(self, payment: Payment):
        # A completed payment keeps the order index
        indexed = self._payments.get(self._by_order.get(payment.order_id))
        if indexed is not None and indexed.id != payment.id and indexed.status == PaymentStatus.COMPLETED:
            return
        self._by_order[payment.order_id] = payment.id

    def create(self, fields: dict) -> Payment:
        require_fields(fields, PAYMENT_REQUIRED_FIELDS)
        # raises NotFoundError for a dangling order reference
        self.order_store.get(fields["order_id"])
        now = utcnow()
        data = dict(fields)
        data.update(id=new_payment_id(), created_at=now, updated_at=now)
        data.setdefault("status", "pending")
        payment = build_record(Payment, data)
        with self._lock:
            self._payments[payment.id] = payment
            self._move_index(payment)
        logger.info("payment.created", payment_id=payment.id, order_id=payment.order_id)
        return payment.model_copy(deep=True)

    def get(self, payment_id: str) -> Payment:
        with self._lock:
            payment = self._payments.get(payment_id)
            if payment is None:
                raise NotFoundError("Payment not found")
            return payment.model_copy(deep=True)

    def update(self, payment_id: str, fields: dict) -> Payment:
        check_patch(fields, Payment, PAYMENT_IMMUTABLE_FIELDS)
        with self._lock:
            current = self._payments.get(payment_id)
            if current is None:
                raise NotFoundError("Payment not found")
            data = current.model_dump()
            data.update(fields)
            data["updated_at"] = utcnow()
            payment = build_record(Payment, data)
            self._payments[payment_id] = payment
            self._move_index(payment)
            return payment.model_copy(deep=True)

    def get_by_order_id(self, order_id: str) -> Payment:
        with self._lock:
            payment_id = self._by_order.get(order_id)
            if payment_id is None:
                raise NotFoundError("Payment not found for this order")
            return self._payments[payment_id].model_copy(deep=True)
