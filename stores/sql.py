"""SQLAlchemy-backed stores, used when ``DATABASE_URL`` is configured."""

from enum import Enum
from typing import List, Optional

import structlog
from sqlalchemy.orm import Session, selectinload

import models
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

ORDER_COLUMNS = ("customer_name", "customer_phone", "delivery_address", "total", "status", "updated_at")
PAYMENT_COLUMNS = (
    "amount", "payment_method", "status", "gateway_token", "gateway_invoice_url",
    "transaction_id", "error_message", "attempts", "paid_at", "updated_at",
)


def _column_value(value):
    return value.value if isinstance(value, Enum) else value


def _history_rows(order: Order):
    return [
        models.OrderStatusEvent(
            position=position,
            status=_column_value(entry.status),
            timestamp=entry.timestamp,
            note=entry.note,
        )
        for position, entry in enumerate(order.status_history)
    ]


class SqlOrderStore(OrderStore):
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _query(self, db: Session):
        return db.query(models.Order).options(
            selectinload(models.Order.items), selectinload(models.Order.status_history)
        )

    def _load(self, db: Session, order_id: str) -> models.Order:
        row = self._query(db).filter(models.Order.id == order_id).first()
        if row is None:
            raise NotFoundError("Order not found")
        return row

    def _next_order_number(self, db: Session) -> str:
        order_number = new_order_number()
        while db.query(models.Order.id).filter(models.Order.order_number == order_number).first():
            order_number = new_order_number()
        return order_number

    def create(self, fields: dict) -> Order:
        validate_order_fields(fields)
        db = self.session_factory()
        try:
            now = utcnow()
            data = dict(fields)
            data.update(
                id=new_order_id(),
                order_number=self._next_order_number(db),
                status=OrderStatus.PENDING,
                status_history=[{"status": OrderStatus.PENDING, "timestamp": now, "note": "Order placed"}],
                created_at=now,
                updated_at=now,
            )
            order = build_record(Order, data)
            row = models.Order(
                id=order.id,
                order_number=order.order_number,
                customer_name=order.customer_name,
                customer_phone=order.customer_phone,
                delivery_address=order.delivery_address,
                total=order.total,
                order_type=_column_value(order.order_type),
                status=_column_value(order.status),
                created_at=order.created_at,
                updated_at=order.updated_at,
            )
            row.items = [
                models.OrderItem(position=position, **item.model_dump())
                for position, item in enumerate(order.items)
            ]
            row.status_history = _history_rows(order)
            db.add(row)
            db.commit()
        except Exception:
            # Rollback entire transaction if any part fails
            db.rollback()
            raise
        finally:
            db.close()
        logger.info("order.created", order_id=order.id, order_number=order.order_number)
        return order

    def get(self, order_id: str) -> Order:
        db = self.session_factory()
        try:
            return Order.model_validate(self._load(db, order_id))
        finally:
            db.close()

    def update(self, order_id: str, fields: dict) -> Order:
        check_patch(fields, Order, ORDER_IMMUTABLE_FIELDS)
        db = self.session_factory()
        try:
            row = self._load(db, order_id)
            data = Order.model_validate(row).model_dump()
            data.update(fields)
            data["updated_at"] = utcnow()
            order = build_record(Order, data)
            for column in ORDER_COLUMNS:
                setattr(row, column, _column_value(getattr(order, column)))
            if "status_history" in fields:
                row.status_history = _history_rows(order)
            db.commit()
            return order
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def list(self, statuses: Optional[List[str]] = None, search: Optional[str] = None,
             skip: int = 0, limit: int = 100) -> List[Order]:
        db = self.session_factory()
        try:
            query = self._query(db)
            if statuses:
                query = query.filter(models.Order.status.in_([_column_value(s) for s in statuses]))
            if search:
                needle = search.replace("#", "").strip().upper()
                query = query.filter(models.Order.order_number.contains(needle))
            rows = query.order_by(models.Order.created_at.desc()).offset(skip).limit(limit).all()
            return [Order.model_validate(row) for row in rows]
        finally:
            db.close()


class SqlPaymentStore(PaymentStore):
    def __init__(self, session_factory, order_store: OrderStore):
        self.session_factory = session_factory
        self.order_store = order_store

    def _move_index(self, db: Session, payment: Payment):
        # A completed payment keeps the order index
        entry = db.get(models.PaymentOrderIndex, payment.order_id)
        if entry is not None and entry.payment_id != payment.id:
            indexed = db.get(models.Payment, entry.payment_id)
            if indexed is not None and indexed.status == PaymentStatus.COMPLETED.value:
                return
        db.merge(models.PaymentOrderIndex(order_id=payment.order_id, payment_id=payment.id))

    def create(self, fields: dict) -> Payment:
        require_fields(fields, PAYMENT_REQUIRED_FIELDS)
        self.order_store.get(fields["order_id"])
        now = utcnow()
        data = dict(fields)
        data.update(id=new_payment_id(), created_at=now, updated_at=now)
        data.setdefault("status", "pending")
        payment = build_record(Payment, data)
        db = self.session_factory()
        try:
            db.add(models.Payment(
                id=payment.id,
                order_id=payment.order_id,
                created_at=payment.created_at,
                **{column: _column_value(getattr(payment, column)) for column in PAYMENT_COLUMNS}
            ))
            self._move_index(db, payment)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        logger.info("payment.created", payment_id=payment.id, order_id=payment.order_id)
        return payment

    def get(self, payment_id: str) -> Payment:
        db = self.session_factory()
        try:
            row = db.get(models.Payment, payment_id)
            if row is None:
                raise NotFoundError("Payment not found")
            return Payment.model_validate(row)
        finally:
            db.close()

    def update(self, payment_id: str, fields: dict) -> Payment:
        check_patch(fields, Payment, PAYMENT_IMMUTABLE_FIELDS)
        db = self.session_factory()
        try:
            row = db.get(models.Payment, payment_id)
            if row is None:
                raise NotFoundError("Payment not found")
            data = Payment.model_validate(row).model_dump()
            data.update(fields)
            data["updated_at"] = utcnow()
            payment = build_record(Payment, data)
            for column in PAYMENT_COLUMNS:
                setattr(row, column, _column_value(getattr(payment, column)))
            self._move_index(db, payment)
            db.commit()
            return payment
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get_by_order_id(self, order_id: str) -> Payment:
        db = self.session_factory()
        try:
            entry = db.get(models.PaymentOrderIndex, order_id)
            if entry is None:
                raise NotFoundError("Payment not found for this order")
            return Payment.model_validate(db.get(models.Payment, entry.payment_id))
        finally:
            db.close()
