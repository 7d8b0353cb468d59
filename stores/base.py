"""Store interfaces and the validation rules shared by every backend.

The lifecycle services only talk to ``OrderStore`` and ``PaymentStore``;
``stores.memory`` and ``stores.sql`` are interchangeable implementations.
"""

import random
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from schemas import Order, OrderType, Payment
from errors import ValidationError

ORDER_REQUIRED_FIELDS = ("customer_name", "customer_phone", "items", "total", "order_type")
PAYMENT_REQUIRED_FIELDS = ("order_id", "amount", "payment_method")

ORDER_IMMUTABLE_FIELDS = {"id", "order_number", "created_at", "items", "order_type"}
PAYMENT_IMMUTABLE_FIELDS = {"id", "order_id", "created_at"}

ORDER_NUMBER_PREFIX = "CM"


def utcnow() -> datetime:
    return datetime.utcnow()


def new_order_id() -> str:
    return f"order-{uuid.uuid4().hex}"


def new_payment_id() -> str:
    return f"payment-{uuid.uuid4().hex}"


def new_order_number() -> str:
    return f"{ORDER_NUMBER_PREFIX}{random.randint(0, 99999999):08d}"


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, tuple)) and not value:
        return True
    return False


def require_fields(fields: dict, required: Iterable[str]):
    missing = [name for name in required if _is_missing(fields.get(name))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def validate_order_fields(fields: dict):
    require_fields(fields, ORDER_REQUIRED_FIELDS)
    order_type = fields.get("order_type")
    if isinstance(order_type, str):
        order_type = order_type.lower()
    if order_type in (OrderType.DELIVERY, "delivery", "livraison") and _is_missing(
        fields.get("delivery_address")
    ):
        raise ValidationError("delivery_address is required for delivery orders")


def check_patch(fields: dict, record_type, immutable: set):
    unknown = set(fields) - set(record_type.model_fields)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
    frozen = set(fields) & immutable
    if frozen:
        raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(frozen))}")


def build_record(record_type, data: dict):
    """Validate ``data`` into ``record_type``, reporting problems as ``ValidationError``."""
    try:
        return record_type.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid data: {problems}")


class OrderStore(ABC):
    @abstractmethod
    def create(self, fields: dict) -> Order:
        """Create an order with a fresh id and order number, status ``pending``."""

    @abstractmethod
    def get(self, order_id: str) -> Order:
        """Return the order or raise ``NotFoundError``."""

    @abstractmethod
    def update(self, order_id: str, fields: dict) -> Order:
        """Shallow-merge ``fields`` into the stored order.

        ``total`` is not recomputed here.
        """

    @abstractmethod
    def list(self, statuses: Optional[List[str]] = None, search: Optional[str] = None,
             skip: int = 0, limit: int = 100) -> List[Order]:
        """Most recent first."""


class PaymentStore(ABC):
    @abstractmethod
    def create(self, fields: dict) -> Payment:
        """Create a payment for an existing order and index it by order id."""

    @abstractmethod
    def get(self, payment_id: str) -> Payment:
        pass

    @abstractmethod
    def update(self, payment_id: str, fields: dict) -> Payment:
        """Merge ``fields`` and point the order index at this payment."""

    @abstractmethod
    def get_by_order_id(self, order_id: str) -> Payment:
        """The completed payment for ``order_id`` if there is one, else the most
        recently created or updated payment."""
