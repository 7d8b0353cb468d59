import os
from typing import List, Optional

import structlog

from schemas import Order, OrderCreate, OrderStatus, OrderType, OrderUpdate
from stores import OrderStore
from errors import ValidationError

logger = structlog.get_logger(__name__)

DELIVERY_FEE = float(os.getenv("DELIVERY_FEE", "1000"))

# Admin console tabs, each a group of fulfillment statuses
STATUS_GROUPS = {
    "pending": [OrderStatus.PENDING],
    "preparing": [OrderStatus.CONFIRMED, OrderStatus.PREPARING],
    "ready": [OrderStatus.READY],
    "delivery": [OrderStatus.OUT_FOR_DELIVERY],
    "completed": [OrderStatus.DELIVERED, OrderStatus.CANCELLED],
}


class OrderService:
    def __init__(self, order_store: OrderStore, delivery_fee: Optional[float] = None):
        self.order_store = order_store
        self.delivery_fee = DELIVERY_FEE if delivery_fee is None else delivery_fee

    def compute_total(self, items, order_type) -> float:
        subtotal = sum(item.quantity * item.unit_price for item in items)
        fee = self.delivery_fee if order_type == OrderType.DELIVERY else 0
        return subtotal + fee

    def create_order(self, order_data: OrderCreate) -> Order:
        """Price the cart server-side and store the order as ``pending``."""
        if not order_data.items:
            raise ValidationError("Missing required fields: items")
        fields = order_data.model_dump(exclude={"total"})
        if order_data.order_type is not None:
            fields["total"] = self.compute_total(order_data.items, order_data.order_type)
            if order_data.total is not None and abs(order_data.total - fields["total"]) > 0.005:
                raise ValidationError(
                    f"Order total {order_data.total:g} does not match computed total {fields['total']:g}"
                )
        return self.order_store.create(fields)

    def get_order(self, order_id: str) -> Order:
        return self.order_store.get(order_id)

    def update_order(self, order_id: str, order_update: OrderUpdate) -> Order:
        changes = order_update.model_dump(exclude_unset=True)
        if not changes:
            return self.order_store.get(order_id)
        for name in ("customer_name", "customer_phone"):
            if name in changes and not (changes[name] or "").strip():
                raise ValidationError(f"{name} cannot be empty")
        order = self.order_store.get(order_id)
        if "delivery_address" in changes and order.order_type == OrderType.DELIVERY \
                and not (changes["delivery_address"] or "").strip():
            raise ValidationError("delivery_address is required for delivery orders")
        updated = self.order_store.update(order_id, changes)
        logger.info("order.updated", order_id=order_id, fields=sorted(changes))
        return updated

    def get_orders(self, status_filter: Optional[str] = None, search: Optional[str] = None,
                   skip: int = 0, limit: int = 100) -> List[Order]:
        """``status_filter`` takes comma-separated statuses or tab names."""
        statuses = None
        if status_filter:
            statuses = []
            for name in (s.strip() for s in status_filter.split(",")):
                if name in STATUS_GROUPS:
                    statuses.extend(STATUS_GROUPS[name])
                else:
                    try:
                        statuses.append(OrderStatus(name))
                    except ValueError:
                        raise ValidationError(f"Unknown status filter: {name}")
        return self.order_store.list(statuses, search, skip, limit)

    def get_dashboard_stats(self) -> dict:
        orders = self.order_store.list(limit=1_000_000)

        def count(group):
            return sum(1 for o in orders if o.status in STATUS_GROUPS[group])

        return {
            "total_orders": len(orders),
            "pending_orders": count("pending"),
            "preparing_orders": count("preparing"),
            "ready_orders": count("ready"),
            "out_for_delivery_orders": count("delivery"),
            "completed_orders": count("completed"),
            "total_revenue": float(sum(o.total for o in orders if o.status == OrderStatus.DELIVERED)),
        }
