from .base import Base
from .order import Order, OrderItem, OrderStatusEvent
from .payment import Payment, PaymentOrderIndex

__all__ = [
    "Base",
    "Order",
    "OrderItem",
    "OrderStatusEvent",
    "Payment",
    "PaymentOrderIndex",
]
