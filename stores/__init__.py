from .base import OrderStore, PaymentStore
from .memory import InMemoryOrderStore, InMemoryPaymentStore
from .sql import SqlOrderStore, SqlPaymentStore

__all__ = [
    "OrderStore",
    "PaymentStore",
    "InMemoryOrderStore",
    "InMemoryPaymentStore",
    "SqlOrderStore",
    "SqlPaymentStore",
]
