import os
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Request

from stores import (
    InMemoryOrderStore,
    InMemoryPaymentStore,
    OrderStore,
    PaymentStore,
    SqlOrderStore,
    SqlPaymentStore,
)
from .checkout_service import CheckoutService
from .fulfillment_service import FulfillmentService
from .locks import LockRegistry
from .order_service import OrderService
from .paydunya_service import PaydunyaService

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContainer:
    order_store: OrderStore
    payment_store: PaymentStore
    gateway: PaydunyaService
    locks: LockRegistry
    orders: OrderService
    fulfillment: FulfillmentService
    checkout: CheckoutService


def build_container(database_url: Optional[str] = None, gateway=None,
                    delivery_fee: Optional[float] = None) -> ServiceContainer:
    """Wire stores and services together.

    With no ``database_url`` (and no ``DATABASE_URL`` in the environment)
    orders and payments live in process memory.
    """
    database_url = database_url if database_url is not None else os.getenv("DATABASE_URL")
    if database_url:
        from database import make_engine, make_session_factory

        session_factory = make_session_factory(make_engine(database_url))
        order_store = SqlOrderStore(session_factory)
        payment_store = SqlPaymentStore(session_factory, order_store)
        logger.info("stores.sql", dialect=database_url.split(":", 1)[0])
    else:
        order_store = InMemoryOrderStore()
        payment_store = InMemoryPaymentStore(order_store)
        logger.info("stores.memory")

    gateway = gateway or PaydunyaService()
    locks = LockRegistry()
    orders = OrderService(order_store, delivery_fee)
    fulfillment = FulfillmentService(order_store, locks)
    checkout = CheckoutService(orders, payment_store, gateway, fulfillment, locks)
    return ServiceContainer(
        order_store=order_store,
        payment_store=payment_store,
        gateway=gateway,
        locks=locks,
        orders=orders,
        fulfillment=fulfillment,
        checkout=checkout,
    )


# Dependency to get the services wired into the running app
def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container
