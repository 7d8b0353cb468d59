from .order_service import OrderService
from .fulfillment_service import FulfillmentService
from .checkout_service import CheckoutService
from .paydunya_service import PaydunyaService
from .container import ServiceContainer, build_container, get_container

__all__ = [
    "OrderService",
    "FulfillmentService",
    "CheckoutService",
    "PaydunyaService",
    "ServiceContainer",
    "build_container",
    "get_container",
]
