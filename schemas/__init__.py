from .common import ApiResponse
from .order import (
    OrderType,
    OrderStatus,
    OrderItem,
    StatusHistoryEntry,
    Order,
    OrderCreate,
    OrderUpdate,
    OrderStatusUpdate,
)
from .payment import PaymentMethod, PaymentStatus, Payment, PaymentCreate, PaymentUpdate
from .paydunya import (
    PaydunyaInitializeRequest,
    PaydunyaInitializeResponse,
    GatewayInvoice,
    GatewayCallback,
    CallbackAck,
    ReturnOutcome,
    CheckoutRequest,
    CheckoutResult,
)
from .admin import AdminLogin, AdminResponse, Token, TokenData, DashboardStats

__all__ = [
    "ApiResponse",
    "OrderType", "OrderStatus", "OrderItem", "StatusHistoryEntry", "Order",
    "OrderCreate", "OrderUpdate", "OrderStatusUpdate",
    "PaymentMethod", "PaymentStatus", "Payment", "PaymentCreate", "PaymentUpdate",
    "PaydunyaInitializeRequest", "PaydunyaInitializeResponse", "GatewayInvoice",
    "GatewayCallback", "CallbackAck", "ReturnOutcome", "CheckoutRequest", "CheckoutResult",
    "AdminLogin", "AdminResponse", "Token", "TokenData", "DashboardStats",
]
