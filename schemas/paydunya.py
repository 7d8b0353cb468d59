from pydantic import BaseModel, field_validator
from typing import List, Optional

from .order import Order, OrderItem, OrderType, normalize_order_type
from .payment import Payment, PaymentMethod, PaymentStatus


class PaydunyaInitializeRequest(BaseModel):
    order_id: str
    payment_id: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    # Echoed by the storefront; only total is checked against the stored order
    total: Optional[float] = None
    order_number: Optional[str] = None
    items: Optional[List[OrderItem]] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    order_type: Optional[OrderType] = None

    @field_validator("order_type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        return normalize_order_type(value)


class PaydunyaInitializeResponse(BaseModel):
    payment_url: str
    token: str
    transaction_id: str
    payment_id: str


class GatewayInvoice(BaseModel):
    redirect_url: str
    token: str
    transaction_id: str


class GatewayCallback(BaseModel):
    status: Optional[str] = None
    token: Optional[str] = None
    order_id: str
    payment_id: Optional[str] = None


class CallbackAck(BaseModel):
    acknowledged: bool = True
    applied: bool
    detail: str
    order_id: str
    payment_status: Optional[PaymentStatus] = None


class ReturnOutcome(BaseModel):
    confirmed: bool
    payment: Payment


class CheckoutRequest(BaseModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    delivery_address: Optional[str] = None
    items: List[OrderItem] = []
    order_type: Optional[OrderType] = None
    total: Optional[float] = None
    payment_method: PaymentMethod

    @field_validator("order_type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        return normalize_order_type(value)


class CheckoutResult(BaseModel):
    order: Order
    payment: Payment
    payment_url: Optional[str] = None
