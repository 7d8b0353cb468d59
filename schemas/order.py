from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum


class OrderType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


# The storefront historically sent French labels
LEGACY_ORDER_TYPES = {"livraison": OrderType.DELIVERY, "emporter": OrderType.PICKUP}


def normalize_order_type(value):
    if isinstance(value, str):
        return LEGACY_ORDER_TYPES.get(value.strip().lower(), value.strip().lower())
    return value


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderItem(BaseModel):
    product_name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0, validation_alias=AliasChoices("unit_price", "price"))
    selected_drink: Optional[str] = None

    class Config:
        from_attributes = True
        populate_by_name = True


class StatusHistoryEntry(BaseModel):
    status: OrderStatus
    timestamp: datetime
    note: Optional[str] = None

    class Config:
        from_attributes = True


class Order(BaseModel):
    id: str
    order_number: str
    customer_name: str
    customer_phone: str
    delivery_address: Optional[str] = None
    items: List[OrderItem]
    total: float = Field(..., ge=0)
    order_type: OrderType
    status: OrderStatus = OrderStatus.PENDING
    status_history: List[StatusHistoryEntry] = []
    created_at: datetime
    updated_at: datetime

    @field_validator("order_type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        return normalize_order_type(value)

    class Config:
        from_attributes = True


class OrderCreate(BaseModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    delivery_address: Optional[str] = None
    items: List[OrderItem] = []
    order_type: Optional[OrderType] = None
    # Optional client-side total; rejected when it disagrees with the server's
    total: Optional[float] = None

    @field_validator("order_type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        return normalize_order_type(value)


class OrderUpdate(BaseModel):
    """Fields a customer may correct after creating an order."""

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    delivery_address: Optional[str] = None

    class Config:
        extra = "forbid"


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
