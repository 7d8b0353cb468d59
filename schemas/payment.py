from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class PaymentMethod(str, Enum):
    WAVE = "wave"
    ORANGE_MONEY = "orange-money"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class Payment(BaseModel):
    id: str
    order_id: str
    amount: float = Field(..., ge=0)
    payment_method: PaymentMethod
    status: PaymentStatus = PaymentStatus.PENDING
    gateway_token: Optional[str] = None
    gateway_invoice_url: Optional[str] = None
    transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    attempts: int = 0
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PaymentCreate(BaseModel):
    order_id: Optional[str] = None
    amount: Optional[float] = None
    payment_method: Optional[PaymentMethod] = None


class PaymentUpdate(BaseModel):
    payment_method: Optional[PaymentMethod] = None
    status: Optional[PaymentStatus] = None
    error_message: Optional[str] = None

    class Config:
        extra = "forbid"
