from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey
from datetime import datetime
from .base import Base

class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(64), primary_key=True)
    order_id = Column(String(64), ForeignKey("orders.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    payment_method = Column(String(30), nullable=False)
    status = Column(String(30), default="pending")
    gateway_token = Column(String(255), nullable=True)
    gateway_invoice_url = Column(String(500), nullable=True)
    transaction_id = Column(String(100), nullable=True)
    error_message = Column(Text, nullable=True)
    attempts = Column(Integer, default=0)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class PaymentOrderIndex(Base):
    """Latest payment touched for each order, pinned once one is completed."""

    __tablename__ = "payment_order_index"

    order_id = Column(String(64), ForeignKey("orders.id"), primary_key=True)
    payment_id = Column(String(64), ForeignKey("payments.id"), nullable=False)
