from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from .base import Base

class Order(Base):
    __tablename__ = "orders"
    
    id = Column(String(64), primary_key=True)
    order_number = Column(String(20), unique=True, nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=False)
    delivery_address = Column(Text, nullable=True)
    total = Column(Float, nullable=False)
    order_type = Column(String(20), nullable=False)
    status = Column(String(50), default="pending", index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderItem.position"
    )
    status_history = relationship(
        "OrderStatusEvent", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderStatusEvent.position"
    )

class OrderItem(Base):
    __tablename__ = "order_items"
    
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(64), ForeignKey("orders.id"), nullable=False)
    position = Column(Integer, nullable=False)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    selected_drink = Column(String(255), nullable=True)
    
    order = relationship("Order", back_populates="items")

class OrderStatusEvent(Base):
    __tablename__ = "order_status_events"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(64), ForeignKey("orders.id"), nullable=False)
    position = Column(Integer, nullable=False)
    status = Column(String(50), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    note = Column(Text, nullable=True)

    order = relationship("Order", back_populates="status_history")
