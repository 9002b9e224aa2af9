import uuid
from enum import Enum as PyEnum
from sqlalchemy import Column, String, Numeric, DateTime, JSON
from sqlalchemy.sql import func
from ..database import Base, utcnow


class OrderStatus(PyEnum):
    PROCESSING = "processing"  # В обработке
    SHIPPED = "shipped"  # Отправлен
    DELIVERED = "delivered"  # Доставлен
    CANCELLED = "cancelled"  # Отменен


class PaymentStatus(PyEnum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)

    # Снимок корзины на момент оформления
    items = Column(JSON, nullable=False)
    shipping_info = Column(JSON, nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    # Статусы хранятся строками, как их пишет витрина
    order_status = Column(String(32), default=OrderStatus.PROCESSING.value, nullable=False)
    payment_status = Column(String(32), default=PaymentStatus.PAID.value, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
