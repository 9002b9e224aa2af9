import uuid
from sqlalchemy import Column, String, Numeric, DateTime, JSON, func
from ..database import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    # Одна корзина на пользователя, upsert идет по этому ключу
    user_id = Column(String, unique=True, nullable=False, index=True)
    items = Column(JSON, nullable=False, default=list)  # [{id, productId, name, price, quantity, image}]
    total = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
