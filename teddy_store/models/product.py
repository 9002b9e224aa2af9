import uuid
from sqlalchemy import Column, String, Text, Numeric, Integer, DateTime, JSON
from ..database import Base, utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=True, index=True)
    images = Column(JSON, default=list)  # Список URL изображений
    stock = Column(Integer, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)
