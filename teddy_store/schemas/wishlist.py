from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, field_serializer

from .notice import Notice


class WishlistAdd(BaseModel):
    product_id: str


class WishlistProduct(BaseModel):
    """Карточка товара для списка избранного и переноса в корзину"""
    id: str
    name: str
    price: Decimal
    images: List[str] = []
    description: Optional[str] = None

    @field_serializer("price")
    def serialize_price(self, value: Decimal) -> float:
        return float(value)

    class Config:
        from_attributes = True


class WishlistEntry(BaseModel):
    id: str
    owner: str
    product_id: str
    created_at: Optional[datetime] = None
    # Нет, если товар удален из каталога
    product: Optional[WishlistProduct] = None

    class Config:
        from_attributes = True


class WishlistSummary(BaseModel):
    state: str
    owner: Optional[str] = None
    items: List[WishlistEntry]


class WishlistResponse(BaseModel):
    outcome: Optional[str] = None
    wishlist: WishlistSummary
    notices: List[Notice] = []


class WishlistMembership(BaseModel):
    product_id: str
    present: bool
    entry_id: Optional[str] = None
