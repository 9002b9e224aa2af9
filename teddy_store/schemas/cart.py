import uuid
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_serializer, field_validator

from .notice import Notice


class CartLineCreate(BaseModel):
    product_id: str = Field(..., alias="productId")
    name: str
    unit_price: Decimal = Field(..., ge=0, alias="price")
    quantity: int = Field(1, ge=1)
    image_ref: Optional[str] = Field(None, alias="image")

    @field_validator("unit_price", mode="before")
    @classmethod
    def price_from_float(cls, value):
        # Цена из JSON приходит float: 9.99 -> Decimal("9.99"), а не двоичный хвост
        if isinstance(value, float):
            return Decimal(str(value))
        return value

    class Config:
        populate_by_name = True


class CartLine(CartLineCreate):
    line_id: str = Field(default_factory=lambda: str(uuid.uuid4()), alias="id")

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    @field_serializer("unit_price")
    def serialize_price(self, value: Decimal) -> float:
        # В JSON-колонке цена хранится числом
        return float(value)

    def to_row(self) -> dict:
        """Строка в формате колонки carts.items"""
        return self.model_dump(by_alias=True, mode="json")

    class Config:
        populate_by_name = True


class CartQuantityUpdate(BaseModel):
    quantity: int


def compute_total(lines: List[CartLine]) -> Decimal:
    """Сумма корзины: Σ цена × количество"""
    return sum((line.unit_price * line.quantity for line in lines), Decimal("0"))


class CartRecord(BaseModel):
    owner: str
    lines: List[CartLine] = []
    total: Decimal = Decimal("0")

    @classmethod
    def from_lines(cls, owner: str, lines: List[CartLine]) -> "CartRecord":
        return cls(owner=owner, lines=list(lines), total=compute_total(lines))


class CartSummary(BaseModel):
    state: str
    owner: Optional[str] = None
    items: List[CartLine]
    total_items: int
    total: Decimal

    @field_serializer("total")
    def serialize_total(self, value: Decimal) -> float:
        return float(value)

    class Config:
        populate_by_name = True


class CartResponse(BaseModel):
    outcome: Optional[str] = None
    cart: CartSummary
    notices: List[Notice] = []
