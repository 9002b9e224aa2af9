from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel


class ProductSort(str, Enum):
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"


class ProductResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    category: Optional[str] = None
    images: List[str] = []
    stock: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
