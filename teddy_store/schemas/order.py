from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List
from pydantic import BaseModel, EmailStr, Field

from .notice import Notice


class ShippingInfo(BaseModel):
    first_name: str = Field(..., min_length=1, alias="firstName")
    last_name: str = Field(..., min_length=1, alias="lastName")
    email: EmailStr
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1, alias="zipCode")

    class Config:
        populate_by_name = True


class PaymentDetails(BaseModel):
    """Платежные данные проверяются, но никогда не сохраняются"""
    card_number: str = Field(..., min_length=1, alias="cardNumber")
    expiry: str = Field(..., min_length=1)
    cvv: str = Field(..., min_length=3)

    class Config:
        populate_by_name = True


class CheckoutRequest(BaseModel):
    shipping: ShippingInfo
    payment: PaymentDetails


class OrderResponse(BaseModel):
    id: str
    user_id: str
    items: List[Dict[str, Any]]
    shipping_info: Dict[str, Any]
    total: Decimal
    order_status: str
    payment_status: str
    created_at: datetime

    class Config:
        from_attributes = True


class CheckoutResponse(BaseModel):
    order: OrderResponse
    notices: List[Notice] = []
