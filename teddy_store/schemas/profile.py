from typing import Optional
from pydantic import BaseModel, Field, field_validator


class ProfileUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    avatar_url: Optional[str] = Field(None, max_length=2048)

    @field_validator(
        "phone", "address_line1", "address_line2", "city", "state", "postal_code", "country", "avatar_url"
    )
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        # Пустые поля формы сохраняются как NULL
        if value is None or not value.strip():
            return None
        return value


class ProfileResponse(BaseModel):
    user_id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True
