from typing import List, Optional
from pydantic import BaseModel, Field

from .notice import Notice


class SignIn(BaseModel):
    user_id: str = Field(..., min_length=1)


class SessionInfo(BaseModel):
    session_id: str
    owner: Optional[str] = None
    cart_state: str
    wishlist_state: str
    notices: List[Notice] = []
